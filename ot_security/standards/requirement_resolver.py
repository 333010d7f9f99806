#!/usr/bin/env python3
# CUI // SP-CTI
"""Resolve one requirement with its standard, security levels and mappings.

Mappings are looked up bidirectionally (see crosswalk.py): a requirement sees
every mapping recorded with it on either side.

The ``version`` argument is accepted and shape-checked but does not filter;
the store holds one version per standard.

Usage:
    python -m ot_security.standards.requirement_resolver --requirement-id "SR 1.1" --standard iec62443-3-3
    python -m ot_security.standards.requirement_resolver --requirement-id AC-2 --standard nist-800-53 --no-mappings --json
"""

import argparse
import json
import logging
import sqlite3
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from ot_security.compat.db_utils import open_store  # noqa: E402
from ot_security.resilience.errors import StoreError  # noqa: E402
from ot_security.schemas.results import RequirementDetail  # noqa: E402
from ot_security.schemas.standards import Requirement, Standard  # noqa: E402
from ot_security.schemas.validation import is_blank, validate_version  # noqa: E402
from ot_security.standards.crosswalk import find_mappings, find_security_levels  # noqa: E402

logger = logging.getLogger("ot_security.standards.requirement_resolver")


def fetch_requirement(conn, requirement_id, standard):
    """Return (Requirement, Standard) or None when either is missing."""
    req_row = conn.execute(
        "SELECT * FROM ot_requirements WHERE requirement_id = ? AND standard_id = ? LIMIT 1",
        (requirement_id, standard),
    ).fetchone()
    if req_row is None:
        return None

    std_row = conn.execute(
        "SELECT * FROM ot_standards WHERE id = ?", (standard,)
    ).fetchone()
    if std_row is None:
        logger.warning("Requirement %s references missing standard %s", requirement_id, standard)
        return None

    return Requirement.from_row(req_row), Standard.from_row(std_row)


def get_requirement(requirement_id, standard, version=None, include_mappings=True, db_path=None):
    """Fetch a requirement by identifier within a standard.

    Args:
        requirement_id: Identifier within the standard (e.g. "SR 1.1").
        standard: Owning standard id (e.g. "iec62443-3-3").
        version: Accepted for compatibility; not applied.
        include_mappings: Attach bidirectional cross-standard mappings.
        db_path: Store override.

    Returns:
        RequirementDetail, or None when not found or the store fails.
    """
    validate_version(version)
    if is_blank(requirement_id) or is_blank(standard):
        return None

    conn = None
    try:
        conn = open_store(db_path, operation="get_requirement")
        found = fetch_requirement(conn, requirement_id, standard)
        if found is None:
            return None
        requirement, standard_record = found

        security_levels = find_security_levels(conn, requirement.id)
        mappings = find_mappings(conn, standard, requirement_id) if include_mappings else []
    except (sqlite3.Error, StoreError) as exc:
        logger.error("Error getting requirement %s/%s: %s", standard, requirement_id, exc)
        return None
    finally:
        if conn is not None:
            conn.close()

    return RequirementDetail(
        requirement=requirement,
        standard=standard_record,
        security_levels=security_levels,
        mappings=mappings,
    )


def format_detail(detail):
    """Format a RequirementDetail as a human-readable block."""
    req = detail.requirement
    levels = ", ".join(
        f"SL-{sl.security_level}" + (f" ({sl.sl_type})" if sl.sl_type else "")
        for sl in detail.security_levels
    ) or "N/A"
    lines = [
        f"{'=' * 70}",
        f"  {req.requirement_id}: {req.title or ''}",
        f"{'=' * 70}",
        f"  Standard:        {detail.standard.name} ({detail.standard.id})",
        f"  Component type:  {req.component_type or 'N/A'}",
        f"  Security levels: {levels}",
    ]
    if req.parent_requirement_id:
        lines.append(f"  Enhancement of:  {req.parent_requirement_id}")
    if req.description:
        lines.append(f"\n  Description:\n  {req.description}")
    if detail.mappings:
        lines.append("\n  Mappings:")
        for m in detail.mappings:
            lines.append(
                f"    {m.source_standard} {m.source_requirement} -> "
                f"{m.target_standard} {m.target_requirement} "
                f"[{m.mapping_type}, confidence {m.confidence if m.confidence is not None else 'N/A'}]"
            )
    lines.append("")
    return "\n".join(lines)


def main():
    parser = argparse.ArgumentParser(description="Get detailed information about an OT requirement")
    parser.add_argument("--requirement-id", required=True, help='Requirement id (e.g. "SR 1.1")')
    parser.add_argument("--standard", required=True, help="Standard id (e.g. iec62443-3-3)")
    parser.add_argument("--version", default=None, help="Standard version (accepted, not applied)")
    parser.add_argument("--no-mappings", action="store_true", help="Omit cross-standard mappings")
    parser.add_argument("--db-path", type=Path, default=None, help="Database path")
    parser.add_argument("--json", action="store_true", help="Output in JSON format")
    args = parser.parse_args()

    detail = get_requirement(
        args.requirement_id,
        args.standard,
        version=args.version,
        include_mappings=not args.no_mappings,
        db_path=args.db_path,
    )
    if detail is None:
        print(f"Requirement '{args.requirement_id}' not found in '{args.standard}'.", file=sys.stderr)
        sys.exit(1)
    if args.json:
        print(json.dumps(detail.to_dict(), indent=2))
    else:
        print(format_detail(detail))


if __name__ == "__main__":
    main()
