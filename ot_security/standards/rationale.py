#!/usr/bin/env python3
# CUI // SP-CTI
"""Aggregate why a requirement exists and where else it is recognised.

Combines the requirement's rationale text, its security-level rows, the
sector applicability of its standard and its cross-standard neighbours.
Neighbours are read bidirectionally and oriented to the far side of each
mapping, strongest confidence first.

Usage:
    python -m ot_security.standards.rationale --requirement-id "SR 1.1" --standard iec62443-3-3
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
from ot_security.schemas.results import RequirementRationale  # noqa: E402
from ot_security.schemas.standards import SectorApplicability  # noqa: E402
from ot_security.schemas.validation import is_blank  # noqa: E402
from ot_security.standards.crosswalk import (  # noqa: E402
    find_mappings,
    find_security_levels,
    related_standards,
)
from ot_security.standards.requirement_resolver import fetch_requirement  # noqa: E402

logger = logging.getLogger("ot_security.standards.rationale")


def _regulatory_context(conn, standard):
    rows = conn.execute(
        "SELECT * FROM sector_applicability WHERE standard = ? ORDER BY sector, jurisdiction, id",
        (standard,),
    ).fetchall()
    return [SectorApplicability.from_row(row) for row in rows]


def get_requirement_rationale(requirement_id, standard, db_path=None):
    """Return a RequirementRationale, or None when not found or the store fails."""
    if is_blank(requirement_id) or is_blank(standard):
        return None

    conn = None
    try:
        conn = open_store(db_path, operation="get_requirement_rationale")
        found = fetch_requirement(conn, requirement_id, standard)
        if found is None:
            return None
        requirement, standard_record = found

        levels = find_security_levels(conn, requirement.id)
        context = _regulatory_context(conn, standard)
        mappings = find_mappings(conn, standard, requirement_id, by_confidence=True)
    except (sqlite3.Error, StoreError) as exc:
        logger.error("Error getting rationale for %s/%s: %s", standard, requirement_id, exc)
        return None
    finally:
        if conn is not None:
            conn.close()

    return RequirementRationale(
        requirement=requirement,
        standard=standard_record,
        rationale=requirement.rationale,
        security_levels=levels,
        regulatory_context=context,
        related_standards=related_standards(mappings, standard, requirement_id),
    )


def format_rationale(result):
    req = result.requirement
    lines = [
        f"{req.requirement_id}: {req.title or ''} ({result.standard.name})",
        "",
        "Rationale:",
        f"  {result.rationale or 'No rationale recorded.'}",
    ]
    if result.security_levels:
        lines.append("\nSecurity levels:")
        for sl in result.security_levels:
            lines.append(f"  SL-{sl.security_level} {sl.sl_type or ''}".rstrip())
    if result.regulatory_context:
        lines.append("\nRegulatory context:")
        for sa in result.regulatory_context:
            lines.append(f"  {sa.sector} / {sa.jurisdiction}: {sa.applicability}"
                         + (f" ({sa.regulatory_driver})" if sa.regulatory_driver else ""))
    if result.related_standards:
        lines.append("\nRelated standards:")
        for rs in result.related_standards:
            conf = f"{rs.confidence:.2f}" if rs.confidence is not None else "N/A"
            lines.append(f"  {rs.standard} {rs.requirement_id} [{rs.mapping_type}, {conf}]")
    return "\n".join(lines)


def main():
    parser = argparse.ArgumentParser(description="Explain the rationale behind an OT requirement")
    parser.add_argument("--requirement-id", required=True, help='Requirement id (e.g. "SR 1.1")')
    parser.add_argument("--standard", required=True, help="Standard id")
    parser.add_argument("--db-path", type=Path, default=None, help="Database path")
    parser.add_argument("--json", action="store_true", help="Output in JSON format")
    args = parser.parse_args()

    result = get_requirement_rationale(args.requirement_id, args.standard, db_path=args.db_path)
    if result is None:
        print(f"Requirement '{args.requirement_id}' not found in '{args.standard}'.", file=sys.stderr)
        sys.exit(1)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(format_rationale(result))


if __name__ == "__main__":
    main()
