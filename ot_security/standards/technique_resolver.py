#!/usr/bin/env python3
# CUI // SP-CTI
"""Resolve MITRE ATT&CK for ICS techniques with mitigations and OT requirements.

A technique is linked to mitigations through ``mitre_technique_mitigations``.
Each link may name an OT requirement id; when standards are requested the
requirements carrying those ids in the requested standards are returned
(distinct, so one requirement linked by two mitigations appears once).

Usage:
    python -m ot_security.standards.technique_resolver --technique-id T0800
    python -m ot_security.standards.technique_resolver --technique-id T0800 --standards iec62443-3-3 nist-800-82 --json
    python -m ot_security.standards.technique_resolver --technique-id T0800 --no-mitigations
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
from ot_security.schemas.standards import Requirement  # noqa: E402
from ot_security.schemas.threats import Mitigation, Technique, TechniqueDetail  # noqa: E402
from ot_security.schemas.validation import is_blank, validate_standard_list  # noqa: E402

logger = logging.getLogger("ot_security.standards.technique_resolver")


def _fetch_mitigations(conn, technique_id):
    rows = conn.execute(
        """SELECT m.*
           FROM mitre_ics_mitigations m
           JOIN mitre_technique_mitigations mtm ON m.mitigation_id = mtm.mitigation_id
           WHERE mtm.technique_id = ?
           ORDER BY m.mitigation_id""",
        (technique_id,),
    ).fetchall()
    return [Mitigation.from_row(row) for row in rows]


def _fetch_mapped_requirements(conn, technique_id, standards):
    placeholders = ",".join("?" for _ in standards)
    rows = conn.execute(
        f"""SELECT DISTINCT r.*
            FROM ot_requirements r
            JOIN mitre_technique_mitigations mtm ON r.requirement_id = mtm.ot_requirement_id
            WHERE mtm.technique_id = ?
              AND r.standard_id IN ({placeholders})
            ORDER BY r.standard_id, r.requirement_id, r.id""",
        [technique_id] + list(standards),
    ).fetchall()
    return [Requirement.from_row(row) for row in rows]


def get_mitre_technique(technique_id, include_mitigations=True, map_to_standards=None, db_path=None):
    """Fetch a technique by id, e.g. "T0800".

    Args:
        technique_id: ATT&CK for ICS technique id.
        include_mitigations: Attach mitigations ordered by mitigation id.
        map_to_standards: Standard ids to resolve mitigation-linked requirements in.
            Empty or None returns no mapped requirements.
        db_path: Store override.

    Returns:
        TechniqueDetail, or None when unknown or the store fails.
    """
    standards = validate_standard_list(map_to_standards, field="map_to_standards")
    if is_blank(technique_id):
        return None
    technique_id = technique_id.strip()

    conn = None
    try:
        conn = open_store(db_path, operation="get_mitre_technique")
        row = conn.execute(
            "SELECT * FROM mitre_ics_techniques WHERE technique_id = ?", (technique_id,)
        ).fetchone()
        if row is None:
            return None
        technique = Technique.from_row(row)

        mitigations = _fetch_mitigations(conn, technique_id) if include_mitigations else []
        mapped = _fetch_mapped_requirements(conn, technique_id, standards) if standards else []
    except (sqlite3.Error, StoreError) as exc:
        logger.error("Error getting MITRE technique %s: %s", technique_id, exc)
        return None
    finally:
        if conn is not None:
            conn.close()

    return TechniqueDetail(technique=technique, mitigations=mitigations, mapped_requirements=mapped)


def format_technique(detail):
    t = detail.technique
    lines = [
        f"{t.technique_id}: {t.name or ''}",
        f"  Tactic:       {t.tactic or 'N/A'}",
        f"  Platforms:    {', '.join(t.platforms) if t.platforms else 'N/A'}",
        f"  Data sources: {', '.join(t.data_sources) if t.data_sources else 'N/A'}",
    ]
    if t.description:
        lines.append(f"\n  {t.description}")
    if detail.mitigations:
        lines.append("\n  Mitigations:")
        for m in detail.mitigations:
            lines.append(f"    {m.mitigation_id}  {m.name or ''}")
    if detail.mapped_requirements:
        lines.append("\n  Mapped requirements:")
        for r in detail.mapped_requirements:
            lines.append(f"    [{r.standard_id}] {r.requirement_id}  {r.title or ''}")
    return "\n".join(lines)


def main():
    parser = argparse.ArgumentParser(description="Get a MITRE ATT&CK for ICS technique")
    parser.add_argument("--technique-id", required=True, help="Technique id (e.g. T0800)")
    parser.add_argument("--no-mitigations", action="store_true", help="Omit mitigations")
    parser.add_argument("--standards", nargs="*", default=None,
                        help="Standard ids to map mitigation requirements into")
    parser.add_argument("--db-path", type=Path, default=None, help="Database path")
    parser.add_argument("--json", action="store_true", help="Output in JSON format")
    args = parser.parse_args()

    detail = get_mitre_technique(
        args.technique_id,
        include_mitigations=not args.no_mitigations,
        map_to_standards=args.standards,
        db_path=args.db_path,
    )
    if detail is None:
        print(f"Technique '{args.technique_id}' not found.", file=sys.stderr)
        sys.exit(1)
    if args.json:
        print(json.dumps(detail.to_dict(), indent=2))
    else:
        print(format_technique(detail))


if __name__ == "__main__":
    main()
