#!/usr/bin/env python3
# CUI // SP-CTI
"""Map requirements to an IEC 62443 security level.

Returns every requirement carrying a security_levels row at exactly the
requested level. Lower levels are not rolled up: a caller building a
cumulative SL-3 checklist calls once per level 1..3 and unions the results.

Enhancements (requirements with a parent_requirement_id) are included unless
``include_enhancements`` is False.

Usage:
    python -m ot_security.standards.security_level_mapper --security-level 2
    python -m ot_security.standards.security_level_mapper --security-level 3 --component-type host --no-enhancements --json
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
from ot_security.resilience.errors import OTSecurityValidationError, StoreError  # noqa: E402
from ot_security.schemas.results import LevelRequirement  # noqa: E402
from ot_security.schemas.standards import Requirement  # noqa: E402
from ot_security.schemas.validation import validate_security_level  # noqa: E402
from ot_security.standards.crosswalk import find_security_levels  # noqa: E402

logger = logging.getLogger("ot_security.standards.security_level_mapper")


def map_security_level_requirements(security_level, component_type=None,
                                    include_enhancements=True, db_path=None):
    """List requirements that apply at exactly ``security_level``.

    Raises:
        OTSecurityValidationError: security_level is not an integer in 1-4.
    """
    level = validate_security_level(security_level)

    sql = """
        SELECT r.*
        FROM ot_requirements r
        WHERE EXISTS (
            SELECT 1 FROM security_levels sl
            WHERE sl.requirement_db_id = r.id AND sl.security_level = ?
        )
    """
    params = [level]

    if component_type:
        sql += " AND r.component_type = ?"
        params.append(component_type)

    if not include_enhancements:
        sql += " AND r.parent_requirement_id IS NULL"

    sql += " ORDER BY r.requirement_id, r.standard_id"

    conn = None
    try:
        conn = open_store(db_path, operation="map_security_level_requirements")
        result = []
        for row in conn.execute(sql, params).fetchall():
            requirement = Requirement.from_row(row)
            result.append(LevelRequirement(
                requirement=requirement,
                security_levels=find_security_levels(conn, requirement.id),
            ))
    except (sqlite3.Error, StoreError) as exc:
        logger.error("Error mapping security level %d: %s", level, exc)
        return []
    finally:
        if conn is not None:
            conn.close()

    logger.debug("SL-%d matched %d requirement(s)", level, len(result))
    return result


def format_level_table(level, results):
    """Format level-mapper output as a table."""
    if not results:
        return f"No requirements found at SL-{level}."
    lines = [
        f"IEC 62443: Requirements at SL-{level}",
        f"{'─' * 70}",
        f"{'ID':<16} {'Standard':<16} {'Levels':<12} {'Title'}",
        f"{'─' * 70}",
    ]
    for item in results:
        req = item.requirement
        levels = ",".join(str(sl.security_level) for sl in item.security_levels)
        lines.append(f"{req.requirement_id:<16} {req.standard_id:<16} {levels:<12} {req.title or ''}")
    lines.append(f"{'─' * 70}")
    lines.append(f"Total: {len(results)} requirements")
    return "\n".join(lines)


def main():
    parser = argparse.ArgumentParser(description="Map requirements to an IEC 62443 security level")
    parser.add_argument("--security-level", type=int, required=True, help="Target level (1-4)")
    parser.add_argument("--component-type", default=None, help="Component category filter")
    parser.add_argument("--no-enhancements", action="store_true", help="Exclude requirement enhancements")
    parser.add_argument("--db-path", type=Path, default=None, help="Database path")
    parser.add_argument("--json", action="store_true", help="Output in JSON format")
    args = parser.parse_args()

    try:
        results = map_security_level_requirements(
            args.security_level,
            component_type=args.component_type,
            include_enhancements=not args.no_enhancements,
            db_path=args.db_path,
        )
    except OTSecurityValidationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(2)

    if args.json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
    else:
        print(format_level_table(args.security_level, results))


if __name__ == "__main__":
    main()
