#!/usr/bin/env python3
# CUI // SP-CTI
"""Standards catalog and store metadata.

Usage:
    python -m ot_security.standards.catalog
    python -m ot_security.standards.catalog --metadata --json
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
from ot_security.schemas.results import StandardSummary  # noqa: E402
from ot_security.schemas.standards import Standard  # noqa: E402

logger = logging.getLogger("ot_security.standards.catalog")

# Standards whose items live in the technique table rather than ot_requirements.
TECHNIQUE_CATALOGS = ("mitre-ics",)

RECENT_INGESTIONS = 10


def list_standards(db_path=None):
    """Return every standard ordered by name, with its item count."""
    placeholders = ",".join("?" for _ in TECHNIQUE_CATALOGS)
    sql = f"""
        SELECT s.*,
               CASE WHEN s.id IN ({placeholders})
                    THEN (SELECT COUNT(*) FROM mitre_ics_techniques)
                    ELSE (SELECT COUNT(*) FROM ot_requirements r WHERE r.standard_id = s.id)
               END AS requirement_count
        FROM ot_standards s
        ORDER BY s.name, s.id
    """
    conn = None
    try:
        conn = open_store(db_path, operation="list_standards")
        rows = conn.execute(sql, TECHNIQUE_CATALOGS).fetchall()
    except (sqlite3.Error, StoreError) as exc:
        logger.error("Error listing standards: %s", exc)
        return []
    finally:
        if conn is not None:
            conn.close()

    return [
        StandardSummary(standard=Standard.from_row(row), requirement_count=int(row["requirement_count"] or 0))
        for row in rows
    ]


def get_store_metadata(db_path=None):
    """Return metadata key/values plus the most recent ingestion log entries."""
    conn = None
    try:
        conn = open_store(db_path, operation="get_store_metadata")
        meta = {
            row["key"]: row["value"]
            for row in conn.execute("SELECT key, value FROM metadata ORDER BY key").fetchall()
        }
        ingestions = [
            dict(row)
            for row in conn.execute(
                "SELECT * FROM ingestion_log ORDER BY timestamp DESC, id DESC LIMIT ?",
                (RECENT_INGESTIONS,),
            ).fetchall()
        ]
    except (sqlite3.Error, StoreError) as exc:
        logger.error("Error reading store metadata: %s", exc)
        return {}
    finally:
        if conn is not None:
            conn.close()

    return {"metadata": meta, "recent_ingestions": ingestions}


def main():
    parser = argparse.ArgumentParser(description="List OT security standards in the store")
    parser.add_argument("--metadata", action="store_true", help="Show store metadata instead")
    parser.add_argument("--db-path", type=Path, default=None, help="Database path")
    parser.add_argument("--json", action="store_true", help="Output in JSON format")
    args = parser.parse_args()

    if args.metadata:
        result = get_store_metadata(db_path=args.db_path)
        if args.json:
            print(json.dumps(result, indent=2))
        else:
            for key, value in result.get("metadata", {}).items():
                print(f"  {key:<24} {value}")
        return

    standards = list_standards(db_path=args.db_path)
    if args.json:
        print(json.dumps([s.to_dict() for s in standards], indent=2))
        return
    print(f"{'ID':<20} {'NAME':<50} {'VERSION':<10} {'ITEMS':>6}")
    print("-" * 90)
    for s in standards:
        print(f"{s.standard.id:<20} {s.standard.name[:50]:<50} "
              f"{(s.standard.version or '')[:10]:<10} {s.requirement_count:>6}")


if __name__ == "__main__":
    main()
