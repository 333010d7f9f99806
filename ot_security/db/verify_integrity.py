#!/usr/bin/env python3
# CUI // SP-CTI
"""Data integrity verification for the OT security store.

Runs a fixed set of consistency checks over a populated database and reports
issues by category and severity. ERROR issues fail verification; WARNING and
INFO issues are reported but do not.

Exit codes:
    0 - no ERROR issues
    1 - ERROR issues found, or the store could not be opened

Usage:
    python -m ot_security.db.verify_integrity
    python -m ot_security.db.verify_integrity --db-path data/ot-security.db --json
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

logger = logging.getLogger("ot_security.db.verify_integrity")

ERROR = "ERROR"
WARNING = "WARNING"
INFO = "INFO"

MAX_DETAILS = 5

# Licensed standards whose requirement text is supplied by the user; mappings
# may name them before their requirements are loaded.
LICENSED_SOURCE_PATTERN = "iec62443%"
TECHNIQUE_CATALOG = "mitre-ics"


class IntegrityChecker:
    """Collects integrity issues over one open connection."""

    def __init__(self, conn):
        self.conn = conn
        self.issues = []
        self.checks_run = []

    def _rows(self, sql, params=()):
        return [dict(row) for row in self.conn.execute(sql, params).fetchall()]

    def add_issue(self, category, severity, message, details=None):
        self.issues.append({
            "category": category,
            "severity": severity,
            "message": message,
            "details": (details or [])[:MAX_DETAILS],
        })

    def _flag(self, category, severity, rows, message):
        if rows:
            self.add_issue(category, severity, message.format(n=len(rows)), rows)

    def check_orphaned_security_levels(self):
        rows = self._rows(
            """SELECT sl.id, sl.requirement_db_id
               FROM security_levels sl
               LEFT JOIN ot_requirements r ON sl.requirement_db_id = r.id
               WHERE r.id IS NULL"""
        )
        self._flag("security_levels", ERROR, rows,
                   "Found {n} orphaned security_levels records with invalid requirement_db_id")

    def check_security_level_range(self):
        rows = self._rows(
            """SELECT id, security_level, requirement_db_id
               FROM security_levels
               WHERE security_level < 1 OR security_level > 4"""
        )
        self._flag("security_levels", ERROR, rows,
                   "Found {n} security_levels with invalid security_level values")

    def check_flow_references(self):
        for column, table in (("source_zone_id", "zones"),
                              ("target_zone_id", "zones"),
                              ("conduit_id", "conduits")):
            rows = self._rows(
                f"""SELECT f.id, f.{column}
                    FROM zone_conduit_flows f
                    LEFT JOIN {table} t ON f.{column} = t.id
                    WHERE f.{column} IS NOT NULL AND t.id IS NULL"""
            )
            self._flag("zone_conduit_flows", ERROR, rows,
                       "Found {n} flows with invalid " + column)

    def check_zone_purdue_levels(self):
        rows = self._rows(
            "SELECT id, name, purdue_level FROM zones WHERE purdue_level < 0 OR purdue_level > 5"
        )
        self._flag("zones", ERROR, rows, "Found {n} zones with invalid Purdue levels")

    def check_zone_security_level_targets(self):
        rows = self._rows(
            """SELECT id, name, security_level_target
               FROM zones
               WHERE security_level_target IS NOT NULL
                 AND (security_level_target < 1 OR security_level_target > 4)"""
        )
        self._flag("zones", ERROR, rows, "Found {n} zones with invalid security_level_target")

    def check_mapping_references(self):
        rows = self._rows(
            """SELECT m.id, m.source_standard, m.source_requirement
               FROM ot_mappings m
               LEFT JOIN ot_requirements r
                 ON m.source_requirement = r.requirement_id
                AND m.source_standard = r.standard_id
               WHERE r.id IS NULL
                 AND m.source_standard NOT LIKE ?
                 AND m.source_standard != ?""",
            (LICENSED_SOURCE_PATTERN, TECHNIQUE_CATALOG),
        )
        self._flag("ot_mappings", ERROR, rows, "Found {n} mappings with invalid source requirements")

        licensed = self.conn.execute(
            "SELECT COUNT(*) FROM ot_mappings WHERE source_standard LIKE ?",
            (LICENSED_SOURCE_PATTERN,),
        ).fetchone()[0]
        if licensed:
            self.add_issue("ot_mappings", INFO,
                           f"{licensed} IEC 62443 source mappings (awaiting user-supplied data)")

        rows = self._rows(
            """SELECT DISTINCT m.source_requirement
               FROM ot_mappings m
               LEFT JOIN mitre_ics_mitigations mit ON m.source_requirement = mit.mitigation_id
               WHERE m.source_standard = ? AND mit.mitigation_id IS NULL""",
            (TECHNIQUE_CATALOG,),
        )
        self._flag("ot_mappings", ERROR, rows,
                   "Found {n} MITRE mappings with invalid mitigation references")

        rows = self._rows(
            """SELECT m.id, m.target_standard, m.target_requirement
               FROM ot_mappings m
               LEFT JOIN ot_requirements r
                 ON m.target_requirement = r.requirement_id
                AND m.target_standard = r.standard_id
               WHERE r.id IS NULL"""
        )
        self._flag("ot_mappings", ERROR, rows, "Found {n} mappings with invalid target requirements")

    def check_technique_mitigations(self):
        rows = self._rows(
            """SELECT tm.technique_id, tm.mitigation_id
               FROM mitre_technique_mitigations tm
               LEFT JOIN mitre_ics_techniques t ON tm.technique_id = t.technique_id
               WHERE t.technique_id IS NULL"""
        )
        self._flag("mitre_technique_mitigations", ERROR, rows,
                   "Found {n} relationships with invalid technique_id")

        rows = self._rows(
            """SELECT tm.technique_id, tm.mitigation_id
               FROM mitre_technique_mitigations tm
               LEFT JOIN mitre_ics_mitigations m ON tm.mitigation_id = m.mitigation_id
               WHERE m.mitigation_id IS NULL"""
        )
        self._flag("mitre_technique_mitigations", ERROR, rows,
                   "Found {n} relationships with invalid mitigation_id")

        rows = self._rows(
            """SELECT tm.technique_id, tm.mitigation_id, tm.ot_requirement_id
               FROM mitre_technique_mitigations tm
               WHERE tm.ot_requirement_id IS NOT NULL
                 AND NOT EXISTS (
                     SELECT 1 FROM ot_requirements r
                     WHERE r.requirement_id = tm.ot_requirement_id
                 )"""
        )
        self._flag("mitre_technique_mitigations", WARNING, rows,
                   "Found {n} mitigation links to unknown OT requirements")

    def check_duplicate_requirements(self):
        rows = self._rows(
            """SELECT requirement_id, standard_id, COUNT(*) AS count
               FROM ot_requirements
               GROUP BY requirement_id, standard_id
               HAVING count > 1"""
        )
        self._flag("ot_requirements", ERROR, rows, "Found {n} duplicate requirements")

    def check_leveled_requirements(self):
        rows = self._rows(
            """SELECT r.requirement_id, r.standard_id
               FROM ot_requirements r
               LEFT JOIN security_levels sl ON r.id = sl.requirement_db_id
               WHERE r.standard_id LIKE ?
               GROUP BY r.id
               HAVING COUNT(sl.id) = 0""",
            (LICENSED_SOURCE_PATTERN,),
        )
        self._flag("security_levels", WARNING, rows,
                   "Found {n} IEC 62443 requirements without security levels")

    def check_parent_references(self):
        rows = self._rows(
            """SELECT r.id, r.standard_id, r.requirement_id, r.parent_requirement_id
               FROM ot_requirements r
               WHERE r.parent_requirement_id IS NOT NULL
                 AND NOT EXISTS (
                     SELECT 1 FROM ot_requirements p
                     WHERE p.standard_id = r.standard_id
                       AND p.requirement_id = r.parent_requirement_id
                 )"""
        )
        self._flag("ot_requirements", WARNING, rows,
                   "Found {n} enhancements whose parent requirement is not loaded")

    def run(self):
        checks = [
            self.check_orphaned_security_levels,
            self.check_security_level_range,
            self.check_flow_references,
            self.check_zone_purdue_levels,
            self.check_zone_security_level_targets,
            self.check_mapping_references,
            self.check_technique_mitigations,
            self.check_duplicate_requirements,
            self.check_leveled_requirements,
            self.check_parent_references,
        ]
        for check in checks:
            logger.debug("Running %s", check.__name__)
            check()
            self.checks_run.append(check.__name__[len("check_"):])
        return {
            "passed": not any(i["severity"] == ERROR for i in self.issues),
            "issues": self.issues,
            "checks_run": self.checks_run,
        }


def verify_integrity(db_path=None):
    """Run every integrity check against the store.

    Raises:
        StoreError: The store cannot be opened or queried.
    """
    conn = open_store(db_path, operation="verify_integrity")
    try:
        return IntegrityChecker(conn).run()
    except sqlite3.Error as exc:
        raise StoreError(f"Integrity verification failed: {exc}", operation="verify_integrity") from exc
    finally:
        conn.close()


def format_report(report):
    lines = ["=== OT Security Data Integrity Verification ===", ""]
    lines.append(f"Checks run: {len(report['checks_run'])}")
    for severity in (ERROR, WARNING, INFO):
        found = [i for i in report["issues"] if i["severity"] == severity]
        if not found:
            continue
        lines.append(f"\n{severity} ({len(found)}):")
        for issue in found:
            lines.append(f"  [{issue['category']}] {issue['message']}")
            for detail in issue["details"]:
                lines.append(f"    {json.dumps(detail)}")
    lines.append("")
    lines.append("PASSED" if report["passed"] else "FAILED")
    return "\n".join(lines)


def main():
    parser = argparse.ArgumentParser(description="Verify OT security store integrity")
    parser.add_argument("--db-path", type=Path, default=None, help="Database path")
    parser.add_argument("--json", action="store_true", help="Output in JSON format")
    args = parser.parse_args()

    try:
        report = verify_integrity(args.db_path)
    except StoreError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps(report, indent=2))
    else:
        print(format_report(report))
    sys.exit(0 if report["passed"] else 1)


if __name__ == "__main__":
    main()
