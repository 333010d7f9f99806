#!/usr/bin/env python3
# CUI // SP-CTI
"""Initialize the OT security standards store with full schema."""

import argparse
import sqlite3
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from ot_security.compat.db_utils import get_db_path  # noqa: E402

SCHEMA_VERSION = "1.0"

SCHEMA_SQL = """
-- ============================================================
-- STANDARDS & REQUIREMENTS
-- ============================================================
CREATE TABLE IF NOT EXISTS ot_standards (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    version TEXT,
    published_date TEXT,
    url TEXT,
    status TEXT CHECK(status IS NULL OR status IN ('current', 'superseded')),
    notes TEXT
);

CREATE TABLE IF NOT EXISTS ot_requirements (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    standard_id TEXT NOT NULL,
    requirement_id TEXT NOT NULL,
    parent_requirement_id TEXT,
    title TEXT,
    description TEXT,
    rationale TEXT,
    component_type TEXT,
    purdue_level INTEGER CHECK(purdue_level IS NULL OR (purdue_level >= 0 AND purdue_level <= 5)),
    FOREIGN KEY (standard_id) REFERENCES ot_standards(id) ON DELETE CASCADE,
    UNIQUE (standard_id, requirement_id)
);

CREATE TABLE IF NOT EXISTS security_levels (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    requirement_db_id INTEGER NOT NULL,
    security_level INTEGER NOT NULL CHECK(security_level >= 1 AND security_level <= 4),
    sl_type TEXT CHECK(sl_type IS NULL OR sl_type IN ('SL-T', 'SL-C', 'SL-A')),
    capability_level INTEGER,
    notes TEXT,
    FOREIGN KEY (requirement_db_id) REFERENCES ot_requirements(id) ON DELETE CASCADE
);

-- ============================================================
-- CROSS-STANDARD MAPPINGS
-- ============================================================
CREATE TABLE IF NOT EXISTS ot_mappings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    source_standard TEXT NOT NULL,
    source_requirement TEXT NOT NULL,
    target_standard TEXT NOT NULL,
    target_requirement TEXT NOT NULL,
    mapping_type TEXT NOT NULL CHECK(mapping_type IN ('exact_match', 'partial', 'related', 'supersedes', 'broader', 'narrower')),
    confidence REAL CHECK(confidence IS NULL OR (confidence >= 0.0 AND confidence <= 1.0)),
    notes TEXT,
    created_date TEXT DEFAULT (datetime('now'))
);

-- ============================================================
-- ZONES & CONDUITS (IEC 62443-3-2)
-- ============================================================
CREATE TABLE IF NOT EXISTS zones_conduits (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    zone_name TEXT,
    purdue_level INTEGER CHECK(purdue_level IS NULL OR (purdue_level >= 0 AND purdue_level <= 5)),
    security_level_target INTEGER CHECK(security_level_target IS NULL OR (security_level_target >= 1 AND security_level_target <= 4)),
    conduit_type TEXT,
    guidance_text TEXT,
    iec_reference TEXT,
    reference_architecture TEXT
);

CREATE TABLE IF NOT EXISTS zones (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    purdue_level INTEGER CHECK(purdue_level >= 0 AND purdue_level <= 5),
    security_level_target INTEGER CHECK(security_level_target IN (1, 2, 3, 4)),
    description TEXT,
    iec_reference TEXT,
    typical_assets TEXT,
    UNIQUE(name, purdue_level)
);

CREATE TABLE IF NOT EXISTS conduits (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    conduit_type TEXT NOT NULL,
    security_requirements TEXT,
    description TEXT,
    iec_reference TEXT,
    minimum_security_level INTEGER CHECK(minimum_security_level IN (1, 2, 3, 4)),
    UNIQUE(name, conduit_type)
);

CREATE TABLE IF NOT EXISTS zone_conduit_flows (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    source_zone_id INTEGER NOT NULL,
    target_zone_id INTEGER NOT NULL,
    conduit_id INTEGER NOT NULL,
    data_flow_description TEXT,
    security_level_requirement INTEGER CHECK(security_level_requirement IN (1, 2, 3, 4)),
    bidirectional BOOLEAN DEFAULT 0,
    FOREIGN KEY (source_zone_id) REFERENCES zones(id) ON DELETE CASCADE,
    FOREIGN KEY (target_zone_id) REFERENCES zones(id) ON DELETE CASCADE,
    FOREIGN KEY (conduit_id) REFERENCES conduits(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS reference_architectures (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    description TEXT,
    diagram_url TEXT,
    applicable_zones TEXT,
    iec_reference TEXT,
    industry_applicability TEXT
);

-- ============================================================
-- MITRE ATT&CK FOR ICS
-- ============================================================
CREATE TABLE IF NOT EXISTS mitre_ics_techniques (
    technique_id TEXT PRIMARY KEY,
    tactic TEXT,
    name TEXT,
    description TEXT,
    platforms TEXT,
    data_sources TEXT
);

CREATE TABLE IF NOT EXISTS mitre_ics_mitigations (
    mitigation_id TEXT PRIMARY KEY,
    name TEXT,
    description TEXT
);

CREATE TABLE IF NOT EXISTS mitre_technique_mitigations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    technique_id TEXT NOT NULL,
    mitigation_id TEXT NOT NULL,
    ot_requirement_id TEXT,
    FOREIGN KEY (technique_id) REFERENCES mitre_ics_techniques(technique_id) ON DELETE CASCADE,
    FOREIGN KEY (mitigation_id) REFERENCES mitre_ics_mitigations(mitigation_id) ON DELETE CASCADE,
    UNIQUE(technique_id, mitigation_id)
);

-- ============================================================
-- SECTOR APPLICABILITY
-- ============================================================
CREATE TABLE IF NOT EXISTS sector_applicability (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    sector TEXT NOT NULL,
    jurisdiction TEXT NOT NULL,
    standard TEXT NOT NULL,
    applicability TEXT NOT NULL CHECK(applicability IN ('mandatory', 'recommended', 'optional', 'not_applicable')),
    threshold TEXT,
    regulatory_driver TEXT,
    effective_date TEXT,
    notes TEXT
);

-- ============================================================
-- METADATA & INGESTION LOG
-- ============================================================
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS ingestion_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    operation TEXT NOT NULL,
    status TEXT NOT NULL CHECK(status IN ('success', 'failed', 'partial')),
    record_count INTEGER,
    timestamp TEXT DEFAULT (datetime('now')),
    duration_ms INTEGER,
    notes TEXT,
    data_version TEXT
);

-- ============================================================
-- INDEXES
-- ============================================================
CREATE INDEX IF NOT EXISTS idx_requirements_standard ON ot_requirements(standard_id);
CREATE INDEX IF NOT EXISTS idx_requirements_id ON ot_requirements(requirement_id);
CREATE INDEX IF NOT EXISTS idx_requirements_component ON ot_requirements(component_type);
CREATE INDEX IF NOT EXISTS idx_requirements_purdue ON ot_requirements(purdue_level);
CREATE INDEX IF NOT EXISTS idx_security_levels_requirement ON security_levels(requirement_db_id);
CREATE INDEX IF NOT EXISTS idx_security_levels_level ON security_levels(security_level);
CREATE INDEX IF NOT EXISTS idx_mappings_source ON ot_mappings(source_standard, source_requirement);
CREATE INDEX IF NOT EXISTS idx_mappings_target ON ot_mappings(target_standard, target_requirement);
CREATE INDEX IF NOT EXISTS idx_mappings_type ON ot_mappings(mapping_type);
CREATE UNIQUE INDEX IF NOT EXISTS idx_mappings_unique
    ON ot_mappings(source_standard, source_requirement, target_standard, target_requirement);
CREATE INDEX IF NOT EXISTS idx_mitre_techniques_tactic ON mitre_ics_techniques(tactic);
CREATE INDEX IF NOT EXISTS idx_mitre_technique_mitigations_technique ON mitre_technique_mitigations(technique_id);
CREATE INDEX IF NOT EXISTS idx_mitre_technique_mitigations_mitigation ON mitre_technique_mitigations(mitigation_id);
CREATE INDEX IF NOT EXISTS idx_sector_applicability_sector ON sector_applicability(sector);
CREATE INDEX IF NOT EXISTS idx_sector_applicability_jurisdiction ON sector_applicability(jurisdiction);
CREATE INDEX IF NOT EXISTS idx_sector_applicability_standard ON sector_applicability(standard);
CREATE INDEX IF NOT EXISTS idx_zones_conduits_purdue ON zones_conduits(purdue_level);
CREATE INDEX IF NOT EXISTS idx_zones_conduits_security_level ON zones_conduits(security_level_target);
CREATE INDEX IF NOT EXISTS idx_zones_purdue ON zones(purdue_level);
CREATE INDEX IF NOT EXISTS idx_zones_sl_target ON zones(security_level_target);
CREATE INDEX IF NOT EXISTS idx_flows_source ON zone_conduit_flows(source_zone_id);
CREATE INDEX IF NOT EXISTS idx_flows_target ON zone_conduit_flows(target_zone_id);
CREATE INDEX IF NOT EXISTS idx_ingestion_log_timestamp ON ingestion_log(timestamp DESC);
CREATE INDEX IF NOT EXISTS idx_ingestion_log_operation ON ingestion_log(operation);
"""


def init_db(db_path=None):
    """Initialize the store with full schema. Safe to run repeatedly.

    Returns:
        Sorted list of table names present after initialization.
    """
    path = get_db_path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path))
    try:
        conn.execute("PRAGMA foreign_keys = ON")
        conn.executescript(SCHEMA_SQL)
        conn.execute(
            "INSERT OR REPLACE INTO metadata (key, value, updated_at) "
            "VALUES ('schema_version', ?, datetime('now'))",
            (SCHEMA_VERSION,),
        )
        conn.commit()
        tables = [
            row[0]
            for row in conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' "
                "AND name NOT LIKE 'sqlite_%' ORDER BY name"
            ).fetchall()
        ]
    finally:
        conn.close()

    print(f"OT security database initialized at {path}")
    print(f"Tables created ({len(tables)}): {', '.join(tables)}")
    return tables


def main():
    parser = argparse.ArgumentParser(description="Initialize the OT security standards database")
    parser.add_argument("--db-path", type=Path, default=None, help="Database file path")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables")
    args = parser.parse_args()

    path = get_db_path(args.db_path)
    if args.reset and path.exists():
        path.unlink()
        print(f"Removed existing database: {path}")

    init_db(path)


if __name__ == "__main__":
    main()
