#!/usr/bin/env python3
# CUI // SP-CTI
"""Shared pytest fixtures for the OT security test suite.

The ``ot_db`` fixture builds a temporary store with the full schema and a
small seed covering every table the query operations read. Individual tests
that need a bespoke store use ``empty_db`` plus the ``seed`` helpers.
"""

import sqlite3
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Ensure project root is on sys.path
BASE_DIR = Path(__file__).resolve().parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from ot_security.db.init_ot_security_db import init_db  # noqa: E402


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------
def add_standard(conn, std_id, name, version=None, status="current"):
    conn.execute(
        "INSERT INTO ot_standards (id, name, version, status) VALUES (?, ?, ?, ?)",
        (std_id, name, version, status),
    )


def add_requirement(conn, standard_id, requirement_id, title=None, description=None,
                    rationale=None, component_type=None, parent=None, levels=()):
    """Insert a requirement and its security levels. Returns the row id."""
    cur = conn.execute(
        "INSERT INTO ot_requirements (standard_id, requirement_id, parent_requirement_id, "
        "title, description, rationale, component_type) VALUES (?, ?, ?, ?, ?, ?, ?)",
        (standard_id, requirement_id, parent, title, description, rationale, component_type),
    )
    db_id = cur.lastrowid
    for level in levels:
        conn.execute(
            "INSERT INTO security_levels (requirement_db_id, security_level, sl_type) "
            "VALUES (?, ?, 'SL-C')",
            (db_id, level),
        )
    return db_id


def add_mapping(conn, source, target, mapping_type="related", confidence=None, notes=None):
    conn.execute(
        "INSERT INTO ot_mappings (source_standard, source_requirement, target_standard, "
        "target_requirement, mapping_type, confidence, notes) VALUES (?, ?, ?, ?, ?, ?, ?)",
        (source[0], source[1], target[0], target[1], mapping_type, confidence, notes),
    )


def _seed(conn):
    add_standard(conn, "iec62443-3-3", "IEC 62443-3-3 System Security Requirements", "2013")
    add_standard(conn, "nist-800-53", "NIST SP 800-53 Rev 5", "5.1.1")
    add_standard(conn, "nist-800-82", "NIST SP 800-82 Rev 3", "3")
    add_standard(conn, "mitre-ics", "MITRE ATT&CK for ICS", "15")

    add_requirement(
        conn, "iec62443-3-3", "SR 1.1",
        title="Human user identification and authentication",
        description="The control system shall provide the capability to identify and "
                    "authenticate all human users on all interfaces.",
        rationale="Access control depends on reliable identification of users.",
        component_type="host", levels=(1, 2, 3, 4),
    )
    add_requirement(
        conn, "iec62443-3-3", "SR 1.1 RE 1",
        title="Unique identification and authentication",
        description="The control system shall uniquely identify each human user.",
        component_type="host", parent="SR 1.1", levels=(3, 4),
    )
    add_requirement(
        conn, "iec62443-3-3", "SR 5.1",
        title="Network segmentation",
        description="The control system shall provide the capability to logically "
                    "segment control system networks from non-control system networks.",
        rationale="Segmentation limits the spread of compromise across zones.",
        component_type="network", levels=(1, 2, 3, 4),
    )
    add_requirement(
        conn, "nist-800-53", "IA-2",
        title="Identification and Authentication (Organizational Users)",
        description="Uniquely identify and authenticate organizational users.",
    )
    add_requirement(
        conn, "nist-800-53", "SC-7",
        title="Boundary Protection",
        description="Monitor and control communications at the external managed interfaces.",
        rationale="Boundary protection supports network segmentation of control networks.",
    )
    add_requirement(
        conn, "nist-800-82", "6.2.1",
        title="Network Architecture",
        description="Apply a defense-in-depth network architecture with firewalls between levels.",
    )

    add_mapping(conn, ("iec62443-3-3", "SR 1.1"), ("nist-800-53", "IA-2"), "exact_match", 0.9)
    add_mapping(conn, ("nist-800-82", "6.2.1"), ("iec62443-3-3", "SR 1.1"), "related", 0.5)
    add_mapping(conn, ("iec62443-3-3", "SR 5.1"), ("nist-800-53", "SC-7"), "partial", 0.8)

    conn.executemany(
        "INSERT INTO mitre_ics_techniques (technique_id, tactic, name, description, "
        "platforms, data_sources) VALUES (?, ?, ?, ?, ?, ?)",
        [
            ("T0800", "Inhibit Response Function", "Activate Firmware Update Mode",
             "Adversaries may activate firmware update mode on devices.",
             '["Field Controller/RTU/PLC/IED", "Safety Instrumented System/Protection Relay"]',
             '["Application Log"]'),
            ("T0801", "Collection", "Monitor Process State",
             "Adversaries may gather information about the physical process state.",
             "not-json", None),
        ],
    )
    conn.executemany(
        "INSERT INTO mitre_ics_mitigations (mitigation_id, name, description) VALUES (?, ?, ?)",
        [
            ("M0801", "Access Management", "Restrict access to device configuration."),
            ("M0802", "Communication Authenticity", "Authenticate protocol messages."),
            ("M0807", "Network Allowlists", "Allow only expected network connections."),
        ],
    )
    conn.executemany(
        "INSERT INTO mitre_technique_mitigations (technique_id, mitigation_id, ot_requirement_id) "
        "VALUES (?, ?, ?)",
        [
            ("T0800", "M0807", "SR 1.1"),
            ("T0800", "M0801", "SR 1.1"),
            ("T0800", "M0802", "SR 5.1"),
            ("T0801", "M0807", None),
        ],
    )

    conn.executemany(
        "INSERT INTO zones (id, name, purdue_level, security_level_target, description, "
        "iec_reference, typical_assets) VALUES (?, ?, ?, ?, ?, ?, ?)",
        [
            (1, "Enterprise Zone", 4, 1, "Business network with corporate IT services",
             "IEC 62443-3-2 Section 4.3", "ERP, Email"),
            (2, "Control Zone", 2, 2, "Supervisory control and HMI",
             "IEC 62443-3-2 Section 4.4", "HMI, SCADA servers"),
            (3, "Safety Zone", 1, 3, None, "ISA-95 Level 1", None),
        ],
    )
    conn.executemany(
        "INSERT INTO conduits (id, name, conduit_type, security_requirements, description, "
        "iec_reference, minimum_security_level) VALUES (?, ?, ?, ?, ?, ?, ?)",
        [
            (1, "Enterprise-Control Firewall", "firewall", "Stateful inspection",
             "Filters traffic between business and control networks", "IEC 62443-3-2", 2),
            (2, "Data Diode", "unidirectional", None,
             "Hardware-enforced one-way transfer", "IEC 62443-3-2", 3),
        ],
    )
    conn.executemany(
        "INSERT INTO zone_conduit_flows (id, source_zone_id, target_zone_id, conduit_id, "
        "data_flow_description, security_level_requirement, bidirectional) "
        "VALUES (?, ?, ?, ?, ?, ?, ?)",
        [
            (1, 1, 2, 1, "Production reporting", 2, 1),
            (2, 2, 3, 2, "Setpoint download", 3, 0),
        ],
    )

    conn.executemany(
        "INSERT INTO sector_applicability (sector, jurisdiction, standard, applicability, "
        "regulatory_driver) VALUES (?, ?, ?, ?, ?)",
        [
            ("water", "EU", "iec62443-3-3", "mandatory", "NIS2"),
            ("energy", "US", "iec62443-3-3", "recommended", "NERC CIP"),
            ("chemical", "US", "nist-800-82", "recommended", "CFATS"),
        ],
    )

    conn.execute(
        "INSERT OR REPLACE INTO metadata (key, value) VALUES ('data_version', '2026.1')"
    )
    conn.execute(
        "INSERT INTO ingestion_log (operation, status, record_count, timestamp) "
        "VALUES ('ingest-nist-80053', 'success', 2, '2026-01-15 10:00:00')"
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep host environment overrides out of path and config resolution."""
    monkeypatch.delenv("OT_MCP_DB_PATH", raising=False)
    monkeypatch.delenv("OT_MCP_CONFIG_PATH", raising=False)


@pytest.fixture
def empty_db(tmp_path):
    """Temporary store with the full schema and no data."""
    db_path = tmp_path / "ot-security.db"
    init_db(db_path)
    return db_path


@pytest.fixture
def ot_db(empty_db):
    """Temporary store with full schema and seed data."""
    conn = sqlite3.connect(str(empty_db))
    try:
        _seed(conn)
        conn.commit()
    finally:
        conn.close()
    return empty_db


@pytest.fixture
def db_conn(ot_db):
    """Writable connection to the seeded store for corrupting data in place."""
    conn = sqlite3.connect(str(ot_db))
    yield conn
    conn.close()


@pytest.fixture
def seed():
    """Seed helpers for tests that build a bespoke store on ``empty_db``."""
    return SimpleNamespace(
        standard=add_standard,
        requirement=add_requirement,
        mapping=add_mapping,
    )
