#!/usr/bin/env python3
# CUI // SP-CTI
"""IEC 62443-3-2 zone and conduit guidance for OT network segmentation.

Zones are filtered by Purdue level, target security level and a substring of
their IEC reference. Conduits are never filtered: every conduit class is
returned regardless of the zone filter. Flows are limited to those touching
a filtered zone; a zone filter that matches nothing yields no flows.

The guidance document is rendered deterministically in this order, omitting
any section whose list is empty:

    # IEC 62443 Network Segmentation Guidance
    ## <filter header>
    Found N zone(s), M conduit type(s), and K flow(s).
    ### Zone Security Considerations:
    ### Conduit Types and Requirements:
    ### Data Flows:
    ### Best Practices:

Usage:
    python -m ot_security.standards.zone_guidance
    python -m ot_security.standards.zone_guidance --purdue-level 1 --json
    python -m ot_security.standards.zone_guidance --security-level-target 3 --reference-architecture "62443-3-2"
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
from ot_security.schemas.segmentation import (  # noqa: E402
    DEFAULT_REFERENCE_ARCHITECTURE,
    Conduit,
    Zone,
    ZoneConduitFlow,
    ZoneConduitGuidance,
)
from ot_security.schemas.validation import (  # noqa: E402
    validate_optional_purdue_level,
    validate_optional_security_level,
)

logger = logging.getLogger("ot_security.standards.zone_guidance")

GUIDANCE_TITLE = "# IEC 62443 Network Segmentation Guidance"

BEST_PRACTICES = [
    "Implement defense-in-depth with multiple security layers",
    "Use firewalls and access controls at zone boundaries",
    "Monitor all cross-zone traffic for anomalies",
    "Apply least privilege principle for all communications",
    "Consider unidirectional data flows for critical protection",
]

_FLOW_SQL = """
    SELECT
        f.id,
        f.source_zone_id,
        sz.name AS source_zone_name,
        f.target_zone_id,
        tz.name AS target_zone_name,
        f.conduit_id,
        c.name AS conduit_name,
        f.data_flow_description,
        f.security_level_requirement,
        f.bidirectional
    FROM zone_conduit_flows f
    JOIN zones sz ON f.source_zone_id = sz.id
    JOIN zones tz ON f.target_zone_id = tz.id
    JOIN conduits c ON f.conduit_id = c.id
"""


def _na(value):
    return "N/A" if value is None or value == "" else value


def _query_zones(conn, purdue_level, security_level_target, reference_architecture):
    sql = "SELECT * FROM zones WHERE 1=1"
    params = []
    if purdue_level is not None:
        sql += " AND purdue_level = ?"
        params.append(purdue_level)
    if security_level_target is not None:
        sql += " AND security_level_target = ?"
        params.append(security_level_target)
    if reference_architecture:
        sql += " AND iec_reference LIKE ?"
        params.append(f"%{reference_architecture}%")
    sql += " ORDER BY purdue_level, name"
    return [Zone.from_row(row) for row in conn.execute(sql, params).fetchall()]


def _query_conduits(conn):
    rows = conn.execute(
        "SELECT * FROM conduits ORDER BY minimum_security_level, name"
    ).fetchall()
    return [Conduit.from_row(row) for row in rows]


def _query_flows(conn, zone_ids):
    """All flows when zone_ids is None, else only those touching zone_ids."""
    sql = _FLOW_SQL
    params = []
    if zone_ids is not None:
        if not zone_ids:
            return []
        placeholders = ",".join("?" for _ in zone_ids)
        sql += f" WHERE f.source_zone_id IN ({placeholders}) OR f.target_zone_id IN ({placeholders})"
        params = list(zone_ids) + list(zone_ids)
    sql += " ORDER BY f.source_zone_id, f.target_zone_id, f.id"
    return [ZoneConduitFlow.from_row(row) for row in conn.execute(sql, params).fetchall()]


def generate_guidance(zones, conduits, flows, purdue_level=None,
                      security_level_target=None, reference_architecture=None):
    """Render the segmentation guidance document from joined records."""
    parts = [f"{GUIDANCE_TITLE}\n"]

    if purdue_level is not None:
        parts.append(f"## Purdue Level {purdue_level} Zones")
    elif security_level_target is not None:
        parts.append(f"## Security Level {security_level_target} Target Zones")
    elif reference_architecture:
        parts.append(f"## Zones for Reference Architecture: {reference_architecture}")
    else:
        parts.append("## All Network Zones")

    parts.append(
        f"\nFound {len(zones)} zone(s), {len(conduits)} conduit type(s), "
        f"and {len(flows)} flow(s).\n"
    )

    if zones:
        parts.append("### Zone Security Considerations:")
        for zone in zones:
            parts.append(
                f"\n**{zone.name}** (Purdue Level {_na(zone.purdue_level)}, "
                f"Target SL-{_na(zone.security_level_target)}):"
            )
            parts.append(f"- {_na(zone.description)}")
            parts.append(f"- Typical assets: {_na(zone.typical_assets)}")
        parts.append("")

    if conduits:
        parts.append("### Conduit Types and Requirements:")
        for conduit in conduits:
            parts.append(f"\n**{conduit.name}** (Min SL-{_na(conduit.minimum_security_level)}):")
            parts.append(f"- Type: {conduit.conduit_type}")
            parts.append(f"- {_na(conduit.description)}")
            if conduit.security_requirements:
                parts.append(f"- Security requirements: {conduit.security_requirements}")
        parts.append("")

    if flows:
        parts.append("### Data Flows:")
        for flow in flows:
            direction = "<->" if flow.bidirectional else "->"
            parts.append(
                f"\n**{flow.source_zone_name} {direction} {flow.target_zone_name}** "
                f"via {flow.conduit_name}:"
            )
            parts.append(f"- {_na(flow.data_flow_description)}")
            parts.append(f"- Required SL-{_na(flow.security_level_requirement)}")
        parts.append("")

    parts.append("### Best Practices:")
    for practice in BEST_PRACTICES:
        parts.append(f"- {practice}")

    return "\n".join(parts)


def get_zone_conduit_guidance(purdue_level=None, security_level_target=None,
                              reference_architecture=None, db_path=None):
    """Return zones, conduits, flows and rendered guidance.

    Args:
        purdue_level: Optional Purdue level 0-5.
        security_level_target: Optional target security level 1-4.
        reference_architecture: Optional substring of the zone IEC reference.
        db_path: Store override.

    Returns:
        ZoneConduitGuidance. Store faults degrade to empty lists.

    Raises:
        OTSecurityValidationError: A level filter is outside its range.
    """
    purdue_level = validate_optional_purdue_level(purdue_level)
    security_level_target = validate_optional_security_level(
        security_level_target, field="security_level_target"
    )
    if reference_architecture is not None and not isinstance(reference_architecture, str):
        raise OTSecurityValidationError(
            "reference_architecture must be a string", field="reference_architecture"
        )
    reference_architecture = (reference_architecture or "").strip() or None

    zone_filtered = (
        purdue_level is not None
        or security_level_target is not None
        or reference_architecture is not None
    )

    zones, conduits, flows = [], [], []
    conn = None
    try:
        conn = open_store(db_path, operation="get_zone_conduit_guidance")
        zones = _query_zones(conn, purdue_level, security_level_target, reference_architecture)
        conduits = _query_conduits(conn)
        flows = _query_flows(conn, [z.id for z in zones] if zone_filtered else None)
    except (sqlite3.Error, StoreError) as exc:
        logger.error("Error getting zone/conduit guidance: %s", exc)
        zones, conduits, flows = [], [], []
    finally:
        if conn is not None:
            conn.close()

    guidance = generate_guidance(
        zones, conduits, flows,
        purdue_level=purdue_level,
        security_level_target=security_level_target,
        reference_architecture=reference_architecture,
    )
    return ZoneConduitGuidance(
        zones=zones,
        conduits=conduits,
        flows=flows,
        reference_architecture=reference_architecture or DEFAULT_REFERENCE_ARCHITECTURE,
        guidance=guidance,
    )


def main():
    parser = argparse.ArgumentParser(description="IEC 62443 zone and conduit segmentation guidance")
    parser.add_argument("--purdue-level", type=int, default=None, help="Purdue level (0-5)")
    parser.add_argument("--security-level-target", type=int, default=None, help="Target SL (1-4)")
    parser.add_argument("--reference-architecture", default=None, help="IEC reference substring")
    parser.add_argument("--db-path", type=Path, default=None, help="Database path")
    parser.add_argument("--json", action="store_true", help="Output in JSON format")
    args = parser.parse_args()

    try:
        result = get_zone_conduit_guidance(
            purdue_level=args.purdue_level,
            security_level_target=args.security_level_target,
            reference_architecture=args.reference_architecture,
            db_path=args.db_path,
        )
    except OTSecurityValidationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(2)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(result.guidance)


if __name__ == "__main__":
    main()
