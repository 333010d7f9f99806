#!/usr/bin/env python3
# CUI // SP-CTI
"""OT security MCP server exposing standards retrieval and cross-mapping tools.

Tools:
    search_ot_requirements          - Keyword search across all loaded standards
    get_ot_requirement              - One requirement with levels and cross-mappings
    list_ot_standards               - Loaded standards with item counts
    get_mitre_ics_technique         - ATT&CK for ICS technique with mitigations
    map_security_level_requirements - Requirements that apply at an IEC 62443 SL
    get_zone_conduit_guidance       - IEC 62443-3-2 segmentation guidance
    get_requirement_rationale       - Why a requirement exists and where else it applies

Resources:
    ot-security://metadata          - Store metadata and recent ingestions

Argument validation failures surface as ``isError`` tool results. Ordinary
not-found conditions are successful results carrying an ``error`` key.

Runs as an MCP server over stdio with Content-Length framing.
"""

import argparse
import functools
import logging
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from ot_security.compat.config_loader import get_setting, load_config  # noqa: E402
from ot_security.compat.db_utils import get_db_path  # noqa: E402
from ot_security.mcp.base_server import MCPServer  # noqa: E402
from ot_security.schemas.standards import COMPONENT_TYPES  # noqa: E402
from ot_security.standards.catalog import get_store_metadata, list_standards  # noqa: E402
from ot_security.standards.rationale import get_requirement_rationale  # noqa: E402
from ot_security.standards.requirement_resolver import get_requirement  # noqa: E402
from ot_security.standards.search import search_requirements  # noqa: E402
from ot_security.standards.security_level_mapper import map_security_level_requirements  # noqa: E402
from ot_security.standards.technique_resolver import get_mitre_technique  # noqa: E402
from ot_security.standards.zone_guidance import get_zone_conduit_guidance  # noqa: E402

logger = logging.getLogger("ot_security.mcp.server")

METADATA_URI = "ot-security://metadata"


# ---------------------------------------------------------------------------
# Tool handlers
# ---------------------------------------------------------------------------

def handle_search_ot_requirements(args: dict, db_path=None, config=None) -> list:
    results = search_requirements(
        args.get("query"),
        standards=args.get("standards"),
        security_level=args.get("security_level"),
        component_type=args.get("component_type"),
        limit=args.get("limit"),
        db_path=db_path,
        config=config,
    )
    return [r.to_dict() for r in results]


def handle_get_ot_requirement(args: dict, db_path=None) -> dict:
    requirement_id = args.get("requirement_id")
    standard = args.get("standard")
    detail = get_requirement(
        requirement_id,
        standard,
        version=args.get("version"),
        include_mappings=args.get("include_mappings", True),
        db_path=db_path,
    )
    if detail is None:
        return {"error": f"Requirement '{requirement_id}' not found in standard '{standard}'"}
    return detail.to_dict()


def handle_list_ot_standards(args: dict, db_path=None) -> list:
    return [s.to_dict() for s in list_standards(db_path=db_path)]


def handle_get_mitre_ics_technique(args: dict, db_path=None) -> dict:
    technique_id = args.get("technique_id")
    detail = get_mitre_technique(
        technique_id,
        include_mitigations=args.get("include_mitigations", True),
        map_to_standards=args.get("map_to_standards"),
        db_path=db_path,
    )
    if detail is None:
        return {"error": f"MITRE ICS technique '{technique_id}' not found"}
    return detail.to_dict()


def handle_map_security_level_requirements(args: dict, db_path=None) -> list:
    results = map_security_level_requirements(
        args.get("security_level"),
        component_type=args.get("component_type"),
        include_enhancements=args.get("include_enhancements", True),
        db_path=db_path,
    )
    return [r.to_dict() for r in results]


def handle_get_zone_conduit_guidance(args: dict, db_path=None) -> dict:
    return get_zone_conduit_guidance(
        purdue_level=args.get("purdue_level"),
        security_level_target=args.get("security_level_target"),
        reference_architecture=args.get("reference_architecture"),
        db_path=db_path,
    ).to_dict()


def handle_get_requirement_rationale(args: dict, db_path=None) -> dict:
    requirement_id = args.get("requirement_id")
    standard = args.get("standard")
    result = get_requirement_rationale(requirement_id, standard, db_path=db_path)
    if result is None:
        return {"error": f"Requirement '{requirement_id}' not found in standard '{standard}'"}
    return result.to_dict()


# ---------------------------------------------------------------------------
# Server setup
# ---------------------------------------------------------------------------

def create_server(db_path=None, config=None) -> MCPServer:
    config = config if config is not None else load_config()
    # database.path in this config applies to every tool
    db_path = get_db_path(db_path, config=config)
    server = MCPServer(
        name=get_setting("server.name", "ot-security-mcp", config),
        version=get_setting("server.version", "0.1.0", config),
    )
    default_limit = get_setting("search.default_limit", 10, config)
    max_limit = get_setting("search.max_limit", 100, config)

    server.register_tool(
        name="search_ot_requirements",
        description="Search for OT security requirements across all standards by keyword. Matches title, description and rationale; title matches rank highest.",
        input_schema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search text (case-insensitive substring)"},
                "standards": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": 'Optional: restrict to standard ids (e.g. ["iec62443-3-3", "nist-800-82"])',
                },
                "security_level": {
                    "type": "integer", "minimum": 1, "maximum": 4,
                    "description": "Optional: requirement must carry this IEC 62443 security level",
                },
                "component_type": {
                    "type": "string", "enum": list(COMPONENT_TYPES),
                    "description": "Optional: component category filter",
                },
                "limit": {
                    "type": "integer", "minimum": 1, "maximum": max_limit, "default": default_limit,
                    "description": f"Optional: maximum results (default {default_limit})",
                },
            },
            "required": ["query"],
        },
        handler=functools.partial(handle_search_ot_requirements, db_path=db_path, config=config),
    )

    server.register_tool(
        name="get_ot_requirement",
        description="Get detailed information about a specific OT requirement, including security levels and cross-standard mappings.",
        input_schema={
            "type": "object",
            "properties": {
                "requirement_id": {"type": "string", "description": 'Requirement id (e.g. "SR 1.1", "SR 1.1 RE 1")'},
                "standard": {"type": "string", "description": 'Standard id (e.g. "iec62443-3-3")'},
                "version": {"type": "string", "description": "Optional: standard version (accepted, not applied)"},
                "include_mappings": {"type": "boolean", "default": True, "description": "Include cross-standard mappings"},
            },
            "required": ["requirement_id", "standard"],
        },
        handler=functools.partial(handle_get_ot_requirement, db_path=db_path),
    )

    server.register_tool(
        name="list_ot_standards",
        description="List all available OT security standards with coverage statistics.",
        input_schema={"type": "object", "properties": {}, "required": []},
        handler=functools.partial(handle_list_ot_standards, db_path=db_path),
    )

    server.register_tool(
        name="get_mitre_ics_technique",
        description="Get a MITRE ATT&CK for ICS technique with its mitigations, optionally mapped to OT requirements in the given standards.",
        input_schema={
            "type": "object",
            "properties": {
                "technique_id": {"type": "string", "description": 'Technique id (e.g. "T0800")'},
                "include_mitigations": {"type": "boolean", "default": True, "description": "Include mitigations"},
                "map_to_standards": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": 'Optional: standards to map mitigations into (e.g. ["iec62443-3-3"])',
                },
            },
            "required": ["technique_id"],
        },
        handler=functools.partial(handle_get_mitre_ics_technique, db_path=db_path),
    )

    server.register_tool(
        name="map_security_level_requirements",
        description="List IEC 62443 requirements that apply at exactly the given security level (1-4), optionally filtered by component type.",
        input_schema={
            "type": "object",
            "properties": {
                "security_level": {"type": "integer", "minimum": 1, "maximum": 4, "description": "Target security level (1-4)"},
                "component_type": {"type": "string", "enum": list(COMPONENT_TYPES), "description": "Optional component type filter"},
                "include_enhancements": {"type": "boolean", "default": True, "description": "Include requirement enhancements (REs)"},
            },
            "required": ["security_level"],
        },
        handler=functools.partial(handle_map_security_level_requirements, db_path=db_path),
    )

    server.register_tool(
        name="get_zone_conduit_guidance",
        description="Get IEC 62443 zone and conduit guidance for network segmentation. Filter zones by Purdue level (0-5), target security level (1-4) and reference architecture.",
        input_schema={
            "type": "object",
            "properties": {
                "purdue_level": {"type": "integer", "minimum": 0, "maximum": 5, "description": "Optional: Purdue level filter"},
                "security_level_target": {"type": "integer", "minimum": 1, "maximum": 4, "description": "Optional: target SL filter"},
                "reference_architecture": {"type": "string", "description": 'Optional: reference architecture (e.g. "IEC 62443-3-2")'},
            },
            "required": [],
        },
        handler=functools.partial(handle_get_zone_conduit_guidance, db_path=db_path),
    )

    server.register_tool(
        name="get_requirement_rationale",
        description="Explain why a requirement exists: rationale, security levels, sector regulatory context and related requirements in other standards.",
        input_schema={
            "type": "object",
            "properties": {
                "requirement_id": {"type": "string", "description": "Requirement id"},
                "standard": {"type": "string", "description": "Standard id"},
            },
            "required": ["requirement_id", "standard"],
        },
        handler=functools.partial(handle_get_requirement_rationale, db_path=db_path),
    )

    server.register_resource(
        uri=METADATA_URI,
        name="OT security store metadata",
        description="Schema version, data version and recent ingestion runs.",
        handler=lambda uri: get_store_metadata(db_path=db_path),
    )

    return server


def main():
    parser = argparse.ArgumentParser(description="OT security standards MCP server (stdio)")
    parser.add_argument("--db-path", type=Path, default=None, help="Database path")
    parser.add_argument("--config", type=Path, default=None, help="Config YAML path")
    args = parser.parse_args()

    config = load_config(args.config)
    # stdout carries JSON-RPC; logs go to stderr only
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, str(get_setting("logging.level", "INFO", config)).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    server = create_server(db_path=args.db_path, config=config)
    server.run()


if __name__ == "__main__":
    main()
