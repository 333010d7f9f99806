#!/usr/bin/env python3
# CUI // SP-CTI
"""Tests for ot_security.standards.zone_guidance: IEC 62443-3-2 segmentation guidance."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
from ot_security.resilience.errors import OTSecurityValidationError
from ot_security.schemas.segmentation import (
    DEFAULT_REFERENCE_ARCHITECTURE,
    Conduit,
    Zone,
    ZoneConduitFlow,
)
from ot_security.standards.zone_guidance import (
    BEST_PRACTICES,
    generate_guidance,
    get_zone_conduit_guidance,
)


def _names(records):
    return [r.name for r in records]


class TestUnfiltered:
    def test_all_zones_ordered_by_purdue_level(self, ot_db):
        result = get_zone_conduit_guidance(db_path=ot_db)
        assert _names(result.zones) == ["Safety Zone", "Control Zone", "Enterprise Zone"]

    def test_conduits_ordered_by_minimum_level(self, ot_db):
        result = get_zone_conduit_guidance(db_path=ot_db)
        assert _names(result.conduits) == ["Enterprise-Control Firewall", "Data Diode"]

    def test_flows_carry_joined_names(self, ot_db):
        flows = get_zone_conduit_guidance(db_path=ot_db).flows
        assert [(f.source_zone_name, f.target_zone_name, f.conduit_name) for f in flows] == [
            ("Enterprise Zone", "Control Zone", "Enterprise-Control Firewall"),
            ("Control Zone", "Safety Zone", "Data Diode"),
        ]
        assert flows[0].bidirectional is True
        assert flows[1].bidirectional is False

    def test_default_reference_architecture(self, ot_db):
        result = get_zone_conduit_guidance(db_path=ot_db)
        assert result.reference_architecture == DEFAULT_REFERENCE_ARCHITECTURE


class TestFilters:
    def test_purdue_level(self, ot_db):
        result = get_zone_conduit_guidance(purdue_level=1, db_path=ot_db)
        assert _names(result.zones) == ["Safety Zone"]
        assert [f.id for f in result.flows] == [2]
        assert len(result.conduits) == 2

    def test_security_level_target(self, ot_db):
        result = get_zone_conduit_guidance(security_level_target=2, db_path=ot_db)
        assert _names(result.zones) == ["Control Zone"]
        assert [f.id for f in result.flows] == [1, 2]

    def test_reference_architecture_substring(self, ot_db):
        result = get_zone_conduit_guidance(reference_architecture="ISA-95", db_path=ot_db)
        assert _names(result.zones) == ["Safety Zone"]
        assert result.reference_architecture == "ISA-95"

    def test_filters_combine(self, ot_db):
        result = get_zone_conduit_guidance(purdue_level=2, security_level_target=3, db_path=ot_db)
        assert result.zones == []

    @pytest.mark.parametrize("kwargs", [
        {"purdue_level": 0},
        {"security_level_target": 4},
        {"reference_architecture": "Nonexistent"},
    ])
    def test_empty_zone_set_yields_no_flows_but_all_conduits(self, ot_db, kwargs):
        result = get_zone_conduit_guidance(db_path=ot_db, **kwargs)
        assert result.zones == []
        assert result.flows == []
        assert len(result.conduits) == 2


class TestValidation:
    @pytest.mark.parametrize("kwargs", [
        {"purdue_level": -1},
        {"purdue_level": 6},
        {"security_level_target": 0},
        {"security_level_target": 5},
        {"reference_architecture": 62443},
    ])
    def test_invalid_filters_raise(self, ot_db, kwargs):
        with pytest.raises(OTSecurityValidationError):
            get_zone_conduit_guidance(db_path=ot_db, **kwargs)


class TestGuidanceText:
    def test_header_and_counts(self, ot_db):
        text = get_zone_conduit_guidance(db_path=ot_db).guidance
        assert text.startswith("# IEC 62443 Network Segmentation Guidance\n")
        assert "## All Network Zones" in text
        assert "Found 3 zone(s), 2 conduit type(s), and 2 flow(s)." in text

    @pytest.mark.parametrize("kwargs,header", [
        ({"purdue_level": 1}, "## Purdue Level 1 Zones"),
        ({"security_level_target": 2}, "## Security Level 2 Target Zones"),
        ({"reference_architecture": "ISA-95"}, "## Zones for Reference Architecture: ISA-95"),
    ])
    def test_filter_headers(self, ot_db, kwargs, header):
        assert header in get_zone_conduit_guidance(db_path=ot_db, **kwargs).guidance

    def test_section_order(self, ot_db):
        text = get_zone_conduit_guidance(db_path=ot_db).guidance
        positions = [
            text.index("### Zone Security Considerations:"),
            text.index("### Conduit Types and Requirements:"),
            text.index("### Data Flows:"),
            text.index("### Best Practices:"),
        ]
        assert positions == sorted(positions)

    def test_zone_paragraph(self, ot_db):
        text = get_zone_conduit_guidance(db_path=ot_db).guidance
        assert "**Control Zone** (Purdue Level 2, Target SL-2):" in text
        assert "- Typical assets: HMI, SCADA servers" in text

    def test_missing_zone_fields_render_na(self, ot_db):
        text = get_zone_conduit_guidance(purdue_level=1, db_path=ot_db).guidance
        assert "**Safety Zone** (Purdue Level 1, Target SL-3):\n- N/A\n- Typical assets: N/A" in text

    def test_security_requirements_only_when_present(self, ot_db):
        text = get_zone_conduit_guidance(db_path=ot_db).guidance
        assert "- Security requirements: Stateful inspection" in text
        assert text.count("- Security requirements:") == 1

    def test_flow_direction_arrows(self, ot_db):
        text = get_zone_conduit_guidance(db_path=ot_db).guidance
        assert "**Enterprise Zone <-> Control Zone** via Enterprise-Control Firewall:" in text
        assert "**Control Zone -> Safety Zone** via Data Diode:" in text
        assert "- Required SL-3" in text

    def test_empty_sections_omitted(self, ot_db):
        text = get_zone_conduit_guidance(purdue_level=0, db_path=ot_db).guidance
        assert "### Zone Security Considerations:" not in text
        assert "### Data Flows:" not in text
        assert "### Conduit Types and Requirements:" in text

    def test_best_practices_always_close(self, ot_db):
        text = get_zone_conduit_guidance(db_path=ot_db).guidance
        assert text.endswith("- " + BEST_PRACTICES[-1])
        for practice in BEST_PRACTICES:
            assert f"- {practice}" in text


class TestGenerateGuidance:
    def test_renders_from_records(self):
        zones = [Zone(id=1, name="Cell Zone", purdue_level=1, security_level_target=2,
                      description="Basic control", typical_assets="PLCs")]
        conduits = [Conduit(id=1, name="Cell Switch", conduit_type="switched",
                            minimum_security_level=1, description="Managed switch")]
        flows = [ZoneConduitFlow(id=1, source_zone_id=1, target_zone_id=1, conduit_id=1,
                                 source_zone_name="Cell Zone", target_zone_name="Cell Zone",
                                 conduit_name="Cell Switch", data_flow_description="I/O",
                                 security_level_requirement=2)]
        text = generate_guidance(zones, conduits, flows, purdue_level=1)
        assert "## Purdue Level 1 Zones" in text
        assert "Found 1 zone(s), 1 conduit type(s), and 1 flow(s)." in text
        assert "**Cell Switch** (Min SL-1):\n- Type: switched\n- Managed switch" in text
        assert "**Cell Zone -> Cell Zone** via Cell Switch:\n- I/O\n- Required SL-2" in text

    def test_empty_inputs(self):
        text = generate_guidance([], [], [])
        assert "Found 0 zone(s), 0 conduit type(s), and 0 flow(s)." in text
        assert "### Best Practices:" in text


class TestStoreFailure:
    def test_missing_store_degrades(self, tmp_path):
        result = get_zone_conduit_guidance(db_path=tmp_path / "missing.db")
        assert result.zones == [] and result.conduits == [] and result.flows == []
        assert "Found 0 zone(s), 0 conduit type(s), and 0 flow(s)." in result.guidance

    def test_to_dict(self, ot_db):
        data = get_zone_conduit_guidance(purdue_level=1, db_path=ot_db).to_dict()
        assert set(data) == {"zones", "conduits", "flows", "reference_architecture", "guidance"}
        assert data["zones"][0]["name"] == "Safety Zone"
