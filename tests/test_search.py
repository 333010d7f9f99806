#!/usr/bin/env python3
# CUI // SP-CTI
"""Tests for ot_security.standards.search: keyword search with tiered relevance."""

import sqlite3
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
from ot_security.resilience.errors import OTSecurityValidationError
from ot_security.standards.search import search_requirements


def _ids(results):
    return [r.requirement.requirement_id for r in results]


class TestBlankQuery:
    """Empty queries short-circuit before config or store access."""

    @pytest.mark.parametrize("query", ["", "   ", "\t\n", None, 42])
    def test_returns_empty_without_touching_store(self, query):
        with patch("ot_security.standards.search.open_store") as mock_open, \
                patch("ot_security.standards.search.load_config") as mock_config:
            assert search_requirements(query) == []
        mock_open.assert_not_called()
        mock_config.assert_not_called()


class TestRelevanceOrdering:
    def test_title_matches_score_one(self, ot_db):
        results = search_requirements("authentication", db_path=ot_db)
        assert _ids(results) == ["SR 1.1", "SR 1.1 RE 1", "IA-2"]
        assert all(r.relevance == 1.0 for r in results)

    def test_title_match_ranks_above_rationale_match(self, ot_db):
        results = search_requirements("segmentation", db_path=ot_db)
        assert _ids(results) == ["SR 5.1", "SC-7"]
        assert [r.relevance for r in results] == [1.0, 0.5]

    def test_description_only_match(self, ot_db):
        results = search_requirements("firewalls", db_path=ot_db)
        assert _ids(results) == ["6.2.1"]
        assert results[0].relevance == 0.7
        assert "firewalls" in results[0].snippet

    def test_case_insensitive(self, ot_db):
        results = search_requirements("NETWORK SEGMENTATION", db_path=ot_db)
        assert _ids(results) == ["SR 5.1", "SC-7"]

    def test_title_snippet_is_title(self, ot_db):
        results = search_requirements("boundary", db_path=ot_db)
        assert results[0].snippet == "Boundary Protection"

    def test_rationale_snippet_is_context_window(self, ot_db):
        results = search_requirements("segmentation", db_path=ot_db)
        assert results[1].snippet == "Boundary protection supports network segmentation of control networks."

    def test_like_wildcards_are_literal(self, ot_db):
        assert search_requirements("%", db_path=ot_db) == []
        assert search_requirements("_", db_path=ot_db) == []

    def test_no_match(self, ot_db):
        assert search_requirements("quantum", db_path=ot_db) == []


class TestScenarioTitleBeforeRationale:
    """A title hit and a rationale-only hit come back title first, 1.0 then 0.5."""

    def test_two_tier_result(self, empty_db, seed):
        conn = sqlite3.connect(str(empty_db))
        seed.standard(conn, "iec-sample", "Sample Standard")
        seed.requirement(conn, "iec-sample", "REQ-B", title="Event logging",
                         rationale="Needed to investigate authentication failures.")
        seed.requirement(conn, "iec-sample", "REQ-A", title="Strong Authentication")
        conn.commit()
        conn.close()

        results = search_requirements("authentication", db_path=empty_db)
        assert _ids(results) == ["REQ-A", "REQ-B"]
        assert [r.relevance for r in results] == [1.0, 0.5]


class TestNonAsciiMatching:
    """Non-ASCII text is case-folded the same way on both sides of the match."""

    @pytest.fixture
    def german_db(self, empty_db, seed):
        conn = sqlite3.connect(str(empty_db))
        seed.standard(conn, "din-sample", "Sample DIN Standard")
        seed.requirement(conn, "din-sample", "R1", title="Überwachung der Netzwerke")
        seed.requirement(conn, "din-sample", "R2", title="Zugriffskontrolle",
                         rationale="Erfordert ÜBERWACHUNG aller Zugriffe.")
        conn.commit()
        conn.close()
        return empty_db

    def test_exact_case_title_match(self, german_db):
        results = search_requirements("Überwachung", db_path=german_db)
        assert _ids(results) == ["R1", "R2"]
        assert [r.relevance for r in results] == [1.0, 0.5]

    def test_different_case_matches(self, german_db):
        assert _ids(search_requirements("ÜBERWACHUNG DER", db_path=german_db)) == ["R1"]
        assert _ids(search_requirements("überwachung", db_path=german_db)) == ["R1", "R2"]


class TestFilters:
    def test_standards_filter(self, ot_db):
        results = search_requirements("authentication", standards=["nist-800-53"], db_path=ot_db)
        assert _ids(results) == ["IA-2"]

    def test_empty_standards_list_means_all(self, ot_db):
        results = search_requirements("authentication", standards=[], db_path=ot_db)
        assert len(results) == 3

    def test_security_level_filter_exact(self, ot_db):
        assert _ids(search_requirements("authentication", security_level=3, db_path=ot_db)) == [
            "SR 1.1", "SR 1.1 RE 1",
        ]
        assert _ids(search_requirements("authentication", security_level=1, db_path=ot_db)) == ["SR 1.1"]

    def test_component_type_filter(self, ot_db):
        results = search_requirements("segment", component_type="network", db_path=ot_db)
        assert _ids(results) == ["SR 5.1"]

    def test_filters_combine(self, ot_db):
        results = search_requirements(
            "authentication", standards=["nist-800-53"], security_level=2, db_path=ot_db
        )
        assert results == []

    @pytest.mark.parametrize("level", [0, 5, True])
    def test_invalid_security_level_raises(self, ot_db, level):
        with pytest.raises(OTSecurityValidationError):
            search_requirements("authentication", security_level=level, db_path=ot_db)


class TestLimit:
    def test_limit_truncates(self, ot_db):
        results = search_requirements("authentication", limit=1, db_path=ot_db)
        assert _ids(results) == ["SR 1.1"]

    @pytest.mark.parametrize("limit", [None, 0, -3])
    def test_non_positive_limit_uses_default(self, ot_db, limit):
        assert len(search_requirements("authentication", limit=limit, db_path=ot_db)) == 3

    def test_limit_above_max_is_capped(self, ot_db):
        config = {"search": {"default_limit": 10, "max_limit": 2}}
        results = search_requirements("authentication", limit=50, db_path=ot_db, config=config)
        assert len(results) == 2


class TestResultShape:
    def test_standard_name_joined(self, ot_db):
        result = search_requirements("boundary", db_path=ot_db)[0]
        assert result.standard_name == "NIST SP 800-53 Rev 5"

    def test_to_dict_flattens_requirement(self, ot_db):
        data = search_requirements("boundary", db_path=ot_db)[0].to_dict()
        assert data["requirement_id"] == "SC-7"
        assert data["standard_id"] == "nist-800-53"
        assert data["relevance"] == 1.0
        assert data["snippet"] == "Boundary Protection"
        assert data["standard_name"] == "NIST SP 800-53 Rev 5"


class TestStoreFailure:
    def test_missing_store_degrades_to_empty(self, tmp_path):
        missing = tmp_path / "missing.db"
        assert search_requirements("authentication", db_path=missing) == []
        assert not missing.exists()

    def test_store_without_tables_degrades_to_empty(self, tmp_path, caplog):
        bare = tmp_path / "bare.db"
        sqlite3.connect(str(bare)).close()
        assert search_requirements("authentication", db_path=bare) == []
        assert "Error searching requirements" in caplog.text


class TestUnreadableConfig:
    """A broken config file degrades to default settings instead of raising."""

    @pytest.fixture
    def broken_config(self, monkeypatch, tmp_path):
        config = tmp_path / "broken.yaml"
        config.write_text("search: [unclosed\n", encoding="utf-8")
        monkeypatch.setenv("OT_MCP_CONFIG_PATH", str(config))
        return config

    def test_explicit_store_still_searched(self, broken_config, ot_db):
        results = search_requirements("authentication", db_path=ot_db)
        assert _ids(results) == ["SR 1.1", "SR 1.1 RE 1", "IA-2"]

    def test_store_from_config_degrades_to_empty(self, broken_config, caplog):
        assert search_requirements("authentication") == []
        assert "Error searching requirements" in caplog.text

    def test_validation_still_raises(self, broken_config, ot_db):
        with pytest.raises(OTSecurityValidationError):
            search_requirements("authentication", security_level=7, db_path=ot_db)
