#!/usr/bin/env python3
# CUI // SP-CTI
"""Tests for ot_security.resilience.errors: structured exception hierarchy."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from ot_security.resilience import (
    ConfigurationError,
    OTSecurityError,
    OTSecurityValidationError,
    StoreError,
)


class TestOTSecurityError:
    def test_message_and_defaults(self):
        err = OTSecurityError("something broke")
        assert str(err) == "something broke"
        assert err.service == ""
        assert err.retryable is False

    def test_service_attribute(self):
        assert OTSecurityError("fail", service="store").service == "store"


class TestSubclasses:
    @pytest.mark.parametrize("cls,service", [
        (OTSecurityValidationError, "validation"),
        (StoreError, "store"),
        (ConfigurationError, "config"),
    ])
    def test_inherit_base_and_set_service(self, cls, service):
        err = cls("boom")
        assert isinstance(err, OTSecurityError)
        assert err.service == service
        assert err.retryable is False

    def test_validation_error_field(self):
        err = OTSecurityValidationError("bad level", field="security_level")
        assert err.field == "security_level"

    def test_store_error_operation(self):
        err = StoreError("closed", operation="search_requirements")
        assert err.operation == "search_requirements"

    def test_configuration_error_key(self):
        assert ConfigurationError("bad", config_key="search.max_limit").config_key == "search.max_limit"

    def test_catchable_as_base(self):
        with pytest.raises(OTSecurityError):
            raise StoreError("x")
