#!/usr/bin/env python3
# CUI // SP-CTI
"""OT Security Resilience Package: structured errors for the query engine."""

from ot_security.resilience.errors import (  # noqa: F401
    ConfigurationError,
    OTSecurityError,
    OTSecurityValidationError,
    StoreError,
)
