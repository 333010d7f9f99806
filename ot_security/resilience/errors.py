#!/usr/bin/env python3
# CUI // SP-CTI
"""OT Security: Structured Exception Hierarchy.

Three outcome classes are distinguished by every query operation:

    not-found / empty   -> returned as None or [] (never raised)
    validation failure  -> OTSecurityValidationError (raised to the caller)
    store failure       -> StoreError / sqlite3.Error (logged, then degraded)

Usage:
    from ot_security.resilience.errors import OTSecurityValidationError

    raise OTSecurityValidationError("Security level must be between 1 and 4",
                                    field="security_level")
"""


class OTSecurityError(Exception):
    """Base exception for all OT security engine errors.

    Attributes:
        service: Name of the component that raised the error (e.g. "store").
        retryable: Whether the caller should retry the operation.
    """

    def __init__(self, message: str, service: str = "", retryable: bool = False):
        super().__init__(message)
        self.service = service
        self.retryable = retryable


class OTSecurityValidationError(OTSecurityError):
    """Caller-supplied argument outside its documented domain.

    This is the only error class a query operation lets escape.

    Attributes:
        field: Name of the offending argument (e.g. "security_level").
    """

    def __init__(self, message: str, field: str = ""):
        super().__init__(message, service="validation", retryable=False)
        self.field = field


class StoreError(OTSecurityError):
    """Fault in the read path (closed handle, corruption, missing tables).

    Query operations log this and degrade to their empty result.

    Attributes:
        operation: Name of the operation that hit the fault.
    """

    def __init__(self, message: str, operation: str = ""):
        super().__init__(message, service="store", retryable=False)
        self.operation = operation


class ConfigurationError(OTSecurityError):
    """Configuration error: missing or invalid configuration."""

    def __init__(self, message: str, config_key: str = ""):
        super().__init__(message, service="config", retryable=False)
        self.config_key = config_key
