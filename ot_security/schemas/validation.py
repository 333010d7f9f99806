#!/usr/bin/env python3
# CUI // SP-CTI
"""Argument validation for the query operations.

Validators return the normalised value or raise OTSecurityValidationError.
Optional arguments pass ``None`` through untouched.
"""

from typing import Iterable, List, Optional

from ot_security.resilience.errors import OTSecurityValidationError

SECURITY_LEVELS = (1, 2, 3, 4)
PURDUE_LEVELS = (0, 1, 2, 3, 4, 5)


def _require_int(value, field: str) -> int:
    # bool is an int subclass; True must not pass as level 1
    if isinstance(value, bool) or not isinstance(value, int):
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise OTSecurityValidationError(
            f"{field} must be an integer, got {type(value).__name__}", field=field
        )
    return value


def validate_security_level(value, field: str = "security_level") -> int:
    """Require an integer security level in 1-4 inclusive."""
    level = _require_int(value, field)
    if level not in SECURITY_LEVELS:
        raise OTSecurityValidationError(
            f"Security level must be between 1 and 4 (got {level})", field=field
        )
    return level


def validate_optional_security_level(value, field: str = "security_level") -> Optional[int]:
    if value is None:
        return None
    return validate_security_level(value, field=field)


def validate_optional_purdue_level(value, field: str = "purdue_level") -> Optional[int]:
    """Require an integer Purdue level in 0-5 inclusive when given."""
    if value is None:
        return None
    level = _require_int(value, field)
    if level not in PURDUE_LEVELS:
        raise OTSecurityValidationError(
            f"Purdue level must be between 0 and 5 (got {level})", field=field
        )
    return level


def validate_limit(value, default: int = 10, maximum: int = 100) -> int:
    """Normalise a result limit: missing or < 1 means default, capped at maximum."""
    if value is None:
        return default
    limit = _require_int(value, "limit")
    if limit < 1:
        return default
    return min(limit, maximum)


def validate_version(value) -> Optional[str]:
    """Shape-check the version argument. The value itself is not applied."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise OTSecurityValidationError(
            f"version must be a string, got {type(value).__name__}", field="version"
        )
    return value.strip() or None


def validate_standard_list(value, field: str = "standards") -> List[str]:
    """Normalise an optional list of standard ids, dropping blanks."""
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise OTSecurityValidationError(f"{field} must be a list of strings", field=field)
    result = []
    for item in value:
        if not isinstance(item, str):
            raise OTSecurityValidationError(f"{field} must be a list of strings", field=field)
        if item.strip():
            result.append(item.strip())
    return result


def is_blank(value) -> bool:
    """True for None, non-strings and whitespace-only strings."""
    return not isinstance(value, str) or not value.strip()
