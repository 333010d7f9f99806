#!/usr/bin/env python3
# CUI // SP-CTI
"""Standard, requirement, security-level, mapping and sector records.

Each record maps one raw ``sqlite3.Row`` (or dict) to a typed dataclass via
``from_row``. Nullable columns stay ``None``; columns missing from a partial
SELECT fall back to the field default.
"""

from dataclasses import dataclass, asdict
from typing import Any, Mapping as TMapping, Optional

STANDARD_STATUSES = ("current", "superseded")
COMPONENT_TYPES = ("host", "network", "embedded", "application")
SL_TYPES = ("SL-T", "SL-C", "SL-A")
MAPPING_TYPES = ("exact_match", "partial", "related", "supersedes", "broader", "narrower")
APPLICABILITY_LEVELS = ("mandatory", "recommended", "optional", "not_applicable")


def row_value(row: Any, key: str, default: Any = None) -> Any:
    """Read a column from a sqlite3.Row or dict, tolerating absent columns."""
    if row is None:
        return default
    keys = row.keys()
    if key not in keys:
        return default
    return row[key]


def optional_int(value: Any) -> Optional[int]:
    """Coerce a nullable numeric column to int."""
    if value is None:
        return None
    return int(value)


def optional_float(value: Any) -> Optional[float]:
    """Coerce a nullable numeric column to float."""
    if value is None:
        return None
    return float(value)


@dataclass
class Standard:
    """One published reference document (table ``ot_standards``)."""

    id: str
    name: str
    version: Optional[str] = None
    published_date: Optional[str] = None
    url: Optional[str] = None
    status: Optional[str] = None  # current, superseded
    notes: Optional[str] = None

    @classmethod
    def from_row(cls, row: TMapping) -> "Standard":
        return cls(
            id=row_value(row, "id"),
            name=row_value(row, "name"),
            version=row_value(row, "version"),
            published_date=row_value(row, "published_date"),
            url=row_value(row, "url"),
            status=row_value(row, "status"),
            notes=row_value(row, "notes"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Requirement:
    """One control/requirement/guidance item (table ``ot_requirements``).

    ``parent_requirement_id`` is a soft reference to another requirement in the
    same standard; it is never enforced as a foreign key.
    """

    id: int
    standard_id: str
    requirement_id: str
    parent_requirement_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    rationale: Optional[str] = None
    component_type: Optional[str] = None
    purdue_level: Optional[int] = None

    @property
    def is_enhancement(self) -> bool:
        return self.parent_requirement_id is not None

    @classmethod
    def from_row(cls, row: TMapping) -> "Requirement":
        return cls(
            id=int(row_value(row, "id")),
            standard_id=row_value(row, "standard_id"),
            requirement_id=row_value(row, "requirement_id"),
            parent_requirement_id=row_value(row, "parent_requirement_id"),
            title=row_value(row, "title"),
            description=row_value(row, "description"),
            rationale=row_value(row, "rationale"),
            component_type=row_value(row, "component_type"),
            purdue_level=optional_int(row_value(row, "purdue_level")),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SecurityLevel:
    """A (requirement, level) assignment (table ``security_levels``)."""

    requirement_db_id: int
    security_level: int  # 1-4
    id: Optional[int] = None
    sl_type: Optional[str] = None  # SL-T, SL-C, SL-A
    capability_level: Optional[int] = None
    notes: Optional[str] = None

    @classmethod
    def from_row(cls, row: TMapping) -> "SecurityLevel":
        return cls(
            id=optional_int(row_value(row, "id")),
            requirement_db_id=int(row_value(row, "requirement_db_id")),
            security_level=int(row_value(row, "security_level")),
            sl_type=row_value(row, "sl_type"),
            capability_level=optional_int(row_value(row, "capability_level")),
            notes=row_value(row, "notes"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Mapping:
    """Directed, typed cross-reference between two requirements (``ot_mappings``)."""

    id: int
    source_standard: str
    source_requirement: str
    target_standard: str
    target_requirement: str
    mapping_type: str
    confidence: Optional[float] = None
    notes: Optional[str] = None
    created_date: Optional[str] = None

    def touches(self, standard: str, requirement_id: str) -> str:
        """Return "source", "target" or "" for the side matching the pair."""
        if self.source_standard == standard and self.source_requirement == requirement_id:
            return "source"
        if self.target_standard == standard and self.target_requirement == requirement_id:
            return "target"
        return ""

    @classmethod
    def from_row(cls, row: TMapping) -> "Mapping":
        return cls(
            id=int(row_value(row, "id")),
            source_standard=row_value(row, "source_standard"),
            source_requirement=row_value(row, "source_requirement"),
            target_standard=row_value(row, "target_standard"),
            target_requirement=row_value(row, "target_requirement"),
            mapping_type=row_value(row, "mapping_type"),
            confidence=optional_float(row_value(row, "confidence")),
            notes=row_value(row, "notes"),
            created_date=row_value(row, "created_date"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SectorApplicability:
    """Regulatory context row (table ``sector_applicability``)."""

    id: int
    sector: str
    jurisdiction: str
    standard: str
    applicability: str  # mandatory, recommended, optional, not_applicable
    threshold: Optional[str] = None
    regulatory_driver: Optional[str] = None
    effective_date: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_row(cls, row: TMapping) -> "SectorApplicability":
        return cls(
            id=int(row_value(row, "id")),
            sector=row_value(row, "sector"),
            jurisdiction=row_value(row, "jurisdiction"),
            standard=row_value(row, "standard"),
            applicability=row_value(row, "applicability"),
            threshold=row_value(row, "threshold"),
            regulatory_driver=row_value(row, "regulatory_driver"),
            effective_date=row_value(row, "effective_date"),
            notes=row_value(row, "notes"),
        )

    def to_dict(self) -> dict:
        return asdict(self)
