#!/usr/bin/env python3
# CUI // SP-CTI
"""MITRE ATT&CK for ICS technique and mitigation records."""

import json
import logging
from dataclasses import dataclass, field, asdict
from typing import Any, List, Mapping as TMapping, Optional

from ot_security.schemas.standards import Requirement, row_value

logger = logging.getLogger("ot_security.schemas.threats")


def decode_string_list(raw: Any, field_name: str = "", owner: str = "") -> Optional[List[str]]:
    """Decode a JSON-encoded ordered string list column.

    Returns None for NULL columns and for malformed encodings; the fault is
    logged and contained to this one field.
    """
    if raw is None or raw == "":
        return None
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as exc:
        logger.warning("Malformed %s encoding on %s: %s", field_name or "list", owner or "?", exc)
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        logger.warning("%s on %s is not a list of strings", field_name or "list", owner or "?")
        return None
    return value


@dataclass
class Technique:
    """Adversary technique (table ``mitre_ics_techniques``)."""

    technique_id: str
    tactic: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    platforms: Optional[List[str]] = None
    data_sources: Optional[List[str]] = None

    @classmethod
    def from_row(cls, row: TMapping) -> "Technique":
        technique_id = row_value(row, "technique_id")
        return cls(
            technique_id=technique_id,
            tactic=row_value(row, "tactic"),
            name=row_value(row, "name"),
            description=row_value(row, "description"),
            platforms=decode_string_list(row_value(row, "platforms"), "platforms", technique_id),
            data_sources=decode_string_list(
                row_value(row, "data_sources"), "data_sources", technique_id
            ),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Mitigation:
    """Countermeasure (table ``mitre_ics_mitigations``)."""

    mitigation_id: str
    name: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_row(cls, row: TMapping) -> "Mitigation":
        return cls(
            mitigation_id=row_value(row, "mitigation_id"),
            name=row_value(row, "name"),
            description=row_value(row, "description"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TechniqueMitigation:
    """Technique/mitigation join with the optional primary requirement link."""

    id: int
    technique_id: str
    mitigation_id: str
    ot_requirement_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: TMapping) -> "TechniqueMitigation":
        return cls(
            id=int(row_value(row, "id")),
            technique_id=row_value(row, "technique_id"),
            mitigation_id=row_value(row, "mitigation_id"),
            ot_requirement_id=row_value(row, "ot_requirement_id"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TechniqueDetail:
    """A technique with its mitigations and the requirements they link to."""

    technique: Technique
    mitigations: List[Mitigation] = field(default_factory=list)
    mapped_requirements: List[Requirement] = field(default_factory=list)

    def to_dict(self) -> dict:
        result = self.technique.to_dict()
        result["mitigations"] = [m.to_dict() for m in self.mitigations]
        result["mapped_requirements"] = [r.to_dict() for r in self.mapped_requirements]
        return result
