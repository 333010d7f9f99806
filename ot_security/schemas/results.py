#!/usr/bin/env python3
# CUI // SP-CTI
"""Result envelopes returned by the query operations.

Envelopes that "extend" a requirement keep the typed record in a
``requirement`` field and flatten it in ``to_dict()`` so the tool layer emits
the same payload shape as a joined row.
"""

from dataclasses import dataclass, field, asdict
from typing import List, Optional

from ot_security.schemas.standards import (
    Mapping,
    Requirement,
    SectorApplicability,
    SecurityLevel,
    Standard,
)


@dataclass
class RequirementSearchResult:
    """A search hit: the requirement plus relevance, snippet and standard name."""

    requirement: Requirement
    relevance: float
    snippet: str
    standard_name: str

    def to_dict(self) -> dict:
        result = self.requirement.to_dict()
        result.update({
            "snippet": self.snippet,
            "relevance": self.relevance,
            "standard_name": self.standard_name,
        })
        return result


@dataclass
class RequirementDetail:
    """A requirement joined with its standard, levels and cross-mappings."""

    requirement: Requirement
    standard: Standard
    security_levels: List[SecurityLevel] = field(default_factory=list)
    mappings: List[Mapping] = field(default_factory=list)

    def to_dict(self) -> dict:
        result = self.requirement.to_dict()
        result.update({
            "standard": self.standard.to_dict(),
            "security_levels": [sl.to_dict() for sl in self.security_levels],
            "mappings": [m.to_dict() for m in self.mappings],
        })
        return result


@dataclass
class LevelRequirement:
    """A requirement applicable at a target level, with all of its level rows."""

    requirement: Requirement
    security_levels: List[SecurityLevel] = field(default_factory=list)

    def to_dict(self) -> dict:
        result = self.requirement.to_dict()
        result["security_levels"] = [sl.to_dict() for sl in self.security_levels]
        return result


@dataclass
class RelatedStandard:
    """The far side of a mapping, read from the perspective of one requirement.

    ``this_side`` records whether the queried requirement was the mapping's
    "source" or "target".
    """

    standard: str
    requirement_id: str
    mapping_type: str
    confidence: Optional[float]
    this_side: str
    notes: Optional[str] = None

    @classmethod
    def from_mapping(cls, mapping: Mapping, standard: str, requirement_id: str) -> "RelatedStandard":
        is_source = mapping.touches(standard, requirement_id) == "source"
        return cls(
            standard=mapping.target_standard if is_source else mapping.source_standard,
            requirement_id=mapping.target_requirement if is_source else mapping.source_requirement,
            mapping_type=mapping.mapping_type,
            confidence=mapping.confidence,
            this_side="source" if is_source else "target",
            notes=mapping.notes,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RequirementRationale:
    """Rationale, levels, regulatory context and related standards for one requirement."""

    requirement: Requirement
    standard: Standard
    rationale: Optional[str]
    security_levels: List[SecurityLevel] = field(default_factory=list)
    regulatory_context: List[SectorApplicability] = field(default_factory=list)
    related_standards: List[RelatedStandard] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "requirement": self.requirement.to_dict(),
            "standard": self.standard.to_dict(),
            "rationale": self.rationale,
            "security_levels": [sl.to_dict() for sl in self.security_levels],
            "regulatory_context": [sa.to_dict() for sa in self.regulatory_context],
            "related_standards": [rs.to_dict() for rs in self.related_standards],
        }


@dataclass
class StandardSummary:
    """A standard with the number of items it contributes to the store."""

    standard: Standard
    requirement_count: int = 0

    def to_dict(self) -> dict:
        result = self.standard.to_dict()
        result["requirement_count"] = self.requirement_count
        return result
