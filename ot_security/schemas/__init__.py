#!/usr/bin/env python3
# CUI // SP-CTI
"""Typed records and result envelopes for the OT security store."""

from ot_security.schemas.standards import (
    Mapping,
    Requirement,
    SectorApplicability,
    SecurityLevel,
    Standard,
)
from ot_security.schemas.segmentation import Conduit, Zone, ZoneConduitFlow, ZoneConduitGuidance
from ot_security.schemas.threats import Mitigation, Technique, TechniqueDetail, TechniqueMitigation
from ot_security.schemas.results import (
    LevelRequirement,
    RelatedStandard,
    RequirementDetail,
    RequirementRationale,
    RequirementSearchResult,
    StandardSummary,
)

__all__ = [
    "Standard",
    "Requirement",
    "SecurityLevel",
    "Mapping",
    "SectorApplicability",
    "Zone",
    "Conduit",
    "ZoneConduitFlow",
    "ZoneConduitGuidance",
    "Technique",
    "Mitigation",
    "TechniqueMitigation",
    "TechniqueDetail",
    "RequirementSearchResult",
    "RequirementDetail",
    "LevelRequirement",
    "RelatedStandard",
    "RequirementRationale",
    "StandardSummary",
]
