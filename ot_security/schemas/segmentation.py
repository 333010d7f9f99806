#!/usr/bin/env python3
# CUI // SP-CTI
"""Zone, conduit and flow records for IEC 62443-3-2 network segmentation."""

from dataclasses import dataclass, field, asdict
from typing import List, Mapping as TMapping, Optional

from ot_security.schemas.standards import optional_int, row_value

DEFAULT_REFERENCE_ARCHITECTURE = "IEC 62443-3-2 Purdue Model"


@dataclass
class Zone:
    """Network-segmentation trust boundary (table ``zones``)."""

    id: int
    name: str
    purdue_level: Optional[int] = None
    security_level_target: Optional[int] = None
    description: Optional[str] = None
    iec_reference: Optional[str] = None
    typical_assets: Optional[str] = None

    @classmethod
    def from_row(cls, row: TMapping) -> "Zone":
        return cls(
            id=int(row_value(row, "id")),
            name=row_value(row, "name"),
            purdue_level=optional_int(row_value(row, "purdue_level")),
            security_level_target=optional_int(row_value(row, "security_level_target")),
            description=row_value(row, "description"),
            iec_reference=row_value(row, "iec_reference"),
            typical_assets=row_value(row, "typical_assets"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Conduit:
    """Class of inter-zone connection (table ``conduits``)."""

    id: int
    name: str
    conduit_type: str
    security_requirements: Optional[str] = None
    description: Optional[str] = None
    iec_reference: Optional[str] = None
    minimum_security_level: Optional[int] = None

    @classmethod
    def from_row(cls, row: TMapping) -> "Conduit":
        return cls(
            id=int(row_value(row, "id")),
            name=row_value(row, "name"),
            conduit_type=row_value(row, "conduit_type"),
            security_requirements=row_value(row, "security_requirements"),
            description=row_value(row, "description"),
            iec_reference=row_value(row, "iec_reference"),
            minimum_security_level=optional_int(row_value(row, "minimum_security_level")),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ZoneConduitFlow:
    """One data flow between two zones via a conduit, with joined names."""

    id: int
    source_zone_id: int
    target_zone_id: int
    conduit_id: int
    source_zone_name: Optional[str] = None
    target_zone_name: Optional[str] = None
    conduit_name: Optional[str] = None
    data_flow_description: Optional[str] = None
    security_level_requirement: Optional[int] = None
    bidirectional: bool = False

    @classmethod
    def from_row(cls, row: TMapping) -> "ZoneConduitFlow":
        return cls(
            id=int(row_value(row, "id")),
            source_zone_id=int(row_value(row, "source_zone_id")),
            target_zone_id=int(row_value(row, "target_zone_id")),
            conduit_id=int(row_value(row, "conduit_id")),
            source_zone_name=row_value(row, "source_zone_name"),
            target_zone_name=row_value(row, "target_zone_name"),
            conduit_name=row_value(row, "conduit_name"),
            data_flow_description=row_value(row, "data_flow_description"),
            security_level_requirement=optional_int(row_value(row, "security_level_requirement")),
            bidirectional=bool(row_value(row, "bidirectional", False)),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ZoneConduitGuidance:
    """Filtered zones, all conduits, the flows between them and rendered guidance."""

    guidance: str
    zones: List[Zone] = field(default_factory=list)
    conduits: List[Conduit] = field(default_factory=list)
    flows: List[ZoneConduitFlow] = field(default_factory=list)
    reference_architecture: str = DEFAULT_REFERENCE_ARCHITECTURE

    def to_dict(self) -> dict:
        return {
            "zones": [z.to_dict() for z in self.zones],
            "conduits": [c.to_dict() for c in self.conduits],
            "flows": [f.to_dict() for f in self.flows],
            "reference_architecture": self.reference_architecture,
            "guidance": self.guidance,
        }
