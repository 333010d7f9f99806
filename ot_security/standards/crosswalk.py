#!/usr/bin/env python3
# CUI // SP-CTI
"""Bidirectional cross-standard mapping lookup.

Mappings are stored once, in whichever direction ingestion recorded them.
Every lookup therefore unions the "is source" and "is target" matches in a
single query so a requirement's full neighbourhood is visible.

These helpers take an open connection and raise sqlite3.Error on store
faults; the calling operation owns logging and degradation.
"""

from ot_security.schemas.results import RelatedStandard
from ot_security.schemas.standards import Mapping, SecurityLevel

_MAPPINGS_SQL = """
    SELECT * FROM ot_mappings
    WHERE (source_standard = ? AND source_requirement = ?)
       OR (target_standard = ? AND target_requirement = ?)
"""


def find_mappings(conn, standard, requirement_id, by_confidence=False):
    """Return every Mapping where (standard, requirement_id) is source or target.

    Ordered by id, or by confidence descending (NULL last) when
    ``by_confidence`` is set.
    """
    order = "ORDER BY confidence IS NULL, confidence DESC, id ASC" if by_confidence else "ORDER BY id ASC"
    rows = conn.execute(
        f"{_MAPPINGS_SQL} {order}",
        (standard, requirement_id, standard, requirement_id),
    ).fetchall()
    return [Mapping.from_row(row) for row in rows]


def related_standards(mappings, standard, requirement_id):
    """Orient each mapping to its far side, relative to the given requirement."""
    return [RelatedStandard.from_mapping(m, standard, requirement_id) for m in mappings]


def find_security_levels(conn, requirement_db_id):
    """Return all SecurityLevel rows of one requirement, ascending by level."""
    rows = conn.execute(
        "SELECT * FROM security_levels WHERE requirement_db_id = ? "
        "ORDER BY security_level ASC, id ASC",
        (requirement_db_id,),
    ).fetchall()
    return [SecurityLevel.from_row(row) for row in rows]
