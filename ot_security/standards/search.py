#!/usr/bin/env python3
# CUI // SP-CTI
"""Free-text search across OT security requirements.

Matches the query as a case-insensitive substring of a requirement's title,
description or rationale, scores each hit by the field it matched
(see relevance.py), and returns hits ordered by score descending then by
insertion order.

Filters are conjunctive:
    standards       - requirement.standard_id IN (...)
    security_level  - requirement has a security_levels row at exactly that level
    component_type  - exact match

An empty or whitespace-only query returns [] without touching the store.
Store faults are logged and degrade to [] as well.

Usage:
    python -m ot_security.standards.search --query "authentication"
    python -m ot_security.standards.search --query "firewall" --standards nist-800-82 --limit 5 --json
"""

import argparse
import json
import logging
import sqlite3
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from ot_security.compat.config_loader import get_setting, load_config  # noqa: E402
from ot_security.compat.db_utils import open_store  # noqa: E402
from ot_security.resilience.errors import ConfigurationError, StoreError  # noqa: E402
from ot_security.schemas.results import RequirementSearchResult  # noqa: E402
from ot_security.schemas.standards import Requirement  # noqa: E402
from ot_security.schemas.validation import (  # noqa: E402
    validate_limit,
    validate_optional_security_level,
    validate_standard_list,
)
from ot_security.standards.relevance import (  # noqa: E402
    calculate_relevance,
    extract_snippet,
)

logger = logging.getLogger("ot_security.standards.search")

# instr() keeps LIKE wildcards in the query literal. fold() is registered per
# connection so columns are case-folded the same way as the query.
_MATCH_SQL = """(
    instr(fold(r.title), ?) > 0 OR
    instr(fold(r.description), ?) > 0 OR
    instr(fold(r.rationale), ?) > 0
)"""

_SCORE_SQL = """CASE
    WHEN instr(fold(r.title), ?) > 0 THEN 1.0
    WHEN instr(fold(r.description), ?) > 0 THEN 0.7
    WHEN instr(fold(r.rationale), ?) > 0 THEN 0.5
    ELSE 0.3
END"""


def _fold(text):
    return (text or "").lower()


def _build_query(term, standards, security_level, component_type, limit):
    """Assemble the search SQL and its parameters."""
    sql = f"SELECT r.* FROM ot_requirements r WHERE {_MATCH_SQL}"
    params = [term, term, term]

    if standards:
        placeholders = ", ".join("?" for _ in standards)
        sql += f" AND r.standard_id IN ({placeholders})"
        params.extend(standards)

    if security_level is not None:
        sql += (
            " AND EXISTS (SELECT 1 FROM security_levels sl"
            " WHERE sl.requirement_db_id = r.id AND sl.security_level = ?)"
        )
        params.append(security_level)

    if component_type is not None:
        sql += " AND r.component_type = ?"
        params.append(component_type)

    sql += f" ORDER BY {_SCORE_SQL} DESC, r.id ASC LIMIT ?"
    params.extend([term, term, term, limit])
    return sql, params


def search_requirements(query, standards=None, security_level=None,
                        component_type=None, limit=None, db_path=None, config=None):
    """Search requirements by keyword.

    Args:
        query: Search text. Blank means no results.
        standards: Optional list of standard ids to restrict to.
        security_level: Optional level 1-4; requirement must carry that exact level.
        component_type: Optional exact component category.
        limit: Max results (default 10, capped at 100).
        db_path: Store override.
        config: Pre-loaded config dict (defaults to load_config()).

    Returns:
        List of RequirementSearchResult, best first.

    Raises:
        OTSecurityValidationError: security_level or limit outside their domain.
    """
    if not isinstance(query, str) or not query.strip():
        return []

    if config is None:
        try:
            config = load_config()
        except ConfigurationError as exc:
            logger.warning("Using default search settings: %s", exc)
            config = {}
    standards = validate_standard_list(standards)
    security_level = validate_optional_security_level(security_level)
    limit = validate_limit(
        limit,
        default=get_setting("search.default_limit", 10, config),
        maximum=get_setting("search.max_limit", 100, config),
    )
    snippet_length = get_setting("search.snippet_length", 150, config)
    before = get_setting("search.context_before", 50, config)
    after = get_setting("search.context_after", 100, config)

    term = query.lower()
    sql, params = _build_query(term, standards, security_level, component_type, limit)

    conn = None
    try:
        conn = open_store(db_path, operation="search_requirements")
        conn.create_function("fold", 1, _fold, deterministic=True)
        rows = conn.execute(sql, params).fetchall()
        standard_names = {
            row["id"]: row["name"]
            for row in conn.execute("SELECT id, name FROM ot_standards").fetchall()
        }
    except (sqlite3.Error, StoreError) as exc:
        logger.error("Error searching requirements for %r: %s", query, exc)
        return []
    finally:
        if conn is not None:
            conn.close()

    results = []
    for row in rows:
        requirement = Requirement.from_row(row)
        results.append(RequirementSearchResult(
            requirement=requirement,
            relevance=calculate_relevance(requirement, query),
            snippet=extract_snippet(requirement, query, snippet_length, before, after),
            standard_name=standard_names.get(requirement.standard_id) or requirement.standard_id,
        ))
    logger.debug("Search %r returned %d result(s)", query, len(results))
    return results


def format_result(result):
    """Format one search hit as a human-readable block."""
    req = result.requirement
    return "\n".join([
        f"[{result.relevance:.1f}] {req.standard_id} {req.requirement_id}: {req.title or ''}",
        f"    Standard: {result.standard_name}",
        f"    {result.snippet}",
    ])


def main():
    parser = argparse.ArgumentParser(description="Search OT security requirements by keyword")
    parser.add_argument("--query", required=True, help="Search text")
    parser.add_argument("--standards", nargs="*", default=None, help="Restrict to these standard ids")
    parser.add_argument("--security-level", type=int, default=None, help="Exact security level (1-4)")
    parser.add_argument("--component-type", default=None, help="Component category filter")
    parser.add_argument("--limit", type=int, default=None, help="Max results (default 10, max 100)")
    parser.add_argument("--db-path", type=Path, default=None, help="Database path")
    parser.add_argument("--json", action="store_true", help="Output in JSON format")
    args = parser.parse_args()

    results = search_requirements(
        args.query,
        standards=args.standards,
        security_level=args.security_level,
        component_type=args.component_type,
        limit=args.limit,
        db_path=args.db_path,
    )

    if args.json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
        return
    if not results:
        print(f"No requirements found matching '{args.query}'.", file=sys.stderr)
        sys.exit(1)
    print(f"Search results for '{args.query}': {len(results)} requirement(s)\n")
    for result in results:
        print(format_result(result))


if __name__ == "__main__":
    main()
