# [TEMPLATE: CUI // SP-CTI]
"""Step definitions for OT security retrieval and mapping BDD scenarios."""

import sqlite3

from behave import given, then, when

from ot_security.resilience.errors import OTSecurityValidationError
from ot_security.standards.rationale import get_requirement_rationale
from ot_security.standards.requirement_resolver import get_requirement
from ot_security.standards.search import search_requirements
from ot_security.standards.security_level_mapper import map_security_level_requirements


def _execute(context, sql, params):
    conn = sqlite3.connect(context.db_path)
    try:
        cur = conn.execute(sql, params)
        conn.commit()
        return cur.lastrowid
    finally:
        conn.close()


def _split(text):
    return [part.strip() for part in text.split(",") if part.strip()]


@given('the standard "{std_id}" named "{name}"')
def step_standard(context, std_id, name):
    _execute(context, "INSERT INTO ot_standards (id, name) VALUES (?, ?)", (std_id, name))


@given('the requirements')
@given('the requirements:')
def step_requirements(context):
    """Insert each table row as a requirement with its security levels."""
    for row in context.table:
        db_id = _execute(
            context,
            "INSERT INTO ot_requirements (standard_id, requirement_id, parent_requirement_id, "
            "title, rationale) VALUES (?, ?, ?, ?, ?)",
            (
                row["standard"],
                row["requirement_id"],
                row["requirement_id"].rsplit(" RE ", 1)[0] if " RE " in row["requirement_id"] else None,
                row["title"],
                row["rationale"] or None,
            ),
        )
        for level in _split(row["levels"]):
            _execute(
                context,
                "INSERT INTO security_levels (requirement_db_id, security_level) VALUES (?, ?)",
                (db_id, int(level)),
            )


@given('a "{mapping_type}" mapping from "{src_std}" "{src_req}" to "{tgt_std}" "{tgt_req}"')
def step_mapping(context, mapping_type, src_std, src_req, tgt_std, tgt_req):
    _execute(
        context,
        "INSERT INTO ot_mappings (source_standard, source_requirement, target_standard, "
        "target_requirement, mapping_type) VALUES (?, ?, ?, ?, ?)",
        (src_std, src_req, tgt_std, tgt_req, mapping_type),
    )


@when('I search for "{query}"')
def step_search(context, query):
    context.result = search_requirements(query, db_path=context.db_path)


@when('I look up "{requirement_id}" in "{standard}" without mappings')
def step_lookup_no_mappings(context, requirement_id, standard):
    context.result = get_requirement(requirement_id, standard, include_mappings=False,
                                     db_path=context.db_path)


@when('I look up "{requirement_id}" in "{standard}"')
def step_lookup(context, requirement_id, standard):
    context.result = get_requirement(requirement_id, standard, db_path=context.db_path)


@when('I ask for the rationale of "{requirement_id}" in "{standard}"')
def step_rationale(context, requirement_id, standard):
    context.result = get_requirement_rationale(requirement_id, standard, db_path=context.db_path)


@when('I map security level {level:d} without enhancements')
def step_map_no_enhancements(context, level):
    context.result = map_security_level_requirements(level, include_enhancements=False,
                                                     db_path=context.db_path)


@when('I map security level {level:d}')
def step_map(context, level):
    try:
        context.result = map_security_level_requirements(level, db_path=context.db_path)
    except OTSecurityValidationError as exc:
        context.error = exc


@then('the results are "{expected}"')
def step_results(context, expected):
    actual = [r.requirement.requirement_id for r in context.result]
    assert actual == _split(expected), f"Got {actual}"


@then('the relevance scores are "{expected}"')
def step_relevance(context, expected):
    actual = [r.relevance for r in context.result]
    assert actual == [float(x) for x in _split(expected)], f"Got {actual}"


@then('there are no results')
def step_no_results(context):
    assert context.result == [], f"Got {context.result}"


@then('the requirement has {count:d} mappings')
def step_mapping_count(context, count):
    assert context.result is not None, "Requirement not found"
    assert len(context.result.mappings) == count, f"Got {len(context.result.mappings)}"


@then('the requirement is not found')
def step_not_found(context):
    assert context.result is None


@then('the related standards are "{expected}"')
def step_related(context, expected):
    actual = [f"{r.standard} {r.requirement_id}" for r in context.result.related_standards]
    assert actual == _split(expected), f"Got {actual}"


@then('"{requirement_id}" carries {count:d} security levels')
def step_level_count(context, requirement_id, count):
    match = [r for r in context.result if r.requirement.requirement_id == requirement_id]
    assert match, f"{requirement_id} not in results"
    assert len(match[0].security_levels) == count


@then('a validation error mentions "{text}"')
def step_validation_error(context, text):
    assert context.error is not None, "No validation error raised"
    assert text in str(context.error)
