# [TEMPLATE: CUI // SP-CTI]
"""Step definitions for zone/conduit guidance BDD scenarios."""

import sqlite3

from behave import given, then, when

from ot_security.standards.zone_guidance import get_zone_conduit_guidance


def _insert(context, sql, params):
    conn = sqlite3.connect(context.db_path)
    try:
        conn.execute(sql, params)
        conn.commit()
    finally:
        conn.close()


@given('the zones')
@given('the zones:')
def step_zones(context):
    """Insert each table row as a zone."""
    for row in context.table:
        _insert(
            context,
            "INSERT INTO zones (id, name, purdue_level, security_level_target) VALUES (?, ?, ?, ?)",
            (int(row["id"]), row["name"], int(row["purdue_level"]),
             int(row["security_level_target"])),
        )
    context.conduit_id = None


@given('a conduit "{name}" with minimum security level {level:d}')
def step_conduit(context, name, level):
    _insert(
        context,
        "INSERT INTO conduits (id, name, conduit_type, minimum_security_level) "
        "VALUES (1, ?, 'firewall', ?)",
        (name, level),
    )
    context.conduit_id = 1


@given('a flow from zone {source:d} to zone {target:d}')
def step_flow(context, source, target):
    _insert(
        context,
        "INSERT INTO zone_conduit_flows (source_zone_id, target_zone_id, conduit_id) "
        "VALUES (?, ?, ?)",
        (source, target, context.conduit_id),
    )


@when('I request guidance for Purdue level {level:d}')
def step_guidance_purdue(context, level):
    context.result = get_zone_conduit_guidance(purdue_level=level, db_path=context.db_path)


@when('I request guidance without filters')
def step_guidance_all(context):
    context.result = get_zone_conduit_guidance(db_path=context.db_path)


@then('the guidance zones are "{expected}"')
def step_guidance_zones(context, expected):
    actual = [z.name for z in context.result.zones]
    wanted = [part.strip() for part in expected.split(",") if part.strip()]
    assert actual == wanted, f"Got {actual}"


@then('the guidance lists {count:d} flows')
def step_flow_count(context, count):
    assert len(context.result.flows) == count, f"Got {len(context.result.flows)}"


@then('the guidance lists {count:d} conduits')
def step_conduit_count(context, count):
    assert len(context.result.conduits) == count, f"Got {len(context.result.conduits)}"


@then('the guidance text contains "{text}"')
def step_guidance_text(context, text):
    assert text in context.result.guidance


@then('there are no guidance zones')
def step_no_zones(context):
    assert context.result.zones == [], f"Got {context.result.zones}"
