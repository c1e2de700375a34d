"""Behaviour tests for reopening stored pages using pytest-bdd.

The scenarios seed a page whose join records include a section that has since
been deleted, then check the session loads the remaining sections in stored
order and that a reorder followed by a save rewrites the page's links.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from page_composer.session import BuilderSession, Notification, NotificationLevel

if typ.TYPE_CHECKING:
    from page_composer.store import RemoteStore

    from ..conftest import FakeStoreSession

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "load_page.feature"
scenarios(FEATURE_FILE)

MISSING_SECTION_ID = 99

ScenarioState = dict[str, typ.Any]


def _split(names: str) -> list[str]:
    return [name.strip() for name in names.split(",") if name.strip()]


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Share mutable scenario data across pytest-bdd steps."""
    return {}


@given(
    parsers.parse(
        'a stored page "{slug}" linking sections "{keys}" and a missing section'
    )
)
def given_stored_page(
    slug: str,
    keys: str,
    fake_session: FakeStoreSession,
    store: RemoteStore,
    scenario_state: ScenarioState,
) -> None:
    """Seed a page whose second link points at a deleted section.

    Parameters
    ----------
    slug : str
        Slug (and title) of the seeded page.
    keys : str
        Comma-separated component keys of the sections that still exist.
    fake_session : FakeStoreSession
        In-memory store receiving the page, sections, and links.
    store : RemoteStore
        Client bound to ``fake_session``.
    scenario_state : ScenarioState
        Receives the session, its notifications, and the page id.
    """
    page = fake_session.add(
        "pages", title=slug.title(), slug=slug, meta_description=""
    )
    section_ids = [fake_session.add_section(key)["id"] for key in _split(keys)]
    section_ids.insert(1, MISSING_SECTION_ID)
    for position, section_id in enumerate(section_ids, start=1):
        fake_session.add(
            "page_sections",
            page_id=page["id"],
            section_id=section_id,
            sort_order=position,
        )

    notifications: list[Notification] = []
    session = BuilderSession(store, notify=notifications.append)
    assert session.start()
    scenario_state["session"] = session
    scenario_state["notifications"] = notifications
    scenario_state["page_id"] = page["id"]


@when("the page is loaded")
def when_page_loaded(scenario_state: ScenarioState) -> None:
    session = typ.cast("BuilderSession", scenario_state["session"])
    scenario_state["loaded"] = session.load_page(scenario_state["page_id"])


@when(parsers.parse("section {source:d} is moved in front of section {target:d}"))
def when_section_moved(source: int, target: int, scenario_state: ScenarioState) -> None:
    session = typ.cast("BuilderSession", scenario_state["session"])
    placed = session.placed_sections
    moved = session.drop_existing(
        placed[source - 1].local_order_id, placed[target - 1].local_order_id
    )
    assert moved


@when("the page is saved")
def when_page_saved(scenario_state: ScenarioState) -> None:
    session = typ.cast("BuilderSession", scenario_state["session"])
    scenario_state["result"] = session.save()


@then(parsers.parse('the composition holds sections "{keys}"'))
def then_composition_holds(keys: str, scenario_state: ScenarioState) -> None:
    session = typ.cast("BuilderSession", scenario_state["session"])
    assert scenario_state["loaded"] is not None, "a missing section must not fail the load"
    assert [p.section.component_key for p in session.placed_sections] == _split(keys)


@then(parsers.parse('a warning notification mentions "{text}"'))
def then_warning(text: str, scenario_state: ScenarioState) -> None:
    notifications = typ.cast("list[Notification]", scenario_state["notifications"])
    warnings = [n for n in notifications if n.level is NotificationLevel.WARNING]
    assert len(warnings) == 1
    assert text in warnings[0].message
    assert str(MISSING_SECTION_ID) in warnings[0].message


@then(parsers.parse('the stored links reference sections "{keys}"'))
def then_links_reference(
    keys: str, fake_session: FakeStoreSession, scenario_state: ScenarioState
) -> None:
    assert scenario_state["result"] is not None
    by_id = {
        record_id: record["component_key"]
        for record_id, record in fake_session.tables["sections"].items()
    }
    links = fake_session.links_for(scenario_state["page_id"])
    assert [by_id[link["section_id"]] for link in links] == _split(keys)
    assert fake_session.count("POST", "pages") == 0, "a loaded page is updated"
