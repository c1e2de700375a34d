"""Tests for the builder session's operation boundaries and drop handling."""

from __future__ import annotations

import typing as typ

import pytest

from page_composer._constants import PLACEHOLDER_ID
from page_composer.editor_bridge import EditorBridge, HeadlessEditor
from page_composer.layout import PageLayout
from page_composer.session import BuilderSession, Notification, NotificationLevel

if typ.TYPE_CHECKING:
    from page_composer.store import RemoteStore

    from .conftest import FakeStoreSession


@pytest.fixture
def notifications() -> list[Notification]:
    return []


@pytest.fixture
def session(
    store: RemoteStore,
    fake_session: FakeStoreSession,
    notifications: list[Notification],
) -> BuilderSession:
    for key in ("hero", "pricing", "footer"):
        fake_session.add_section(key, css=f".{key}{{display:block}}")
    builder = BuilderSession(store, notify=notifications.append)
    assert builder.start()
    return builder


def _keys(session: BuilderSession) -> list[str]:
    return [placed.section.component_key for placed in session.placed_sections]


def test_drop_onto_placeholder_appends(session: BuilderSession) -> None:
    hero, pricing, _ = session.catalog.sections
    session.drop_catalog_section(hero.id, PLACEHOLDER_ID)
    session.drop_catalog_section(pricing.id, PLACEHOLDER_ID)
    assert _keys(session) == ["hero", "pricing"]
    assert session.is_dirty


def test_drop_onto_item_inserts_after_it(session: BuilderSession) -> None:
    hero, pricing, footer = session.catalog.sections
    first = session.drop_catalog_section(hero.id)
    session.drop_catalog_section(footer.id)
    assert first is not None
    session.drop_catalog_section(pricing.id, first.local_order_id)
    assert _keys(session) == ["hero", "pricing", "footer"]


def test_drop_existing_reorders_and_ignores_placeholder(session: BuilderSession) -> None:
    hero, pricing, _ = session.catalog.sections
    a = session.drop_catalog_section(hero.id)
    b = session.drop_catalog_section(pricing.id)
    assert a is not None and b is not None
    assert session.drop_existing(b.local_order_id, PLACEHOLDER_ID) is False
    assert session.drop_existing(b.local_order_id, a.local_order_id) is True
    assert _keys(session) == ["pricing", "hero"]


def test_unknown_catalog_section_is_ignored(session: BuilderSession) -> None:
    assert session.drop_catalog_section(999) is None
    assert session.placed_sections == ()


def test_save_success_notifies_once_and_refreshes_catalog(
    session: BuilderSession,
    fake_session: FakeStoreSession,
    notifications: list[Notification],
) -> None:
    for section in session.catalog.sections:
        session.drop_catalog_section(section.id)
    session.metadata.title = "Home"
    session.metadata.slug = "home"
    fake_session.add_section("late-arrival")

    result = session.save()

    assert result is not None
    assert notifications == [
        Notification(NotificationLevel.SUCCESS, "Page created successfully!")
    ]
    assert session.catalog.by_key("late-arrival") is not None
    assert [page.slug for page in session.pages] == ["home"]
    assert session.is_dirty is False


def test_validation_failure_becomes_single_error_notification(
    session: BuilderSession,
    fake_session: FakeStoreSession,
    notifications: list[Notification],
) -> None:
    calls_before = len(fake_session.calls)
    assert session.save() is None
    assert len(notifications) == 1
    assert notifications[0].level is NotificationLevel.ERROR
    assert "title" in notifications[0].message
    assert len(fake_session.calls) == calls_before


def test_partial_save_reports_counts(
    session: BuilderSession,
    fake_session: FakeStoreSession,
    notifications: list[Notification],
) -> None:
    for section in session.catalog.sections:
        session.drop_catalog_section(section.id)
    session.metadata.title = "Home"
    session.metadata.slug = "home"
    fake_session.inject("POST", "page_sections", nth=3, status=503, body="timeout")

    assert session.save() is None
    assert len(notifications) == 1
    assert "Saved 2 of 3 sections" in notifications[0].message
    assert session.metadata.page_id is not None


def test_load_page_replaces_composition(
    session: BuilderSession,
    fake_session: FakeStoreSession,
    notifications: list[Notification],
) -> None:
    page = fake_session.add("pages", title="About", slug="about", meta_description="")
    footer = session.catalog.by_key("footer")
    assert footer is not None
    fake_session.add("page_sections", page_id=page["id"], section_id=footer.id, sort_order=1)
    fake_session.add("page_sections", page_id=page["id"], section_id=555, sort_order=2)
    session.drop_catalog_section(session.catalog.sections[0].id)

    loaded = session.load_page(page["id"])

    assert loaded is not None
    assert _keys(session) == ["footer"]
    assert session.metadata.page_id == page["id"]
    assert [note.level for note in notifications] == [NotificationLevel.WARNING]
    assert "555" in notifications[0].message


def test_malformed_foreign_link_does_not_escape_operations(
    session: BuilderSession,
    fake_session: FakeStoreSession,
    notifications: list[Notification],
) -> None:
    page = fake_session.add("pages", title="About", slug="about", meta_description="")
    hero = session.catalog.by_key("hero")
    assert hero is not None
    fake_session.add("page_sections", page_id=page["id"], section_id=hero.id, sort_order=1)
    fake_session.tables["page_sections"][500] = {
        "page_id": 777,
        "section_id": hero.id,
        "sort_order": 1,
    }

    assert session.load_page(page["id"]) is not None
    assert _keys(session) == ["hero"]
    assert notifications == []

    assert session.save() is not None
    assert [note.level for note in notifications] == [NotificationLevel.SUCCESS]
    assert session.delete_page(page["id"]) is True
    assert 500 in fake_session.tables["page_sections"], "foreign rows are untouched"


def test_delete_current_page_resets_session(
    session: BuilderSession, fake_session: FakeStoreSession
) -> None:
    page = fake_session.add("pages", title="About", slug="about", meta_description="")
    session.load_page(page["id"])
    assert session.delete_page(page["id"]) is True
    assert session.metadata.page_id is None
    assert session.pages == []


def test_apply_layout_reports_unknown_keys(
    session: BuilderSession, notifications: list[Notification]
) -> None:
    layout = PageLayout(title="Home", slug="home", section_keys=["hero", "nope"])
    assert session.apply_layout(layout) is False
    assert "nope" in notifications[0].message
    assert session.placed_sections == ()


def test_combined_css_uses_merge(session: BuilderSession) -> None:
    hero = session.catalog.by_key("hero")
    assert hero is not None
    session.drop_catalog_section(hero.id)
    session.drop_catalog_section(hero.id)
    assert session.combined_css == ".hero{display:block}"


def test_section_authoring_through_editor(
    store: RemoteStore,
    fake_session: FakeStoreSession,
    notifications: list[Notification],
) -> None:
    editor = HeadlessEditor()
    bridge = EditorBridge(lambda: editor)
    session = BuilderSession(store, notify=notifications.append, editor=bridge)
    bridge.mount()
    editor.edit(markup="<header>Top</header>", styles="header{height:4rem}")
    assert bridge.is_dirty

    section = session.save_section(name="Header", component_key="header")

    assert section is not None
    assert section.template_html == "<header>Top</header>"
    assert not bridge.is_dirty
    assert session.catalog.by_key("header") is not None
    assert notifications[-1].level is NotificationLevel.SUCCESS


def test_section_save_without_mounted_editor_fails(
    store: RemoteStore, notifications: list[Notification]
) -> None:
    session = BuilderSession(store, notify=notifications.append)
    assert session.save_section(name="Header", component_key="header") is None
    assert notifications[0].level is NotificationLevel.ERROR
