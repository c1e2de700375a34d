"""Builder session: the hosting view that wires catalog, model, and store.

A :class:`BuilderSession` owns everything an operator touches while composing
a page: the section catalog, the composition model, the page metadata, an
optional editor bridge, and the persistence coordinator. Every operation that
talks to the store (save, load, delete, section save) is an operation
boundary: :class:`~page_composer.errors.ComposerError` is caught there and
turned into exactly one :class:`Notification` for the operator.

Example
-------
>>> from page_composer.session import BuilderSession
>>> from page_composer.store import RemoteStore
>>> session = BuilderSession(RemoteStore(), notify=print)  # doctest: +SKIP
>>> session.start()  # doctest: +SKIP
>>> session.drop_catalog_section(session.catalog.sections[0].id)  # doctest: +SKIP
>>> session.metadata.title, session.metadata.slug = "Home", "home"  # doctest: +SKIP
>>> session.save()  # doctest: +SKIP
"""

from __future__ import annotations

import dataclasses as dc
import enum
import logging
import typing as typ

from .catalog import SectionCatalog
from .composition import CompositionModel
from .errors import ComposerError, StoreRequestError, ValidationError
from .layout import build_composition
from .models import PageMetadata, SectionDraft, same_id
from .persistence import PersistenceCoordinator
from .styles import merge_styles

if typ.TYPE_CHECKING:
    from .editor_bridge import EditorBridge
    from .layout import PageLayout
    from .models import PageRecord, PlacedSection, RecordId, Section
    from .persistence import LoadedPage, SaveResult
    from .store import RemoteStore

logger = logging.getLogger(__name__)


class NotificationLevel(enum.StrEnum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dc.dataclass(frozen=True, slots=True)
class Notification:
    """A single user-facing message produced at an operation boundary."""

    level: NotificationLevel
    message: str

    def __str__(self) -> str:
        return f"[{self.level}] {self.message}"


Notifier = typ.Callable[[Notification], None]


def _log_notification(notification: Notification) -> None:
    level = logging.INFO
    if notification.level is NotificationLevel.ERROR:
        level = logging.ERROR
    logger.log(level, "%s", notification.message)


class BuilderSession:
    """Coordinate one operator's editing session against the store."""

    def __init__(
        self,
        store: RemoteStore,
        *,
        notify: Notifier | None = None,
        editor: EditorBridge | None = None,
    ) -> None:
        self.store = store
        self.coordinator = PersistenceCoordinator(store)
        self.catalog = SectionCatalog()
        self.composition = CompositionModel()
        self.metadata = PageMetadata()
        self.pages: list[PageRecord] = []
        self.editor = editor
        self.is_dirty = False
        self._notify = notify or _log_notification

    def _emit(self, level: NotificationLevel, message: str) -> None:
        self._notify(Notification(level, message))

    def _fail(self, exc: ComposerError) -> None:
        self._emit(NotificationLevel.ERROR, str(exc))

    # catalog and page list

    def start(self) -> bool:
        """Load the catalog and page list; return False if either failed."""
        return self.refresh_catalog() and self.refresh_pages()

    def refresh_catalog(self) -> bool:
        try:
            self.catalog.refresh(self.store)
        except StoreRequestError as exc:
            self._emit(NotificationLevel.ERROR, f"Could not load sections: {exc}")
            return False
        return True

    def refresh_pages(self) -> bool:
        try:
            self.pages = self.store.list_pages()
        except StoreRequestError as exc:
            self._emit(NotificationLevel.ERROR, f"Could not load pages: {exc}")
            return False
        return True

    def search(self, term: str | None) -> list[Section]:
        return self.catalog.search(term)

    # composition editing

    @property
    def placed_sections(self) -> tuple[PlacedSection, ...]:
        return self.composition.list()

    @property
    def combined_css(self) -> str:
        return merge_styles(p.section.template_css for p in self.composition.list())

    @property
    def combined_html(self) -> str:
        return "\n".join(p.section.template_html for p in self.composition.list())

    def new_page(self) -> None:
        """Discard the current composition and start an unsaved page."""
        self.metadata = PageMetadata()
        self.composition.clear()
        self.is_dirty = False

    def drop_catalog_section(
        self, section_id: RecordId, target_id: str | None = None
    ) -> PlacedSection | None:
        """Place a catalog section at a drop target (placeholder means append)."""
        section = self.catalog.get(section_id)
        if section is None:
            logger.warning("Dropped unknown section %s; ignoring", section_id)
            return None
        anchor = self.composition.resolve_drop_anchor(target_id)
        placed = self.composition.insert_section(section, anchor)
        self.is_dirty = True
        return placed

    def drop_existing(self, local_order_id: str, target_id: str | None) -> bool:
        """Reorder a placed section in front of another placed section."""
        if target_id is None:
            return False
        moved = self.composition.move_existing(local_order_id, target_id)
        self.is_dirty = self.is_dirty or moved
        return moved

    def remove_section(self, local_order_id: str) -> bool:
        removed = self.composition.remove(local_order_id)
        self.is_dirty = self.is_dirty or removed
        return removed

    def apply_layout(self, layout: PageLayout) -> bool:
        """Replace metadata and composition with a layout file's contents."""
        try:
            build_composition(layout, self.catalog, self.composition)
        except ComposerError as exc:
            self._fail(exc)
            return False
        self.metadata = layout.to_metadata()
        self.is_dirty = True
        return True

    # persistence boundaries

    def save(self) -> SaveResult | None:
        """Save the page; notify once with the outcome."""
        try:
            result = self.coordinator.save(self.metadata, self.composition.list())
        except ComposerError as exc:
            self._fail(exc)
            return None
        self.is_dirty = False
        verb = "created" if result.created else "updated"
        self._emit(NotificationLevel.SUCCESS, f"Page {verb} successfully!")
        self._refresh_quietly()
        return result

    def load_page(self, page_id: RecordId) -> LoadedPage | None:
        """Replace the current composition with a stored page."""
        try:
            loaded = self.coordinator.load(page_id)
        except ComposerError as exc:
            self._fail(exc)
            return None
        self.metadata = loaded.page.to_metadata()
        self.composition.replace(loaded.sections)
        self.is_dirty = False
        if loaded.skipped:
            missing = ", ".join(str(link.section_id) for link in loaded.skipped)
            self._emit(
                NotificationLevel.WARNING,
                f"Loaded page without {len(loaded.skipped)} missing section(s): {missing}",
            )
        return loaded

    def delete_page(self, page_id: RecordId) -> bool:
        try:
            self.coordinator.delete_page(page_id)
        except ComposerError as exc:
            self._fail(exc)
            return False
        if same_id(self.metadata.page_id, page_id):
            self.new_page()
        self._emit(NotificationLevel.SUCCESS, f"Page {page_id} deleted.")
        self._refresh_quietly()
        return True

    # section authoring

    def edit_section(self, section_id: RecordId) -> Section | None:
        """Fetch a section and load it into the mounted editor."""
        try:
            if self.editor is None or not self.editor.is_mounted:
                raise ValidationError(["The section editor is not mounted"])
            section = self.store.get_section(section_id)
        except ComposerError as exc:
            self._fail(exc)
            return None
        self.editor.load_section(section)
        return section

    def save_section(
        self,
        *,
        name: str,
        component_key: str,
        thumbnail_url: str | None = None,
        section_id: RecordId | None = None,
    ) -> Section | None:
        """Persist the editor content together with the section metadata."""
        try:
            if self.editor is None or not self.editor.is_mounted:
                raise ValidationError(["The section editor is not mounted"])
            content = self.editor.snapshot()
            draft = SectionDraft(
                name=name,
                component_key=component_key,
                thumbnail_url=thumbnail_url or None,
                template_html=content["template_html"],
                template_css=content["template_css"],
            )
            section = self.coordinator.save_section(draft, section_id)
        except ComposerError as exc:
            self._fail(exc)
            return None
        self.editor.mark_clean()
        self._emit(NotificationLevel.SUCCESS, f"Section '{section.name}' saved.")
        self._refresh_quietly()
        return section

    def _refresh_quietly(self) -> None:
        # the catalog is reloaded so newly saved sections become placeable
        try:
            self.catalog.refresh(self.store)
            self.pages = self.store.list_pages()
        except StoreRequestError as exc:
            logger.warning("Refresh after write failed: %s", exc)


__all__ = ["BuilderSession", "Notification", "NotificationLevel", "Notifier"]
