"""Adapter between the composer and an opaque visual editor capability.

The visual canvas is an external collaborator: it can render markup, accept
edits, and report its current markup and styles. :class:`EditorBridge` wraps a
:class:`VisualEditor` handle whose lifetime is bound to the hosting view via
explicit :meth:`EditorBridge.mount` and :meth:`EditorBridge.dispose` calls.
The bridge never interprets markup; it only passes it through.

:class:`HeadlessEditor` is an in-process editor used when no canvas is
attached, for example by the ``composer section-save`` command.

Example
-------
>>> from page_composer.editor_bridge import EditorBridge, HeadlessEditor
>>> bridge = EditorBridge(HeadlessEditor)
>>> bridge.mount()
>>> bridge.set_markup("<section>Hi</section>")
>>> bridge.get_markup()
'<section>Hi</section>'
>>> bridge.dispose()
"""

from __future__ import annotations

import collections
import logging
import typing as typ

if typ.TYPE_CHECKING:
    from .models import Section

logger = logging.getLogger(__name__)

ContentCallback = typ.Callable[[], None]

# Editor events that count as a user edit for dirty-state tracking.
CONTENT_EVENTS: tuple[str, ...] = ("component:update", "style:update")


class VisualEditor(typ.Protocol):
    """Capability surface expected from the external canvas."""

    def get_html(self) -> str: ...

    def get_css(self) -> str: ...

    def set_components(self, markup: str) -> None: ...

    def set_style(self, styles: str) -> None: ...

    def on(self, event: str, callback: ContentCallback) -> None: ...

    def destroy(self) -> None: ...


class HeadlessEditor:
    """Minimal in-memory :class:`VisualEditor` without a rendering surface.

    ``set_components``/``set_style`` model programmatic loads and do not emit
    events; :meth:`edit` models a user edit and emits the matching event.
    """

    def __init__(self) -> None:
        self._html = ""
        self._css = ""
        self._listeners: dict[str, list[ContentCallback]] = collections.defaultdict(
            list
        )
        self.destroyed = False

    def get_html(self) -> str:
        return self._html

    def get_css(self) -> str:
        return self._css

    def set_components(self, markup: str) -> None:
        self._html = markup

    def set_style(self, styles: str) -> None:
        self._css = styles

    def on(self, event: str, callback: ContentCallback) -> None:
        self._listeners[event].append(callback)

    def edit(self, *, markup: str | None = None, styles: str | None = None) -> None:
        """Apply a user edit and notify listeners."""
        if markup is not None:
            self._html = markup
            self._emit("component:update")
        if styles is not None:
            self._css = styles
            self._emit("style:update")

    def _emit(self, event: str) -> None:
        for callback in list(self._listeners.get(event, ())):
            callback()

    def destroy(self) -> None:
        self._listeners.clear()
        self.destroyed = True


class EditorBridge:
    """Pass-through to a mounted :class:`VisualEditor` with dirty tracking."""

    def __init__(self, editor_factory: typ.Callable[[], VisualEditor]) -> None:
        """Store the factory used to create the editor on :meth:`mount`.

        Parameters
        ----------
        editor_factory : Callable[[], VisualEditor]
            Zero-argument callable returning a fresh editor instance. The
            bridge owns the instance between ``mount`` and ``dispose``.
        """
        self._factory = editor_factory
        self._editor: VisualEditor | None = None
        self._callbacks: list[ContentCallback] = []
        self.is_dirty = False

    @property
    def is_mounted(self) -> bool:
        return self._editor is not None

    def mount(self) -> None:
        """Create the editor instance and subscribe to its change events."""
        if self._editor is not None:
            return
        editor = self._factory()
        for event in CONTENT_EVENTS:
            editor.on(event, self._handle_content_changed)
        self._editor = editor
        self.is_dirty = False
        logger.debug("Mounted visual editor %r", editor)

    def dispose(self) -> None:
        """Destroy the editor instance; later calls become no-ops."""
        if self._editor is None:
            return
        editor, self._editor = self._editor, None
        editor.destroy()
        logger.debug("Disposed visual editor %r", editor)

    def get_markup(self) -> str:
        if self._editor is None:
            return ""
        return self._editor.get_html() or ""

    def get_styles(self) -> str:
        if self._editor is None:
            return ""
        return self._editor.get_css() or ""

    def set_markup(self, markup: str) -> None:
        if self._editor is not None:
            self._editor.set_components(markup)

    def set_styles(self, styles: str) -> None:
        if self._editor is not None:
            self._editor.set_style(styles)

    def on_content_changed(self, callback: ContentCallback) -> None:
        """Register ``callback`` to run after every edit inside the canvas."""
        self._callbacks.append(callback)

    def load_section(self, section: Section) -> None:
        """Replace the editor content with a section's markup and styles."""
        if section.template_html:
            self.set_markup(section.template_html)
        if section.template_css:
            self.set_styles(section.template_css)
        self.is_dirty = False

    def snapshot(self) -> dict[str, str]:
        """Return the editor content in the store's section field names."""
        return {
            "template_html": self.get_markup(),
            "template_css": self.get_styles(),
        }

    def mark_clean(self) -> None:
        self.is_dirty = False

    def _handle_content_changed(self) -> None:
        self.is_dirty = True
        for callback in list(self._callbacks):
            callback()


__all__ = ["CONTENT_EVENTS", "EditorBridge", "HeadlessEditor", "VisualEditor"]
