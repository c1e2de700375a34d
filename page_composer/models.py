"""Typed records describing sections, pages, and their join records.

Store payloads arrive as loosely typed JSON objects; the ``from_payload``
constructors normalise them into the dataclasses below so the rest of the
package never touches raw dictionaries.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

RecordId: typ.TypeAlias = int | str


@dc.dataclass(frozen=True, slots=True)
class Section:
    """A reusable, named block of markup and styles owned by the store.

    Attributes
    ----------
    id : RecordId
        Opaque stable identifier assigned by the store.
    name : str
        Human-friendly label shown in the catalog.
    component_key : str
        Unique semantic key used for search and layout files.
    template_html : str
        Markup rendered when the section is placed on a page.
    template_css : str
        Style rules shipped with the section (may be empty).
    thumbnail_url : str | None
        Optional preview image.
    """

    id: RecordId
    name: str
    component_key: str
    template_html: str = ""
    template_css: str = ""
    thumbnail_url: str | None = None

    @classmethod
    def from_payload(cls, payload: typ.Mapping[str, typ.Any]) -> Section:
        """Build a section from a store response object."""
        return cls(
            id=_require_id(payload, "section"),
            name=_coerce_str(payload.get("name")) or "",
            component_key=_coerce_str(payload.get("component_key")) or "",
            template_html=_coerce_str(payload.get("template_html")) or "",
            template_css=_coerce_str(payload.get("template_css")) or "",
            thumbnail_url=_coerce_str(payload.get("thumbnail_url")) or None,
        )


@dc.dataclass(frozen=True, slots=True)
class PlacedSection:
    """A section instance placed into the composition being edited.

    ``local_order_id`` is issued by the composition model and is never reused
    within an edit session. Positions are derived from list order at save time
    and are deliberately not stored here.
    """

    local_order_id: str
    section: Section

    @property
    def source_section_id(self) -> RecordId:
        return self.section.id


@dc.dataclass(slots=True)
class PageMetadata:
    """Editable page metadata plus the store id once the page exists."""

    title: str = ""
    slug: str = ""
    meta_description: str = ""
    page_id: RecordId | None = None


@dc.dataclass(frozen=True, slots=True)
class PageRecord:
    """Page row as returned by the store."""

    id: RecordId
    title: str
    slug: str
    meta_description: str = ""

    @classmethod
    def from_payload(cls, payload: typ.Mapping[str, typ.Any]) -> PageRecord:
        return cls(
            id=_require_id(payload, "page"),
            title=_coerce_str(payload.get("title")) or "",
            slug=_coerce_str(payload.get("slug")) or "",
            meta_description=_coerce_str(payload.get("meta_description")) or "",
        )

    def to_metadata(self) -> PageMetadata:
        return PageMetadata(
            title=self.title,
            slug=self.slug,
            meta_description=self.meta_description,
            page_id=self.id,
        )


@dc.dataclass(frozen=True, slots=True)
class PageSectionLink:
    """Join record associating a section with a page at a given position."""

    id: RecordId
    page_id: RecordId
    section_id: RecordId
    sort_order: int

    @classmethod
    def from_payload(cls, payload: typ.Mapping[str, typ.Any]) -> PageSectionLink:
        raw_order = payload.get("sort_order")
        try:
            sort_order = int(raw_order) if raw_order is not None else 0
        except (TypeError, ValueError):
            sort_order = 0
        return cls(
            id=_require_id(payload, "page_section"),
            page_id=payload.get("page_id"),
            section_id=payload.get("section_id"),
            sort_order=sort_order,
        )

    def belongs_to(self, page_id: RecordId) -> bool:
        return same_id(self.page_id, page_id)

    def matches(
        self, *, page_id: RecordId, section_id: RecordId, sort_order: int
    ) -> bool:
        """Return True when this link records the given placement."""
        return (
            same_id(self.page_id, page_id)
            and same_id(self.section_id, section_id)
            and self.sort_order == sort_order
        )


@dc.dataclass(slots=True)
class SectionDraft:
    """Metadata and editor content for creating or updating a section."""

    name: str
    component_key: str
    template_html: str = ""
    template_css: str = ""
    thumbnail_url: str | None = None

    def to_payload(self) -> dict[str, typ.Any]:
        return {
            "name": self.name,
            "component_key": self.component_key,
            "thumbnail_url": self.thumbnail_url,
            "template_html": self.template_html,
            "template_css": self.template_css,
        }


def same_id(left: object, right: object) -> bool:
    """Compare store identifiers that may arrive as ints or strings."""
    if left is None or right is None:
        return False
    return str(left) == str(right)


def _require_id(payload: typ.Mapping[str, typ.Any], kind: str) -> RecordId:
    value = payload.get("id")
    if value is None or value == "":
        msg = f"Store returned a {kind} record without an 'id'."
        raise ValueError(msg)
    return value


def _coerce_str(value: object) -> str | None:
    """Return the string representation of ``value`` or None."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return str(value)


__all__ = [
    "PageMetadata",
    "PageRecord",
    "PageSectionLink",
    "PlacedSection",
    "RecordId",
    "Section",
    "SectionDraft",
    "same_id",
]
