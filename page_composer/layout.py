"""Load page layout YAML files and resolve them against the section catalog.

A layout file lets the CLI compose a page without a canvas:

.. code-block:: yaml

    page_id: 12            # optional; omit to create a new page
    title: Home
    slug: home             # optional; derived from the title when omitted
    meta_description: Landing page
    sections:
      - hero-banner
      - pricing-grid
      - footer

Section entries are component keys; unknown keys are reported together in a
single :class:`~page_composer.errors.ValidationError`.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from ruamel.yaml import YAML

from .errors import ConfigError, ValidationError
from .models import PageMetadata
from .persistence import slugify

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .catalog import SectionCatalog
    from .composition import CompositionModel
    from .models import RecordId, Section


@dc.dataclass(slots=True)
class PageLayout:
    """Page metadata and the ordered component keys to place."""

    title: str
    slug: str
    meta_description: str = ""
    page_id: RecordId | None = None
    section_keys: list[str] = dc.field(default_factory=list)

    def to_metadata(self) -> PageMetadata:
        return PageMetadata(
            title=self.title,
            slug=self.slug,
            meta_description=self.meta_description,
            page_id=self.page_id,
        )


def load_layout(path: Path) -> PageLayout:
    """Parse a layout YAML file.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    ConfigError
        If the document is not a mapping or ``sections`` is not a list.
    """
    if not path.exists():
        msg = f"Layout file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        raw = loader.load(handle) or {}
    if not isinstance(raw, dict):
        msg = f"Layout file '{path}' must contain a mapping."
        raise ConfigError(msg)

    sections_raw = raw.get("sections") or []
    if not isinstance(sections_raw, list):
        msg = f"'sections' in '{path}' must be a list of component keys."
        raise ConfigError(msg)

    title = str(raw.get("title") or "")
    return PageLayout(
        title=title,
        slug=str(raw.get("slug") or "") or slugify(title),
        meta_description=str(raw.get("meta_description") or ""),
        page_id=raw.get("page_id"),
        section_keys=[str(key).strip() for key in sections_raw if str(key).strip()],
    )


def build_composition(
    layout: PageLayout, catalog: SectionCatalog, composition: CompositionModel
) -> None:
    """Replace ``composition`` with the layout's sections, in order."""
    missing = [key for key in layout.section_keys if catalog.by_key(key) is None]
    if missing:
        problems = [f"Unknown section key '{key}'" for key in missing]
        raise ValidationError(problems)
    composition.replace(
        typ.cast("Section", catalog.by_key(key)) for key in layout.section_keys
    )


__all__ = ["PageLayout", "build_composition", "load_layout"]
