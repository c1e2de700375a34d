"""In-memory catalog of reusable sections fetched from the store."""

from __future__ import annotations

import logging
import typing as typ

from .models import same_id

if typ.TYPE_CHECKING:
    from .models import RecordId, Section
    from .store import RemoteStore

logger = logging.getLogger(__name__)


class SectionCatalog:
    """Hold the store's sections and answer lookups and searches."""

    def __init__(self, sections: typ.Iterable[Section] = ()) -> None:
        self._sections: tuple[Section, ...] = tuple(sections)

    def __len__(self) -> int:
        return len(self._sections)

    def __iter__(self) -> typ.Iterator[Section]:
        return iter(self._sections)

    @property
    def sections(self) -> tuple[Section, ...]:
        return self._sections

    def refresh(self, store: RemoteStore) -> tuple[Section, ...]:
        """Replace the catalog contents with the store's current sections.

        Errors from the store propagate and leave the previous contents
        untouched.
        """
        self._sections = tuple(store.list_sections())
        logger.info("Catalog refreshed with %d sections", len(self._sections))
        return self._sections

    def get(self, section_id: RecordId) -> Section | None:
        for section in self._sections:
            if same_id(section.id, section_id):
                return section
        return None

    def by_key(self, component_key: str) -> Section | None:
        for section in self._sections:
            if section.component_key == component_key:
                return section
        return None

    def search(self, term: str | None) -> list[Section]:
        """Return sections whose name or component key contains ``term``.

        Matching is case-insensitive; an empty or ``None`` term returns every
        section in catalog order.
        """
        needle = (term or "").strip().lower()
        if not needle:
            return list(self._sections)
        return [
            section
            for section in self._sections
            if needle in section.name.lower()
            or needle in section.component_key.lower()
        ]


__all__ = ["SectionCatalog"]
