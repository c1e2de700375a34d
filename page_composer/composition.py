"""Ordered, mutable model of the sections placed on the page being edited.

The model addresses items by client-generated ``local_order_id`` values rather
than list indices. Identifiers come from a monotonic counter and are never
reissued, so a stale reference held by an in-flight drag can only miss (and
fall back to a harmless default) instead of hitting a newer item.

Example
-------
>>> from page_composer.composition import Anchor, CompositionModel
>>> from page_composer.models import Section
>>> model = CompositionModel()
>>> hero = model.insert_section(Section(id=1, name="Hero", component_key="hero"))
>>> footer = model.insert_section(Section(id=2, name="Footer", component_key="footer"))
>>> _ = model.insert_section(
...     Section(id=3, name="Pricing", component_key="pricing"),
...     Anchor.after_item(hero.local_order_id),
... )
>>> [placed.section.component_key for placed in model.list()]
['hero', 'pricing', 'footer']
"""

from __future__ import annotations

import dataclasses as dc
import itertools
import logging
import typing as typ

from ._constants import LOCAL_ORDER_ID_TEMPLATE, PLACEHOLDER_ID
from .models import PlacedSection

if typ.TYPE_CHECKING:
    from .models import Section

logger = logging.getLogger(__name__)


@dc.dataclass(frozen=True, slots=True)
class Anchor:
    """Where a newly inserted section should land.

    ``after`` is ``None`` for an append; otherwise it names the
    ``local_order_id`` the new item should follow.
    """

    after: str | None = None

    @classmethod
    def append(cls) -> Anchor:
        return cls()

    @classmethod
    def after_item(cls, local_order_id: str) -> Anchor:
        return cls(after=local_order_id)

    @property
    def is_append(self) -> bool:
        return self.after is None


class CompositionModel:
    """Ordered list of :class:`PlacedSection` items addressed by stable ids."""

    def __init__(self) -> None:
        self._items: list[PlacedSection] = []
        self._serials = itertools.count(1)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> typ.Iterator[PlacedSection]:
        return iter(self.list())

    def __contains__(self, local_order_id: object) -> bool:
        return self._index_of(local_order_id) is not None

    def _next_local_order_id(self) -> str:
        return LOCAL_ORDER_ID_TEMPLATE.format(serial=next(self._serials))

    def _index_of(self, local_order_id: object) -> int | None:
        for index, placed in enumerate(self._items):
            if placed.local_order_id == local_order_id:
                return index
        return None

    def get(self, local_order_id: str) -> PlacedSection | None:
        """Return the placed section with ``local_order_id`` or None."""
        index = self._index_of(local_order_id)
        return None if index is None else self._items[index]

    def insert_section(
        self, section: Section, anchor: Anchor | None = None
    ) -> PlacedSection:
        """Place ``section`` into the composition and return the new item.

        Parameters
        ----------
        section : Section
            Catalog entry to place.
        anchor : Anchor, optional
            Insertion point. ``None`` or an append anchor adds the item at the
            end; an ``after`` anchor inserts it immediately after the named
            item, falling back to append when that item no longer exists.

        Returns
        -------
        PlacedSection
            The newly created item carrying a freshly issued identifier.
        """
        placed = PlacedSection(
            local_order_id=self._next_local_order_id(), section=section
        )
        anchor = anchor or Anchor.append()
        index = None if anchor.is_append else self._index_of(anchor.after)
        if index is None:
            if not anchor.is_append:
                logger.debug(
                    "Anchor %s not found; appending %s",
                    anchor.after,
                    placed.local_order_id,
                )
            self._items.append(placed)
        else:
            self._items.insert(index + 1, placed)
        return placed

    def move_existing(self, local_order_id: str, before_local_order_id: str) -> bool:
        """Move an item so it sits immediately before another item.

        Every other item keeps its relative order. Returns ``False`` (and
        changes nothing) when the ids are equal or either is unknown.
        """
        if local_order_id == before_local_order_id:
            return False
        source_index = self._index_of(local_order_id)
        if source_index is None or self._index_of(before_local_order_id) is None:
            return False
        moving = self._items.pop(source_index)
        target_index = self._index_of(before_local_order_id) or 0
        self._items.insert(target_index, moving)
        return True

    def remove(self, local_order_id: str) -> bool:
        """Delete an item; its identifier is never issued again."""
        index = self._index_of(local_order_id)
        if index is None:
            return False
        del self._items[index]
        return True

    def clear(self) -> None:
        """Remove every item. The identifier counter keeps advancing."""
        self._items.clear()

    def replace(self, sections: typ.Iterable[Section]) -> tuple[PlacedSection, ...]:
        """Clear the model and append ``sections`` in order."""
        self.clear()
        for section in sections:
            self.insert_section(section)
        return self.list()

    def list(self) -> tuple[PlacedSection, ...]:
        """Return an immutable snapshot of the current order."""
        return tuple(self._items)

    def positions(self) -> list[tuple[int, PlacedSection]]:
        """Return ``(position, item)`` pairs with 1-based positions."""
        return [(index + 1, placed) for index, placed in enumerate(self._items)]

    def resolve_drop_anchor(self, target_id: str | None) -> Anchor:
        """Translate a drop target into an insertion anchor.

        The empty-state placeholder (or no target at all) means append; any
        other target means "after that item", which itself falls back to
        append when the item is gone.
        """
        if target_id is None or target_id == PLACEHOLDER_ID:
            return Anchor.append()
        return Anchor.after_item(target_id)


__all__ = ["Anchor", "CompositionModel"]
