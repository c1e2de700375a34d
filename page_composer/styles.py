"""Combine the style fragments of placed sections into one stylesheet.

Fragments are split on the closing-brace
character and each rule is keyed by the text before its opening brace. A
selector keeps the position where it was first seen while its rule text is
replaced by the most recent occurrence. Nested at-rules, comments, and
selector lists are not parsed; they survive only when they contain no closing
brace before their real end.

Example
-------
>>> from page_composer.styles import merge_styles
>>> print(merge_styles([".x{color:red}", ".y{margin:0}", ".x{color:blue}"]))
.x{color:blue}
.y{margin:0}
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ

logger = logging.getLogger(__name__)

_RULE_CLOSE = "}"
_RULE_OPEN = "{"


@dc.dataclass(slots=True)
class MergedStylesheet:
    """Selector-keyed rule texts in first-seen order with last-write values."""

    rules: dict[str, str] = dc.field(default_factory=dict)

    @classmethod
    def from_fragments(cls, fragments: typ.Iterable[str | None]) -> MergedStylesheet:
        sheet = cls()
        for fragment in fragments:
            sheet.add_fragment(fragment or "")
        return sheet

    def add_fragment(self, fragment: str) -> None:
        """Fold every rule of ``fragment`` into the stylesheet."""
        chunks = fragment.split(_RULE_CLOSE)
        # the text after the last closing brace never forms a complete rule
        remainder = chunks.pop()
        if remainder.strip():
            logger.debug("Dropping unterminated style text: %r", remainder[:80])
        for chunk in chunks:
            body = chunk.strip()
            if not body:
                continue
            selector = body.split(_RULE_OPEN, 1)[0].strip()
            # dict assignment keeps the original key position
            self.rules[selector] = f"{body}{_RULE_CLOSE}"

    @property
    def selectors(self) -> list[str]:
        return list(self.rules)

    def render(self) -> str:
        return "\n".join(self.rules.values())

    def __str__(self) -> str:
        return self.render()


def merge_styles(fragments: typ.Iterable[str | None]) -> str:
    """Return the merged stylesheet text for ``fragments``.

    Parameters
    ----------
    fragments : Iterable[str | None]
        Raw style text, one entry per placed section; ``None`` and
        whitespace-only entries contribute nothing.

    Returns
    -------
    str
        Rule texts joined by newlines. Feeding the result back through
        ``merge_styles`` yields the same text.
    """
    return MergedStylesheet.from_fragments(fragments).render()


__all__ = ["MergedStylesheet", "merge_styles"]
