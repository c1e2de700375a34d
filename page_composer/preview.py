"""Render a standalone HTML preview of a composed page.

The preview stitches the placed sections' markup together in order and inlines
the merged stylesheet, mirroring what the store receives as ``combined_html``
and ``combined_css``. Rendering uses Jinja2 with autoescape enabled; the
section markup and styles are trusted store content and are injected
unescaped.

Example
-------
>>> from page_composer.preview import PreviewRenderer
>>> renderer = PreviewRenderer()  # doctest: +SKIP
>>> renderer.run(metadata, composition.list(), Path("public/preview.html"))  # doctest: +SKIP
PosixPath('public/preview.html')
"""

from __future__ import annotations

import datetime as dt
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .styles import merge_styles

if typ.TYPE_CHECKING:
    from .models import PageMetadata, PlacedSection


class PreviewRenderer:
    """Render composed pages through the ``preview.jinja`` template."""

    def __init__(
        self, *, templates_dir: Path | None = None, title_suffix: str = "Preview"
    ) -> None:
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.title_suffix = title_suffix
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.env.get_template("preview.jinja")

    def render(
        self, metadata: PageMetadata, placed: typ.Sequence[PlacedSection]
    ) -> str:
        """Return the preview document for ``placed`` as a string."""
        sections = [
            {
                "position": position,
                "component_key": item.section.component_key,
                "markup": item.section.template_html,
            }
            for position, item in enumerate(placed, start=1)
        ]
        title = metadata.title or metadata.slug or "Untitled page"
        html = self.template.render(
            page=metadata,
            sections=sections,
            stylesheet=merge_styles(item.section.template_css for item in placed),
            html_title=f"{title} | {self.title_suffix}" if self.title_suffix else title,
            generated_at=dt.datetime.now(dt.UTC),
        )
        if not html.endswith("\n"):
            html += "\n"
        return html

    def run(
        self,
        metadata: PageMetadata,
        placed: typ.Sequence[PlacedSection],
        output_path: Path,
    ) -> Path:
        """Render and write the preview, creating parent directories."""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.render(metadata, placed), encoding="utf-8")
        return output_path


__all__ = ["PreviewRenderer"]
