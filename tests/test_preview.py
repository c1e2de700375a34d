"""Tests for the standalone HTML preview renderer."""

from __future__ import annotations

from pathlib import Path

from bs4 import BeautifulSoup

from page_composer.composition import CompositionModel
from page_composer.models import PageMetadata, Section
from page_composer.preview import PreviewRenderer


def _composition() -> CompositionModel:
    model = CompositionModel()
    model.insert_section(
        Section(
            id=1,
            name="Hero",
            component_key="hero",
            template_html='<section class="hero"><h1>Welcome</h1></section>',
            template_css=".hero{color:red}",
        )
    )
    model.insert_section(
        Section(
            id=2,
            name="Footer",
            component_key="footer",
            template_html="<footer>Bye</footer>",
            template_css=".hero{color:blue} footer{padding:1rem}",
        )
    )
    return model


def test_preview_renders_sections_in_order(tmp_path: Path) -> None:
    metadata = PageMetadata(title="Home & Away", slug="home", meta_description="Hi")
    output = tmp_path / "out" / "preview.html"

    written = PreviewRenderer().run(metadata, _composition().list(), output)

    assert written == output
    soup = BeautifulSoup(output.read_text(encoding="utf-8"), "html.parser")
    assert soup.title is not None
    assert soup.title.get_text() == "Home & Away | Preview"
    wrappers = soup.select(".composer-section")
    assert [node["data-component-key"] for node in wrappers] == ["hero", "footer"]
    assert [node["data-position"] for node in wrappers] == ["1", "2"]
    assert wrappers[0].select_one("h1").get_text() == "Welcome", (
        "section markup must be injected unescaped"
    )
    style = soup.select_one("#composer-styles")
    assert style is not None
    assert style.get_text().strip() == ".hero{color:blue}\nfooter{padding:1rem}"
    description = soup.select_one('meta[name="description"]')
    assert description is not None and description["content"] == "Hi"


def test_preview_without_title_suffix() -> None:
    html = PreviewRenderer(title_suffix="").render(
        PageMetadata(slug="draft"), CompositionModel().list()
    )
    soup = BeautifulSoup(html, "html.parser")
    assert soup.title is not None and soup.title.get_text() == "draft"
    assert soup.select(".composer-section") == []
