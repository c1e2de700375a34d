"""Cyclopts CLI entrypoint for composing pages from reusable sections.

The ``composer`` console script defined here talks to the remote section/page
store: it lists the section catalog and stored pages, composes a page from a
layout file and saves it through the multi-step persistence protocol, loads a
stored page for inspection or preview, deletes pages, and uploads section
markup/styles. Every store operation reports its outcome as a single
notification line; failures exit with status 1.

Examples
--------
List sections matching a search term:

>>> from page_composer.cli import app
>>> app(["sections", "--search", "hero"])  # doctest: +SKIP

Compose and save a page described by a layout file:

>>> app(["compose", "layouts/home.yaml"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import typing as typ
from pathlib import Path

import cyclopts
import msgspec.json
from cyclopts import App, Parameter

from .config import ComposerConfig, load_composer_config
from .editor_bridge import EditorBridge, HeadlessEditor
from .layout import load_layout
from .preview import PreviewRenderer
from .session import BuilderSession, Notification
from .store import RemoteStore

app = App(name="composer", config=cyclopts.config.Env("COMPOSER_", command=False))  # type: ignore[unknown-argument]

ConfigOption = typ.Annotated[
    Path | None,
    Parameter(help="Path to composer config YAML", env_var="COMPOSER_CONFIG"),
]
ApiBaseOption = typ.Annotated[
    str | None,
    Parameter(help="Override the store API base URL", env_var="COMPOSER_API_BASE"),
]
VerboseOption = typ.Annotated[
    bool, Parameter(help="Enable debug logging", negative=())
]


def _print_notification(notification: Notification) -> None:
    print(notification)


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _open_session(
    config: Path | None,
    api_base: str | None,
    *,
    verbose: bool = False,
    editor: EditorBridge | None = None,
) -> tuple[BuilderSession, ComposerConfig]:
    """Build a session from config plus CLI overrides."""
    _configure_logging(verbose=verbose)
    composer_config = load_composer_config(config)
    store_config = composer_config.store
    store = RemoteStore(
        api_base=api_base or store_config.api_base,
        timeout=store_config.timeout,
        defect_marker=store_config.defect_marker,
    )
    session = BuilderSession(store, notify=_print_notification, editor=editor)
    return session, composer_config


def _require(ok: object) -> None:
    """Exit with status 1 when an operation reported failure."""
    if not ok:
        raise SystemExit(1)


@app.command(help="List reusable sections, optionally filtered by name or key.")
def sections(
    *,
    search: typ.Annotated[
        str | None, Parameter(help="Case-insensitive name/key filter")
    ] = None,
    config: ConfigOption = None,
    api_base: ApiBaseOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Print the section catalog as ``id<TAB>component_key<TAB>name`` rows."""
    session, _ = _open_session(config, api_base, verbose=verbose)
    _require(session.refresh_catalog())
    for section in session.search(search):
        print(f"{section.id}\t{section.component_key}\t{section.name}")


@app.command(help="List stored pages.")
def pages(
    *,
    config: ConfigOption = None,
    api_base: ApiBaseOption = None,
    verbose: VerboseOption = False,
) -> None:
    session, _ = _open_session(config, api_base, verbose=verbose)
    _require(session.refresh_pages())
    for page in session.pages:
        print(f"{page.id}\t{page.slug}\t{page.title}")


@app.command(help="Load a stored page and print its composition.")
def show(
    page_id: str,
    /,
    *,
    as_json: typ.Annotated[
        bool, Parameter(name="--json", help="Emit JSON instead of text", negative=())
    ] = False,
    config: ConfigOption = None,
    api_base: ApiBaseOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Print the page metadata followed by its sections in stored order."""
    session, _ = _open_session(config, api_base, verbose=verbose)
    _require(session.load_page(page_id))
    if as_json:
        document = {
            "page": session.metadata,
            "sections": [
                {"position": position, "section": placed.section}
                for position, placed in session.composition.positions()
            ],
            "combined_css": session.combined_css,
        }
        print(msgspec.json.format(msgspec.json.encode(document), indent=2).decode())
        return
    meta = session.metadata
    print(f"{meta.page_id}\t{meta.slug}\t{meta.title}")
    for position, placed in session.composition.positions():
        section = placed.section
        print(f"  {position}. {section.component_key} ({section.id})")


@app.command(help="Compose a page from a layout YAML file and save it.")
def compose(
    layout: Path,
    /,
    *,
    preview: typ.Annotated[
        Path | None, Parameter(help="Also write an HTML preview to this path")
    ] = None,
    config: ConfigOption = None,
    api_base: ApiBaseOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Resolve the layout's component keys against the catalog and save.

    Parameters
    ----------
    layout : Path
        Layout file listing title, slug, optional ``page_id`` and the ordered
        component keys.
    preview : Path or None, optional
        When given, the composed page is also rendered to this HTML file.
    """
    page_layout = load_layout(layout)
    session, composer_config = _open_session(config, api_base, verbose=verbose)
    _require(session.refresh_catalog())
    _require(session.apply_layout(page_layout))
    if preview is not None:
        renderer = PreviewRenderer(title_suffix=composer_config.preview.title_suffix)
        renderer.run(session.metadata, session.placed_sections, preview)
    result = session.save()
    _require(result)
    print(f"page {result.page_id}: {result.links_written}/{result.total} sections")


@app.command(help="Delete a page and its section links.")
def delete(
    page_id: str,
    /,
    *,
    yes: typ.Annotated[
        bool, Parameter(help="Skip the confirmation prompt", negative=())
    ] = False,
    config: ConfigOption = None,
    api_base: ApiBaseOption = None,
    verbose: VerboseOption = False,
) -> None:
    if not yes:
        answer = input(f"Are you sure you want to delete page {page_id}? [y/N] ")
        if answer.strip().lower() not in {"y", "yes"}:
            print("Aborted.")
            return
    session, _ = _open_session(config, api_base, verbose=verbose)
    _require(session.delete_page(page_id))


@app.command(help="Render a stored page to a standalone HTML preview.")
def preview(
    page_id: str,
    /,
    *,
    output: typ.Annotated[
        Path | None, Parameter(help="Output file (defaults to config)")
    ] = None,
    config: ConfigOption = None,
    api_base: ApiBaseOption = None,
    verbose: VerboseOption = False,
) -> None:
    session, composer_config = _open_session(config, api_base, verbose=verbose)
    _require(session.load_page(page_id))
    renderer = PreviewRenderer(title_suffix=composer_config.preview.title_suffix)
    written = renderer.run(
        session.metadata,
        session.placed_sections,
        output or composer_config.preview.output,
    )
    print(f"wrote {written}")


@app.command(name="section-save", help="Create or update a section from files.")
def section_save(
    *,
    name: typ.Annotated[str, Parameter(help="Section display name")],
    key: typ.Annotated[str, Parameter(help="Unique component key")],
    html_file: typ.Annotated[
        Path | None, Parameter(help="File holding the section markup")
    ] = None,
    css_file: typ.Annotated[
        Path | None, Parameter(help="File holding the section styles")
    ] = None,
    thumbnail: typ.Annotated[
        str | None, Parameter(help="Optional thumbnail URL")
    ] = None,
    section_id: typ.Annotated[
        str | None, Parameter(help="Update this section instead of creating one")
    ] = None,
    config: ConfigOption = None,
    api_base: ApiBaseOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Upload section markup/styles through a headless editor.

    When ``section_id`` is given the stored section is loaded first, so
    omitting ``html_file`` or ``css_file`` keeps the stored value.
    """
    bridge = EditorBridge(HeadlessEditor)
    session, _ = _open_session(config, api_base, verbose=verbose, editor=bridge)
    bridge.mount()
    try:
        if section_id is not None:
            _require(session.edit_section(section_id))
        if html_file is not None:
            bridge.set_markup(html_file.read_text(encoding="utf-8"))
        if css_file is not None:
            bridge.set_styles(css_file.read_text(encoding="utf-8"))
        _require(
            session.save_section(
                name=name,
                component_key=key,
                thumbnail_url=thumbnail,
                section_id=section_id,
            )
        )
    finally:
        bridge.dispose()


def main() -> None:
    """Invoke the Cyclopts application that powers the ``composer`` command."""
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
