"""Typed dataclasses describing composer configuration."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path

from page_composer._constants import (
    DEFAULT_API_BASE,
    DEFAULT_DEFECT_MARKER,
    DEFAULT_TIMEOUT,
)


@dc.dataclass(slots=True)
class StoreConfig:
    """Connection settings for the remote section/page store."""

    api_base: str = DEFAULT_API_BASE
    timeout: float = DEFAULT_TIMEOUT
    defect_marker: str | None = DEFAULT_DEFECT_MARKER


@dc.dataclass(slots=True)
class PreviewConfig:
    """Where and how page previews are rendered."""

    output: Path = Path("public/preview.html")
    title_suffix: str = "Preview"


@dc.dataclass(slots=True)
class ComposerConfig:
    """Complete composer configuration with defaults for every field."""

    store: StoreConfig = dc.field(default_factory=StoreConfig)
    preview: PreviewConfig = dc.field(default_factory=PreviewConfig)


__all__ = ["ComposerConfig", "PreviewConfig", "StoreConfig"]
