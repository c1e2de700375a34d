"""Load composer configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from page_composer.errors import ConfigError

from .models import ComposerConfig, PreviewConfig, StoreConfig


def load_composer_config(path: Path | None) -> ComposerConfig:
    """Load the YAML file describing the store connection and preview output.

    Parameters
    ----------
    path : Path or None
        Filesystem path to the configuration file (for example,
        ``config/composer.yaml``). ``None`` returns the built-in defaults.

    Returns
    -------
    ComposerConfig
        Parsed configuration with defaults applied to omitted fields.

    Raises
    ------
    FileNotFoundError
        If ``path`` is given but does not exist.
    TypeError
        If the top-level YAML structure is not a mapping.
    ConfigError
        If a section is not a mapping or a value has the wrong type.

    Examples
    --------
    >>> from page_composer.config import load_composer_config
    >>> load_composer_config(None).store.api_base
    'http://127.0.0.1:3000/api/v1'
    """
    if path is None:
        return ComposerConfig()
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)

    return ComposerConfig(
        store=_build_store_config(_section(raw, "store")),
        preview=_build_preview_config(_section(raw, "preview")),
    )


def _section(raw: typ.Mapping[str, typ.Any], key: str) -> typ.Mapping[str, typ.Any]:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        msg = f"'{key}' must be a mapping."
        raise ConfigError(msg)
    return value


def _build_store_config(payload: typ.Mapping[str, typ.Any]) -> StoreConfig:
    base = StoreConfig()
    api_base = str(payload.get("api_base", base.api_base) or "").strip()
    if not api_base.startswith(("http://", "https://")):
        msg = f"store.api_base must be an http(s) URL, got {api_base!r}."
        raise ConfigError(msg)

    raw_timeout = payload.get("timeout", base.timeout)
    try:
        timeout = float(raw_timeout)
    except (TypeError, ValueError) as exc:
        msg = f"store.timeout must be a number, got {raw_timeout!r}."
        raise ConfigError(msg) from exc
    if timeout <= 0:
        msg = "store.timeout must be positive."
        raise ConfigError(msg)

    marker = payload.get("defect_marker", base.defect_marker)
    return StoreConfig(
        api_base=api_base,
        timeout=timeout,
        defect_marker=str(marker) if marker else None,
    )


def _build_preview_config(payload: typ.Mapping[str, typ.Any]) -> PreviewConfig:
    base = PreviewConfig()
    return PreviewConfig(
        output=Path(payload.get("output", base.output)),
        title_suffix=str(payload.get("title_suffix", base.title_suffix)),
    )


__all__ = ["load_composer_config"]
