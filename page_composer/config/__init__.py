"""Load and validate composer configuration YAML.

This subpackage parses ``composer.yaml``, applies defaults for omitted fields,
and produces typed dataclasses (:class:`ComposerConfig`, :class:`StoreConfig`,
:class:`PreviewConfig`) that the CLI uses to build a store client and preview
renderer. The primary entry point is :func:`load_composer_config`.

Examples
--------
>>> from pathlib import Path
>>> from page_composer.config import load_composer_config
>>> config = load_composer_config(Path("config/composer.yaml"))  # doctest: +SKIP
>>> config.store.api_base  # doctest: +SKIP
'http://127.0.0.1:3000/api/v1'
"""

from page_composer.errors import ConfigError

from .loader import load_composer_config
from .models import ComposerConfig, PreviewConfig, StoreConfig

__all__ = [
    "ComposerConfig",
    "ConfigError",
    "PreviewConfig",
    "StoreConfig",
    "load_composer_config",
]
