"""Compose pages from reusable sections and persist them to a remote store.

This package exposes the ``composer`` CLI plus the building blocks it wires
together: the section catalog, the composition model, the style merger, the
editor bridge, and the persistence coordinator.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from page_composer import main
>>> main()  # doctest: +SKIP
>>> from page_composer import app
>>> app.name[0]
'composer'
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
