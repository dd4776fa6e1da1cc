"""Canvas Registry Server.

A registry of customizable digital assets ("canvases"). Each canvas carries an
append-only set of applied traits that determine its rarity score, and every
mutation is paid for through a value-transfer collaborator.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("canvas_server")
except PackageNotFoundError:
    __version__ = "0.1.0"
