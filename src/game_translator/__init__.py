"""game-translator: per-game translation dictionary and dispatch pipeline.

Maintains a dictionary mapping source-language UI strings to translations,
keeps it in sync with a remote authoritative copy via a three-way merge, and
feeds untranslated strings through a single-worker queue to an LLM
translation provider.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ---------------------------------------------------------------------------
# Package version, read from pyproject.toml via importlib.metadata.
#
# Falls back to the last released version when the package is imported from
# a source checkout without being installed.
# ---------------------------------------------------------------------------
try:
    __version__: str = version("game-translator")
except PackageNotFoundError:
    __version__ = "0.3.0"
