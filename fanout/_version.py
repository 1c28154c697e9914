"""Version of the ``fanout`` package.

Computed from git tags when working from a checkout, and read from the
installed distribution metadata otherwise.
"""

from __future__ import annotations

import importlib.metadata
from pathlib import Path

_PROJECT_DIR = Path(__file__).parent.parent


def _get_version() -> str:
    if not (_PROJECT_DIR / "pyproject.toml").exists():
        return importlib.metadata.version("fanout")
    try:
        import versioningit
    except ImportError:  # pragma: no cover
        return importlib.metadata.version("fanout")
    return versioningit.get_version(project_dir=_PROJECT_DIR)


__version__ = _get_version()
