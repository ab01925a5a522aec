"""
Loads the project's `.env` so WAREHOUSE_SIM_* and WAREHOUSE_MQTT_* overrides
reach ``os.getenv``. Values already exported in the shell always win.

Set WAREHOUSE_DOTENV to point at a specific file instead of the project root's.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

__all__ = ["load_project_dotenv"]

DOTENV_OVERRIDE_VAR = "WAREHOUSE_DOTENV"
MARKER_FILE = "pyproject.toml"

_loaded_from: Path | None = None


def _find_project_root(start: Path | None = None) -> Path:
    """Nearest ancestor of ``start`` (inclusive) holding pyproject.toml; the package dir otherwise."""
    here = Path(__file__).resolve().parent
    origin = (start or here).resolve()
    return next((d for d in (origin, *origin.parents) if (d / MARKER_FILE).is_file()), here)


def _dotenv_candidate() -> Path:
    explicit = os.getenv(DOTENV_OVERRIDE_VAR)
    if explicit:
        return Path(explicit).expanduser()
    return _find_project_root() / ".env"


def load_project_dotenv(force: bool = False) -> Path | None:
    """Load the `.env` once per process; returns the file used, if any."""
    global _loaded_from
    if _loaded_from is not None and not force:
        return _loaded_from
    dotenv_path = _dotenv_candidate()
    if not dotenv_path.is_file():
        return None
    load_dotenv(dotenv_path=dotenv_path, override=False)
    _loaded_from = dotenv_path
    return dotenv_path
