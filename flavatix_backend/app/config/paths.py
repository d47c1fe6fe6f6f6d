# flavatix_backend/app/config/paths.py
"""
Where Flavatix keeps its files.

    DATA_DIR           writable; the default SQLite database lives here
    FLAVOUR_RULES_DIR  read-only lexicon YAML shipped with the package

Both can be overridden from the environment (quotes and ~ are tolerated).
"""

from __future__ import annotations

import os
from pathlib import Path

_APP_ROOT = Path(__file__).resolve().parents[1]
_PACKAGE_ROOT = _APP_ROOT.parent

def _env_path(name: str) -> Path | None:
    raw = (os.getenv(name) or "").strip().strip('"').strip("'")
    if not raw:
        return None
    return Path(raw).expanduser().resolve()

# a source checkout keeps data next to the package; site-packages installs fall back to cwd
_default_data = (_PACKAGE_ROOT.parent if (_PACKAGE_ROOT.parent / "pyproject.toml").exists() else Path.cwd()) / "data"

DATA_DIR: Path = (_env_path("DATA_DIR") or _default_data).resolve()
FLAVOUR_RULES_DIR: Path = (_env_path("FLAVOUR_RULES_DIR") or _APP_ROOT / "flavour" / "rules").resolve()

def resolve_rules_file(name: str) -> Path:
    return FLAVOUR_RULES_DIR / name

def ensure_data_dir() -> Path:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    return DATA_DIR

__all__ = ["DATA_DIR", "FLAVOUR_RULES_DIR", "resolve_rules_file", "ensure_data_dir"]
