# flavatix_backend/app/config/manifest.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List

# ---- DB settings and environment mode ----
from .paths import DATA_DIR, resolve_rules_file

_DEFAULT_SQLITE_PATH: Path = (DATA_DIR / "flavatix.sqlite3").resolve()
_env_db_url = os.getenv("DATABASE_URL", "").strip()

# Exported DB_URL (used by db/session.py)
DB_URL: str = _env_db_url or f"sqlite:///{_DEFAULT_SQLITE_PATH}"

APP_ENV: str = os.getenv("APP_ENV", "development")
DEBUG_MODE: bool = os.getenv("DEBUG", "0") not in ("", "0", "false", "False")
SEED_DEMO: bool = os.getenv("SEED_DEMO", "0") not in ("", "0", "false", "False")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS: List[str] = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]

# ---- Hosted auth (bearer tokens are verified there when configured) ----
SUPABASE_URL: str = os.getenv("SUPABASE_URL", "").strip()
SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "").strip()

# ---- Flavor wheels ----
WHEEL_CACHE_DAYS: int = int(os.getenv("WHEEL_CACHE_DAYS", "7"))

# ---- Lexicon manifest ----
RULES_REQUIRED: List[str] = [
    "descriptor_lexicon.yaml",
]

def validate_manifest() -> Dict[str, object]:
    missing_required = [name for name in RULES_REQUIRED if not resolve_rules_file(name).exists()]
    return {
        "status": "ok" if not missing_required else "missing_required",
        "required": RULES_REQUIRED,
        "missing_required": missing_required,
    }

__all__ = [
    "DB_URL", "APP_ENV", "DEBUG_MODE", "LOG_LEVEL", "CORS_ORIGINS",
    "SEED_DEMO", "SUPABASE_URL", "SUPABASE_ANON_KEY", "WHEEL_CACHE_DAYS", "validate_manifest",
]
