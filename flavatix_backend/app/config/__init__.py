# flavatix_backend/app/config/__init__.py
from __future__ import annotations

# Settings are read from the environment once, at import time.

from .manifest import (
    DB_URL,
    APP_ENV,
    DEBUG_MODE,
    SEED_DEMO,
    LOG_LEVEL,
    CORS_ORIGINS,
    SUPABASE_URL,
    SUPABASE_ANON_KEY,
    WHEEL_CACHE_DAYS,
    validate_manifest,
)
from .paths import DATA_DIR, FLAVOUR_RULES_DIR, resolve_rules_file, ensure_data_dir

__all__ = [
    "DB_URL", "APP_ENV", "DEBUG_MODE", "SEED_DEMO", "LOG_LEVEL", "CORS_ORIGINS",
    "SUPABASE_URL", "SUPABASE_ANON_KEY", "WHEEL_CACHE_DAYS", "validate_manifest",
    "DATA_DIR", "FLAVOUR_RULES_DIR", "resolve_rules_file", "ensure_data_dir",
]
