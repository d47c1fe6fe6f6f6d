# flavatix_backend/app/flavour/library_loader.py
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import yaml  # PyYAML

from flavatix_backend.app.config.paths import resolve_rules_file
from .taxonomy import DESCRIPTOR_TYPES, DescriptorLexicon

# -----------------------------------------------------------------------------
# Logger
# -----------------------------------------------------------------------------
log = logging.getLogger("flavatix.library_loader")

# -----------------------------------------------------------------------------
# Internal IO helpers
# -----------------------------------------------------------------------------
def _load_yaml_from(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

# -----------------------------------------------------------------------------
# Public loader API (rules)
# -----------------------------------------------------------------------------
@lru_cache(maxsize=16)
def load_yaml_rules(filename: str) -> Any:
    """
    Load a YAML rulebook from flavour/rules.
    Raises FileNotFoundError if not present.
    """
    path = resolve_rules_file(filename)
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found: {path}")
    obj = _load_yaml_from(path)
    log.info(f"[rules] loaded {filename} from {path}")
    return obj

# -----------------------------------------------------------------------------
# Convenience accessors for well-known files
# -----------------------------------------------------------------------------
_RULES_DESCRIPTOR_LEXICON = "descriptor_lexicon.yaml"

def _validate_lexicon(raw: Any) -> Dict[str, Any]:
    if not isinstance(raw, dict) or not isinstance(raw.get("types"), dict):
        raise ValueError(f"{_RULES_DESCRIPTOR_LEXICON}: expected a mapping with a 'types' section")
    for type_name, categories in raw["types"].items():
        if type_name not in DESCRIPTOR_TYPES:
            raise ValueError(f"{_RULES_DESCRIPTOR_LEXICON}: unknown descriptor type '{type_name}'")
        if not isinstance(categories, dict):
            raise ValueError(f"{_RULES_DESCRIPTOR_LEXICON}: type '{type_name}' must map categories")
        for category, body in categories.items():
            if isinstance(body, list):
                continue
            if not isinstance(body, dict) or not all(isinstance(v, list) for v in body.values()):
                raise ValueError(
                    f"{_RULES_DESCRIPTOR_LEXICON}: category '{type_name}.{category}' "
                    "must be a keyword list or a subcategory -> keyword list mapping"
                )
    words = raw.get("intensity_words") or {}
    if not isinstance(words, dict):
        raise ValueError(f"{_RULES_DESCRIPTOR_LEXICON}: 'intensity_words' must be a mapping")
    return raw

@lru_cache(maxsize=1)
def get_descriptor_lexicon() -> DescriptorLexicon:
    """
    Returns the validated descriptor lexicon (required).
    """
    raw = _validate_lexicon(load_yaml_rules(_RULES_DESCRIPTOR_LEXICON))
    lexicon = DescriptorLexicon(raw["types"], raw.get("intensity_words") or {})
    log.info(f"[rules] descriptor lexicon ready: {len(lexicon)} keywords")
    return lexicon

def clear_caches() -> None:
    """Drop cached rule files (used by tests that swap FLAVOUR_RULES_DIR)."""
    load_yaml_rules.cache_clear()
    get_descriptor_lexicon.cache_clear()
