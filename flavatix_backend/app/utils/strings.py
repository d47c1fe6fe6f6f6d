# flavatix_backend/app/utils/strings.py

import re
from typing import Optional

# Strip whitespace or convert falsy/nulls to None
def null_to_none_or_strip(x) -> str | None:
    if not x:
        return None
    return str(x).strip() or None

def compact_upper(value: Optional[str], length: int) -> str:
    """First `length` chars, uppercased, with all whitespace removed."""
    return re.sub(r"\s+", "", value or "")[:length].upper()

def keep_id_chars(value: Optional[str]) -> str:
    """Keep only [A-Za-z0-9_-]."""
    return re.sub(r"[^A-Za-z0-9_-]", "", value or "")
