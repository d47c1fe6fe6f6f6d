# flavatix_backend/app/utils/req_id.py
from __future__ import annotations
import os, secrets, string, time

_CODE_ALPHABET = string.ascii_uppercase + string.digits

def new_request_id(prefix: str = "req") -> str:
    return f"{prefix}-{int(time.time()*1000)}-{os.getpid()}"

def new_error_id() -> str:
    return new_request_id("err")

def new_session_code(length: int = 8) -> str:
    # uppercase join code for study sessions
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))
