# flavatix_backend/app/observability/request_log.py
from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import Request

from flavatix_backend.app.utils.req_id import new_request_id

log = logging.getLogger("flavatix.requests")

REQUEST_ID_HEADER = "X-Request-ID"

class RequestTrace:
    """
    Timing record for one HTTP request.
    The id is echoed back to the client so log lines can be matched to responses.
    """
    def __init__(self, method: str, path: str, request_id: Optional[str] = None) -> None:
        self._t0 = time.time()
        self.request_id = request_id or new_request_id()
        self.method = method
        self.path = path
        self.status: Optional[int] = None

    def elapsed_ms(self) -> int:
        return int((time.time() - self._t0) * 1000)

async def request_log_middleware(request: Request, call_next):
    trace = RequestTrace(request.method, request.url.path)
    request.state.request_id = trace.request_id
    response = await call_next(request)
    trace.status = response.status_code
    response.headers[REQUEST_ID_HEADER] = trace.request_id
    log.info(f"[{trace.request_id}] {trace.method} {trace.path} -> {trace.status} ({trace.elapsed_ms()}ms)")
    return response
