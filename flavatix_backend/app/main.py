# flavatix_backend/app/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from flavatix_backend.app.config import APP_ENV, CORS_ORIGINS, DEBUG_MODE, LOG_LEVEL, SEED_DEMO, validate_manifest
from flavatix_backend.app.db.seed import seed_defaults
from flavatix_backend.app.db.session import init_db
from flavatix_backend.app.observability.request_log import request_log_middleware
from flavatix_backend.app.routers import (
    competition,
    flavor_wheels,
    participants,
    profiles,
    reviews,
    social,
    study,
    suggestions,
    tastings,
)
from flavatix_backend.app.services.errors import FlavatixError
from flavatix_backend.app.utils.req_id import new_error_id

# --- Logging -----------------------------------------------------------------
def _configure_logging() -> None:
    root = logging.getLogger("flavatix")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)
    root.setLevel(LOG_LEVEL)

_configure_logging()
log = logging.getLogger("flavatix.main")

app = FastAPI(title="Flavatix API", debug=DEBUG_MODE)

# --- CORS for the web frontend -----------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(request_log_middleware)

# --- Errors ------------------------------------------------------------------
@app.exception_handler(FlavatixError)
async def _flavatix_error(request: Request, exc: FlavatixError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(status_code=400, content={"error": f"{where}: {message}" if where else message})

@app.exception_handler(Exception)
async def _unexpected_error(request: Request, exc: Exception):
    error_id = new_error_id()
    log.exception(f"[{error_id}] unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error", "error_id": error_id})

# --- Include routers under /api ----------------------------------------------
# study before tastings: /tastings/study/* must not be captured by /tastings/{tasting_id}
for _module in (study, tastings, participants, suggestions, competition, social, reviews, profiles, flavor_wheels):
    app.include_router(_module.router, prefix="/api")

@app.on_event("startup")
def _startup():
    init_db()
    manifest = validate_manifest()
    if manifest["status"] != "ok":
        log.warning(f"[startup] lexicon manifest: {manifest}")
    if SEED_DEMO:
        seed_defaults()
    log.info(f"[startup] env={APP_ENV} routes={len(app.router.routes)}")

# --- Health ------------------------------------------------------------------
@app.get("/health")
async def health():
    return {"ok": True}

@app.get("/api/health")
async def api_health():
    # mirror the non-prefixed /health
    return {"ok": True}
