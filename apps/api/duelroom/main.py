from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from duelroom.core.config import auto_create_tables, get_app_version
from duelroom.core.db import db_health, init_db
from duelroom.core.logs import emit
from duelroom.core.storage import ensure_storage_root, get_public_base_url, get_storage_root, storage_health
from duelroom.modules.battles.router import router as battles_router
from duelroom.modules.characters.router import router as characters_router
from duelroom.modules.rooms.router import router as rooms_router
from duelroom.modules.slots.router import router as slots_router
from duelroom.modules.status.router import router as status_router
from duelroom.providers import provider_health


@asynccontextmanager
async def _lifespan(_app: FastAPI):
    ensure_storage_root()
    if auto_create_tables():
        init_db()
    emit("info", "app.startup", "duel rooms api ready", None, __name__, version=get_app_version())
    yield


app = FastAPI(title="Duel Rooms API", version=get_app_version(), lifespan=_lifespan)

# Contract:
# - /health keys: status, version, db, storage, provider, last_error_summary
# - X-Request-Id in/out (missing -> generated; always echoed back; also on errors)
# - Error envelope keys: error, message, request_id, details

_last_error: Optional[str] = None


def _err_envelope(error: str, message: str, request_id: Optional[str], details: Any, status_code: int):
    headers = {}
    if request_id:
        headers["X-Request-Id"] = request_id
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "request_id": request_id,
            "details": details,
        },
        headers=headers,
    )


@app.middleware("http")
async def _request_id_mw(request: Request, call_next):
    rid = request.headers.get("X-Request-Id") or uuid.uuid4().hex.upper()
    request.state.request_id = rid
    emit("info", "http.request.start", f"{request.method} {request.url.path}", rid, __name__)
    try:
        resp = await call_next(request)
    except Exception as e:
        emit("error", "http.request.exception", str(e), rid, __name__)
        raise
    resp.headers["X-Request-Id"] = rid
    emit("info", "http.request.end", f"{request.method} {request.url.path} -> {getattr(resp, 'status_code', None)}", rid, __name__)
    return resp


@app.exception_handler(StarletteHTTPException)
async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
    rid = getattr(request.state, "request_id", None)
    detail = exc.detail
    if isinstance(detail, dict) and "error" in detail:
        # domain errors (duelroom.core.errors) carry their own code and details
        return _err_envelope(detail["error"], str(detail.get("message", "")), rid, detail.get("details"), exc.status_code)
    return _err_envelope("http_error", str(detail), rid, {"status_code": exc.status_code}, exc.status_code)


def _validation_details(exc: RequestValidationError) -> list:
    # pydantic error entries may hold raw exceptions in "ctx"
    out = []
    for err in exc.errors():
        out.append({k: (v if k != "ctx" else {ck: str(cv) for ck, cv in v.items()}) for k, v in err.items()})
    return out


@app.exception_handler(RequestValidationError)
async def _validation_exc_handler(request: Request, exc: RequestValidationError):
    rid = getattr(request.state, "request_id", None)
    return _err_envelope("validation_error", "request validation failed", rid, _validation_details(exc), 400)


@app.exception_handler(Exception)
async def _unhandled_exc_handler(request: Request, exc: Exception):
    global _last_error
    rid = getattr(request.state, "request_id", None)
    _last_error = f"{type(exc).__name__}: {exc}"
    emit("error", "http.unhandled", str(exc), rid, __name__, type=type(exc).__name__)
    return _err_envelope("internal_error", "internal server error", rid, {"type": type(exc).__name__}, 500)


app.include_router(rooms_router)
app.include_router(slots_router)
app.include_router(characters_router)
app.include_router(battles_router)
app.include_router(status_router)

_media_prefix = get_public_base_url().rstrip("/")
if _media_prefix.startswith("/"):
    # absolute base URLs point at an external host; nothing to serve locally
    app.mount(
        _media_prefix,
        StaticFiles(directory=str(get_storage_root()), check_dir=False),
        name="media",
    )


@app.get("/health")
def health():
    db = db_health()
    storage = storage_health()
    provider = provider_health()
    ok = all(part.get("status") == "ok" for part in (db, storage, provider))
    return {
        "status": "ok" if ok else "degraded",
        "version": get_app_version(),
        "db": db,
        "storage": storage,
        "provider": provider,
        "last_error_summary": _last_error,
    }
