import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root wherever uvicorn is started from
_PROJ_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJ_ROOT / ".env")

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from healthmate.api.auth import router as auth_router
from healthmate.api.chats import router as chat_router
from healthmate.api.reports import router as reports_router
from healthmate.api.vitals import router as vitals_router
from healthmate.core.config import is_openai_configured, settings
from healthmate.core.database import create_db_engine, init_db
from healthmate.logging import setup_logging

setup_logging(level=settings.log_level.upper())
log = logging.getLogger("healthmate")


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = create_db_engine(settings.database_url)
    init_db(engine)
    app.state.engine = engine
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    log.info("OPENAI_API_KEY loaded: %s", "yes" if is_openai_configured() else "NO (chat replies will be placeholders)")
    try:
        yield
    finally:
        engine.dispose()
        log.info("Database engine disposed")


app = FastAPI(
    title="HealthMate API",
    description="Health tracking: accounts, AI chat, medical reports and vitals",
    lifespan=lifespan,
)


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    headers: dict | None = None,
    **extra,
) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    body = {"error": error, "status_code": status_code, **extra}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=status_code, content=body, headers=headers)


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errs = jsonable_encoder(exc.errors())
    log.info("Request validation error (422): path=%s method=%s detail=%s", request.url.path, request.method, errs)
    first = errs[0] if errs else {}
    loc = ".".join(str(p) for p in (first.get("loc") or []) if p != "body")
    msg = first.get("msg") or "Invalid request."
    return _error_response(request, 422, f"{loc}: {msg}" if loc else msg, detail=errs)


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(
        request,
        exc.status_code,
        exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled exception: path=%s %s", request.url.path, exc, exc_info=exc)
    extra = {"message": str(exc)} if settings.is_development else {}
    return _error_response(request, 500, "Internal server error", **extra)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Tags every request with an id (echoed as X-Request-ID) and logs its outcome and duration."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request.state.request_id = request_id
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    response.headers["X-Request-ID"] = request_id
    level = logging.WARNING if response.status_code >= 500 else logging.INFO
    log.log(
        level,
        "%s %s -> %s (%.1f ms) rid=%s",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
        request_id,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)
app.include_router(auth_router)
app.include_router(chat_router)
app.include_router(reports_router)
app.include_router(vitals_router)


@app.get("/api/health")
def health():
    return {
        "status": "ok",
        "message": "HealthMate API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "openai_configured": is_openai_configured(),
    }
