"""
FastAPI application factory for the bucket budget API.

Usage:
    python -m api.app                           # Dev server on port 3000
    APP_STORE=memory python -m api.app          # No database file
    APP_DB_PATH=/data/budget.sqlite python -m api.app

OpenAPI docs available at http://localhost:3000/docs after starting.

APP-002: Every request runs under a deadline (APP_REQUEST_TIMEOUT); overruns return 504.
APP-003: Structured JSON logging when APP_LOG_FORMAT=json.
APP-004: CORS middleware with configurable origins via APP_CORS_ORIGINS.
APP-005: The store is injected (create_app(store=...) or APP_STORE) and
         reached by handlers through app.state.store.
"""

import asyncio
import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from api.errors import BudgetAPIError, StoreUnavailableError
from api.models import ErrorResponse
from api.routes import admin, bucket_items, buckets, categories, template_items, templates
from api.store import Store, build_store
from utils.config import AppConfig

# ── Configuration ─────────────────────────────────────────────────────────────
_cfg = AppConfig.from_env()

# ── APP-003: Structured JSON logging ─────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields added via logger.info("...", extra={...})
        for key in ("method", "path", "status", "duration_ms", "request_id"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data)


_logger = logging.getLogger("bucket_budget_api")
_handler = logging.StreamHandler()
if _cfg.log_format == "json":
    _handler.setFormatter(_JsonFormatter())
else:
    _handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
logging.basicConfig(handlers=[_handler], level=logging.INFO, force=True)

_SLOW_REQUEST_MS = 500


def _error_response(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, detail=detail, status_code=status_code)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Make sure the schema exists on startup and release the store on shutdown."""
    store: Store = app.state.store
    _logger.info("Starting with settings %s", app.state.config.to_dict())
    try:
        store.create_schema()
    except StoreUnavailableError as exc:
        _logger.warning("Store not ready at startup: %s", exc.detail)
    yield
    store.close()


def create_app(
    store: Store | None = None,
    db_path: Path | None = None,
    config: AppConfig | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Store to serve from.  Built from the config when omitted.
        db_path: Override the SQLite path (useful for testing).
        config: Settings; read from the environment when omitted.

    Returns:
        Configured FastAPI application instance.
    """
    cfg = config or AppConfig.from_env()
    if store is None:
        store = build_store(cfg.store, db_path or cfg.db_path, cfg.pool_size)

    app = FastAPI(
        title="Bucket Budget API",
        summary="REST API for envelope-style personal budgeting.",
        description=(
            "## Bucket Budget API\n\n"
            "Money is tracked in **buckets** grouped by **category**.  Each "
            "deposit or withdrawal is a **bucket item**.  **Templates** hold "
            "reusable sets of **template items** (e.g. how a paycheck is split).\n\n"
            "### Conventions\n"
            "- JSON keys are short: `d` deposit, `w` withdraw, `bid` bucket id, "
            "`tid` template id, `trans` transaction time.\n"
            "- Amounts are decimal with two places.\n"
            "- Names are stored lower-case.\n"
            "- Ids are assigned by the server; a client-sent `id` is ignored."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "categories", "description": "Top-level groupings of buckets."},
            {"name": "buckets", "description": "Buckets and their running balances."},
            {
                "name": "bucket-items",
                "description": "Deposits and withdrawals; filterable by bucket, date and name.",
            },
            {"name": "templates", "description": "Named, reusable sets of template items."},
            {"name": "template-items", "description": "Planned deposits and withdrawals."},
            {"name": "admin", "description": "Create, drop and seed the schema."},
            {"name": "meta", "description": "Health check."},
        ],
    )
    app.state.store = store
    app.state.config = cfg

    # ── APP-004: CORS middleware ───────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── APP-002: Request deadline ─────────────────────────────────────────────

    @app.middleware("http")
    async def enforce_deadline(request: Request, call_next):
        """Abort the request with 504 when it runs past the configured timeout."""
        try:
            return await asyncio.wait_for(call_next(request), timeout=cfg.request_timeout)
        except asyncio.TimeoutError:
            _logger.warning(
                "deadline_exceeded method=%s path=%s timeout_s=%.1f",
                request.method, request.url.path, cfg.request_timeout,
            )
            return _error_response(
                504, "Request timed out", f"No response within {cfg.request_timeout:g}s"
            )

    # ── Request logging middleware ────────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request and tag the response with a request id."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        path = request.url.path

        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        if cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f rid=%s",
                request.method, path, response.status_code, duration_ms, request_id,
            )
        if duration_ms > _SLOW_REQUEST_MS:
            _logger.warning(
                "slow_request method=%s path=%s duration_ms=%.1f",
                request.method, path, duration_ms,
            )
        return response

    # ── Error handling ────────────────────────────────────────────────────────

    @app.exception_handler(BudgetAPIError)
    async def budget_error_handler(request: Request, exc: BudgetAPIError):
        if exc.status_code >= 500:
            _logger.error("%s %s: %s", request.method, request.url.path, exc)
        return _error_response(exc.status_code, exc.error, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _error_response(400, "Invalid request", _summarize(exc.errors()))

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError):
        return _error_response(400, "Invalid request", _summarize(exc.errors()))

    @app.exception_handler(ResponseValidationError)
    async def response_validation_handler(request: Request, exc: ResponseValidationError):
        _logger.error("Response validation failed on %s: %s", request.url.path, exc.errors())
        return _error_response(422, "Error rendering response", _summarize(exc.errors()))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of HTML traceback."""
        _logger.error(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return _error_response(500, "Internal server error", str(exc))

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 OK if the store is reachable, with row counts per table."""
        try:
            counts = store.counts()
        except StoreUnavailableError as exc:
            return JSONResponse(
                status_code=503,
                content={"status": "degraded", "store": store.backend, "error": exc.detail},
            )
        return {"status": "ok", "store": store.backend, "counts": counts}

    # ── Register routers ──────────────────────────────────────────────────────

    app.include_router(categories.router)
    app.include_router(buckets.router)
    app.include_router(bucket_items.router)
    app.include_router(templates.router)
    app.include_router(template_items.router)
    app.include_router(admin.router)

    return app


def _summarize(errors) -> str:
    """Flatten pydantic error dicts into one readable line."""
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


# Singleton instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.app:app",
        host=_cfg.api_host,
        port=_cfg.api_port,
        reload=True,
        log_level="info",
    )
