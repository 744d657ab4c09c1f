"""FoodyFlow back-office API."""

import json
import logging
import sys
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from foodyflow import models  # noqa: F401  (register tables on Base.metadata)
from foodyflow.api.routes import api_router
from foodyflow.core.cache import cache
from foodyflow.core.config import settings
from foodyflow.core.errors import FoodyFlowError
from foodyflow.core.rate_limit import limiter
from foodyflow.db.base import Base
from foodyflow.db.session import engine

APP_VERSION = "1.0.0"
QUIET_PATHS = frozenset({"/health", "/docs", "/openapi.json"})


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log shippers."""

    def format(self, record):
        payload = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging() -> None:
    """Readable lines while developing, JSON otherwise."""
    if settings.debug:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s"))
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.log_level))


configure_logging()
logger = logging.getLogger(__name__)
request_logger = logging.getLogger("foodyflow.requests")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every API call."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            request_logger.error(
                f"{request.method} {request.url.path} raised after "
                f"{time.perf_counter() - started:.3f}s"
            )
            raise

        elapsed = time.perf_counter() - started
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        request_logger.log(
            level, f"{request.method} {request.url.path} -> {response.status_code} ({elapsed:.3f}s)"
        )
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"FoodyFlow {APP_VERSION} starting")
    if settings.database_url.startswith("sqlite"):
        database = engine.url.database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)
        Base.metadata.create_all(bind=engine)
        logger.info("SQLite schema ready")
    yield
    logger.info("FoodyFlow stopped")


app = FastAPI(
    title="FoodyFlow",
    description="Restaurant back-office: costing, purchase orders and stock",
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url=None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(FoodyFlowError)
async def foodyflow_error_handler(request: Request, exc: FoodyFlowError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.kind}: {exc.reason}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.add_middleware(RequestLoggingMiddleware)
# Added last so it wraps everything else
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)

app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/health")
def health_check():
    return {"status": "healthy", "version": APP_VERSION, "cache": cache.stats()}
