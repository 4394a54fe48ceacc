# studio/main.py
import time
import uuid
from pathlib import Path

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from studio.config import settings
from studio.core.logging_config import logger, setup_logging
from studio.db import Base, engine
from studio import models  # noqa: F401  (registers SQLAlchemy models)
from studio.observability.metrics import latency_hist, router as metrics_router
from studio.pricing.errors import InvalidSelection
from studio.repositories.estimates import EstimateNotFound, ImmutableFieldError
from studio.routers import estimates, pricing, tenant
from studio.workflow.status import InvalidTransition

# ----------------------------------------------------
# App init
# ----------------------------------------------------
app = FastAPI(title="Studio Estimates", version="0.1.0")

setup_logging()
logger.info("startup", service=settings.app_name, env=settings.app_env)


# ----------------------------------------------------
# Health
# ----------------------------------------------------
@app.get("/health", include_in_schema=True)
def health() -> dict:
    return {"status": "ok"}


# ----------------------------------------------------
# Logging middleware
# ----------------------------------------------------
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    start = time.time()

    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    tenant_id = request.headers.get("X-Tenant-Id", "unknown")
    client_ip = request.client.host if request.client else "unknown"

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)

    bound_logger = logger.bind(
        tenant_id=tenant_id,
        ip=client_ip,
        endpoint=str(request.url.path),
        method=request.method,
    )

    bound_logger.info("request_started")
    response = await call_next(request)
    elapsed = time.time() - start

    route = request.scope.get("route")
    latency_hist.labels(route=getattr(route, "path", "unmatched")).observe(elapsed)

    bound_logger.bind(
        status_code=response.status_code, latency_ms=round(elapsed * 1000, 2)
    ).info("request_finished")
    response.headers["X-Request-ID"] = request_id
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----------------------------------------------------
# Error mapping
# ----------------------------------------------------
@app.exception_handler(InvalidSelection)
def invalid_selection_handler(request: Request, exc: InvalidSelection):
    logger.bind(code=exc.code, field=exc.field).info("invalid_selection")
    return JSONResponse(status_code=422, content={"detail": exc.to_dict()})


@app.exception_handler(InvalidTransition)
def invalid_transition_handler(request: Request, exc: InvalidTransition):
    return JSONResponse(status_code=409, content={"detail": exc.to_dict()})


@app.exception_handler(EstimateNotFound)
def not_found_handler(request: Request, exc: EstimateNotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ImmutableFieldError)
def immutable_field_handler(request: Request, exc: ImmutableFieldError):
    return JSONResponse(
        status_code=400, content={"detail": {"code": "IMMUTABLE_FIELD", "fields": exc.fields}}
    )


# ----------------------------------------------------
# Routers
# ----------------------------------------------------
app.include_router(pricing.router)
app.include_router(estimates.router)
app.include_router(tenant.router)
if settings.metrics_enabled:
    app.include_router(metrics_router)  # /metrics

# local backend: stored documents are served where LocalStorage.public_url points
if (settings.storage_backend or "local").lower() == "local":
    Path(settings.local_storage_path).mkdir(parents=True, exist_ok=True)
    app.mount("/files", StaticFiles(directory=settings.local_storage_path), name="files")


# ----------------------------------------------------
# Startup
# ----------------------------------------------------
@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
