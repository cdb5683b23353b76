import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .config import settings
from .db import apply_migrations, get_store
from .errors import Internal
from .logging_utils import setup_logging
from .middleware.request_context import RequestContextMiddleware
from .repositories import licenses as licenses_repo
from .repositories.store import StoreError
from .routes import (
    access,
    admin,
    auth,
    categories,
    chapters,
    courses,
    enrollments,
    lessons,
    licenses,
    transactions,
)
from .services.config_service import config_cache

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

if settings.sentry_dsn:
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        traces_sample_rate=settings.sentry_traces_sample_rate,
        send_default_pii=False,
    )


async def seed_defaults() -> None:
    inserted = await licenses_repo.seed_default_licenses()
    if inserted:
        logger.info("Seeded default licenses", extra={"count": inserted})
    config_cache.invalidate()
    await config_cache.get()


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = get_store()
    await store.open()
    await apply_migrations(store)
    await seed_defaults()
    try:
        yield
    finally:
        await store.close()


app = FastAPI(title="Learningoo Backend", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_origin_regex=settings.cors_allow_origin_regex,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Authorization",
        "Content-Type",
        "Accept",
        "X-Requested-With",
        "X-Request-ID",
    ],
)
app.add_middleware(RequestContextMiddleware)

app.include_router(auth.router)
app.include_router(access.router)
app.include_router(courses.router)
app.include_router(chapters.router)
app.include_router(lessons.router)
app.include_router(categories.router)
app.include_router(licenses.router)
app.include_router(transactions.router)
app.include_router(enrollments.router)
app.include_router(admin.router)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error("Unhandled record store error", exc_info=exc)
    error = Internal()
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


@app.get("/healthz")
async def healthz():
    return {"ok": True, "message": "Backend responding", "store": settings.store_backend}


@app.get("/readyz")
async def readyz():
    try:
        await get_store().ping()
    except StoreError as exc:
        raise HTTPException(status_code=503, detail="store unavailable") from exc
    return {"ok": True, "store": "ready"}


@app.get("/metrics")
def metrics_endpoint():
    payload = generate_latest()
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)
