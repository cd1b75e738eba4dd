"""
FastAPI application: middleware, routers, error handlers and lifecycle hooks.

Run with ``uvicorn gallery_api.main:app``.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pathlib import Path
import asyncio
import logging
import time

from gallery_api.config import settings
from gallery_api.database import close_db, init_db
from gallery_api.error_handlers import register_exception_handlers
from gallery_api.routes import admin, auth, gallery, health
from gallery_api.utils.rate_limit import limiter

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
)
app.state.limiter = limiter

# The admin console sends the auth cookie, so origins are listed explicitly
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
    max_age=3600,
)


@app.middleware("http")
async def access_log(request: Request, call_next):
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.error(f"{request.method} {request.url.path} failed", exc_info=True)
        raise
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f} ms)")
    return response


register_exception_handlers(app)

app.include_router(health.router)
app.include_router(gallery.router, prefix="/api", tags=["gallery"])
app.include_router(admin.router, prefix="/api")
app.include_router(auth.router, prefix="/api")

# Files written by LocalImageStorage
app.mount(
    settings.UPLOAD_URL_PREFIX,
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="uploads",
)


@app.on_event("startup")
async def startup_event():
    """
    Prepare storage and check the database.
    A database failure is logged; the app still starts and serves health checks.
    """
    logger.info(f"CORS allowed origins: {settings.CORS_ORIGINS}")

    if settings.IMAGE_STORAGE_BACKEND == "local":
        Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)

    if not settings.ADMIN_PASSWORD_HASH:
        logger.warning("ADMIN_PASSWORD_HASH is not set; admin login is disabled")

    try:
        await init_db()
    except Exception as e:
        logger.error(
            f"Database initialization failed: {str(e)}\n"
            f"Database-backed endpoints will return errors until DATABASE_URL is fixed."
        )


@app.on_event("shutdown")
async def shutdown_event():
    try:
        await close_db()
    except Exception as e:
        # Cancellation during shutdown is expected
        if not isinstance(e, (KeyboardInterrupt, asyncio.CancelledError)):
            logger.warning(f"Error during database shutdown: {str(e)}")
