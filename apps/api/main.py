"""
Lighthouse Audit Service - FastAPI Backend
Main application entry point with health check and API routing.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from config import settings
from database import engine, create_schema, wait_for_database
from errors import StatusCodeError
import models  # noqa: F401
from routers import audits, health, websites
from services.audits import drain_background_audits

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    logger.info("Starting Lighthouse Audit Service...")
    await wait_for_database()
    if settings.AUTO_CREATE_DB_SCHEMA:
        await create_schema()
        logger.info("Database schema verified.")
    yield
    # Shutdown
    logger.info("Waiting for running audits to finish...")
    await drain_background_audits()
    await engine.dispose()
    logger.info("Shutting down API...")


app = FastAPI(
    title="Lighthouse Audit Service",
    description="Run Lighthouse audits against URLs and browse their results",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(GZipMiddleware, minimum_size=500)

if settings.USE_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(StatusCodeError)
async def status_code_error_handler(request: Request, exc: StatusCodeError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(audits.router, tags=["Audits"])
app.include_router(websites.router, tags=["Websites"])


def serve() -> None:
    """Run the API under uvicorn on API_HOST:API_PORT."""
    import uvicorn

    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)


if __name__ == "__main__":
    serve()
