"""Main FastAPI application."""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from ux_integrations.core.config import get_settings
from ux_integrations.core.database import database
from ux_integrations.api import health, integrations, webhooks
from ux_integrations.api.dependencies import storage
from ux_integrations.utils.logging import setup_logging

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

# Get settings
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting up integrations service...")
    logger.info(f"Environment: {settings.environment}, storage: {settings.storage_backend}")
    if settings.storage_backend != "memory":
        await database.connect()
    storage.configure()

    yield

    # Shutdown
    logger.info("Shutting down integrations service...")
    await storage.close()
    if settings.storage_backend != "memory":
        await database.disconnect()


# Create FastAPI app
app = FastAPI(
    title="UX Integrations Service",
    description="Connects projects to analytics and behavior providers and keeps their data in sync",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    if isinstance(exc.detail, dict):
        content = {"success": False, **exc.detail}
    else:
        content = {"success": False, "error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": "Validation error",
            "details": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "Internal server error"},
    )


# Include routers; static paths come before /{integration_id}
app.include_router(health.router, tags=["health"])
app.include_router(
    webhooks.router,
    prefix="/api/v1/integrations",
    tags=["webhooks"]
)
app.include_router(
    integrations.router,
    prefix="/api/v1/integrations",
    tags=["integrations"]
)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "ux_integrations.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
    )
