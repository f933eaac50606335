"""
FastAPI application entry point for Careo medication rounds.

IMPORTANT: This file should ONLY handle HTTP request/response logic.
The daily generation scheduler runs in the separate worker.py process, so
scaling the API never multiplies scheduled runs.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .constants import APPLICATION_NAME, APPLICATION_VERSION
from .database import async_db
from .enums import LogEmoji, LoggerName, LogSource
from .routers import health_routers as health
from .routers import intake_routers as intake
from .routers import medication_order_routers as medication_orders
from .services.logger import get_service_logger, initialize_global_logger

logger = get_service_logger(LoggerName.SYSTEM, LogSource.API)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Handle application startup and shutdown"""
    initialize_global_logger(
        log_level=settings.log_level,
        logs_directory=settings.logs_directory,
        log_file=settings.log_file,
    )

    logger.info(
        "Starting FastAPI application",
        extra_context={
            "environment": settings.environment,
            "api_host": settings.api_host,
            "api_port": settings.api_port,
            "facility_timezone": settings.facility_timezone,
        },
        emoji=LogEmoji.STARTUP,
    )

    await async_db.initialize()

    yield

    logger.info("Shutting down FastAPI application", emoji=LogEmoji.SHUTDOWN)
    await async_db.close()
    logger.info("Database connections closed")


app = FastAPI(
    title="Careo API",
    redirect_slashes=True,
    description="Medication scheduling and daily intake record generation",
    version=APPLICATION_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(intake.router, prefix="/api", tags=["intake"])
app.include_router(
    medication_orders.router, prefix="/api", tags=["medication-orders"]
)
app.include_router(health.router, prefix="/api", tags=["health"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {"message": APPLICATION_NAME, "version": APPLICATION_VERSION, "docs": "/docs"}


if __name__ == "__main__":
    uvicorn.run(
        "careo.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.value.lower(),
    )
