"""
ColdGuard Backend Application

FastAPI application serving the signal, sensor and analysis endpoints.
"""

import os
import sys
from contextlib import asynccontextmanager

import log_config  # noqa: F401
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

# Add core to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Import API router
import api
from api import router as api_router

from core.coldguard.reevaluation_service import ReevaluationService

# Settings are loaded now, apply their log level
log_config.setup_logging(api.settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan manager for startup/shutdown."""
    # Startup
    logger.info("ColdGuard starting")

    # Log registered routes
    routes = [
        f"{getattr(route, 'path', '?')} - {getattr(route, 'methods', ['MOUNT'])}"
        for route in app.routes
    ]
    logger.info(f"Registered routes: {routes}")

    # Keep the signal in step with the newest readings
    reevaluation_service = ReevaluationService(
        api.controller,
        api.sensor_buffer,
        interval_seconds=api.settings.reevaluation_interval_seconds,
    )
    await reevaluation_service.start()

    yield

    # Shutdown
    logger.info("ColdGuard shutting down")
    await reevaluation_service.stop()


# Create FastAPI application
app = FastAPI(
    title="ColdGuard API",
    description="Food cold-storage monitoring with a traffic-light signal for an ESP32 board",
    version=api.VERSION,
    lifespan=lifespan,
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Handle all unhandled exceptions gracefully."""
    import traceback

    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    logger.error(f"Unhandled exception: {exc}")
    logger.error(f"Request path: {request.url.path}")
    logger.error(f"Stack trace:\n{tb_str}")

    return JSONResponse(
        status_code=500,
        content={
            "detail": str(exc),
            "type": type(exc).__name__,
            "message": "Internal server error",
        },
    )


# CORS middleware (the dashboard and the board call from other origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)


# For development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
