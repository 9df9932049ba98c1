import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request

from .api import devices
from .dependencies import (
    get_device_manager,
    get_device_monitor,
    get_settings,
)
from .logging_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    settings = get_settings()
    setup_logging(settings)

    config_info = settings.config_file_info
    logging.info(f"Configuration loaded from: {config_info['active_config_file']}")
    logging.info(f"Running on hostname: {config_info['hostname']}")
    if len(config_info["all_available_configs"]) > 1:
        logging.info(
            f"Available config files: {', '.join(config_info['all_available_configs'])}"
        )

    logging.info("Media Ingest Agent starting up...")
    logging.info(f"Destination root: {settings.destination_path}")
    logging.info(f"Classification pattern: {settings.classification_pattern}")

    device_monitor = None
    if settings.device_detection_enabled:
        device_monitor = get_device_monitor()
        await device_monitor.start_monitoring()
    else:
        logging.info("Device detection disabled - status API only")

    yield

    logging.info("Media Ingest Agent shutting down...")

    if device_monitor is not None:
        await device_monitor.stop_monitoring()
    await get_device_manager().wait_for_notifications()

    logging.info("Device monitoring stopped")


app = FastAPI(
    title="Media Ingest Agent",
    description="Ingests removable media into an organized destination tree",
    version="0.1.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logging.debug(f"Incoming request: {request.method} {request.url.path}")
    response = await call_next(request)
    logging.debug(f"Response: {response.status_code} for {request.url.path}")
    return response


app.include_router(devices.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "service": "media-ingest-agent"}


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "media_ingest.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level="info",
    )
