"""
UNPLUG - FastAPI Application Entry Point
Headphone ear-fatigue monitor
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.database import SessionLocal, init_db
from app.services import preferences_service
from app.services.monitor_service import create_monitor_service
from app.services.websocket_manager import ws_manager
from app.utils.logger import setup_logging

# Setup logging
setup_logging("DEBUG" if settings.DEBUG else "INFO")
logger = logging.getLogger("unplug.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle manager"""
    logger.info("=" * 60)
    logger.info("  UNPLUG Ear Fatigue Monitor - Starting")
    logger.info("=" * 60)

    init_db()
    logger.info("Database initialized")

    db = SessionLocal()
    try:
        config = preferences_service.load_config(db)
    finally:
        db.close()

    monitor = create_monitor_service(config)
    app.state.monitor = monitor
    await monitor.start()

    logger.info(f"Environment: {settings.UNPLUG_ENV}")
    logger.info(f"Device source: {settings.DEVICE_SOURCE}")
    logger.info(
        f"Warning threshold: {config.warning_threshold:.0f}s, "
        f"recovery time: {config.recovery_time:.0f}s"
    )
    logger.info("UNPLUG is ready!")
    logger.info("=" * 60)

    yield

    logger.info("UNPLUG shutting down...")
    await monitor.stop()
    app.state.monitor = None


# Create FastAPI app
app = FastAPI(
    title="UNPLUG - Ear Fatigue Monitor",
    description="Tracks headphone listening time and warns before ear fatigue sets in",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
from app.routers import monitor, websocket  # noqa: E402

app.include_router(monitor.router)
app.include_router(websocket.router)


# Health check endpoint
@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "service": "UNPLUG",
        "version": "1.0.0",
        "device_source": settings.DEVICE_SOURCE,
        "websocket_clients": ws_manager.total_connections,
    }


@app.get("/api/info")
def api_info():
    return {
        "name": "UNPLUG API",
        "version": "1.0.0",
        "description": "Headphone Ear Fatigue Monitor",
        "endpoints": {
            "monitor": "/api/monitor",
            "websocket_monitor": "/ws/monitor",
            "websocket_alerts": "/ws/alerts",
            "health": "/health",
        }
    }
