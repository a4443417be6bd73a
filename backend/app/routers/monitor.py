"""
UNPLUG Monitor Router
=====================
REST endpoints for the headphone fatigue monitor: status, reset, settings,
alert history and the manual device switch.

Endpoints that touch the engine are ``async`` so they run on the event loop
that owns it.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.alert import FatigueAlert
from app.models.schemas import (
    AlertResponse, DeviceUpdate, MonitorStatus, SettingsResponse, SettingsUpdate,
)
from app.services import preferences_service
from app.services.monitor_service import MonitorService
from app.services.status_presenter import build_settings

logger = logging.getLogger("unplug.monitor.router")

router = APIRouter(prefix="/api/monitor", tags=["Monitor"])


def get_monitor(request: Request) -> MonitorService:
    monitor = getattr(request.app.state, "monitor", None)
    if monitor is None:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Monitor not running")
    return monitor


# ══════════════════════════════════════════════════════════
# Status & control
# ══════════════════════════════════════════════════════════

@router.get("/status", response_model=MonitorStatus)
async def get_status(monitor: MonitorService = Depends(get_monitor)):
    """Current connection, usage and fatigue state"""
    return monitor.status()


@router.post("/reset", response_model=MonitorStatus)
async def reset_timer(monitor: MonitorService = Depends(get_monitor)):
    """Reset usage timer and fatigue"""
    monitor.reset_usage()
    return monitor.status()


@router.post("/device", response_model=MonitorStatus)
async def set_device(data: DeviceUpdate, monitor: MonitorService = Depends(get_monitor)):
    """Simulate headphones being plugged in or out (manual device source only)"""
    try:
        monitor.set_device_active(data.active)
    except TypeError:
        raise HTTPException(
            status.HTTP_409_CONFLICT,
            "Device state is read from hardware; set DEVICE_SOURCE=manual to control it",
        )
    return monitor.status()


# ══════════════════════════════════════════════════════════
# Settings
# ══════════════════════════════════════════════════════════

@router.get("/settings", response_model=SettingsResponse)
async def get_settings(monitor: MonitorService = Depends(get_monitor)):
    return build_settings(monitor.engine.config)


@router.put("/settings", response_model=SettingsResponse)
async def update_settings(
    data: SettingsUpdate,
    monitor: MonitorService = Depends(get_monitor),
    db: Session = Depends(get_db),
):
    """Persist new durations and apply them on the next tick"""
    config = preferences_service.save_config(db, data.warning_threshold, data.recovery_time)
    monitor.update_configuration(config.warning_threshold, config.recovery_time)
    return build_settings(config)


@router.post("/settings/defaults", response_model=SettingsResponse)
async def reset_settings(
    monitor: MonitorService = Depends(get_monitor),
    db: Session = Depends(get_db),
):
    """Restore the default durations (1 hour / 10 minutes)"""
    config = preferences_service.reset_to_defaults(db)
    monitor.update_configuration(config.warning_threshold, config.recovery_time)
    return build_settings(config)


# ══════════════════════════════════════════════════════════
# Alert history
# ══════════════════════════════════════════════════════════

@router.get("/alerts", response_model=List[AlertResponse])
def list_alerts(
    skip: int = 0,
    limit: int = 20,
    db: Session = Depends(get_db),
):
    """List fatigue alerts, newest first"""
    return (
        db.query(FatigueAlert)
        .order_by(FatigueAlert.created_at.desc(), FatigueAlert.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


@router.post("/alerts/{alert_id}/read", response_model=AlertResponse)
def mark_alert_read(alert_id: int, db: Session = Depends(get_db)):
    alert = db.get(FatigueAlert, alert_id)
    if alert is None:
        raise HTTPException(404, "Alert not found")
    alert.is_read = True
    db.commit()
    db.refresh(alert)
    return alert
