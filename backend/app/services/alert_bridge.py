"""
UNPLUG Alert Bridge Service
===========================
Funnels fatigue warnings raised by the engine into the ``fatigue_alerts``
table, the ``"alerts"`` WebSocket channel and Telegram.

Every step fails soft: a broken database or network never reaches the
engine that raised the warning.
"""

import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session as SASession

from app.core import database
from app.models.alert import FatigueAlert
from app.services.websocket_manager import ws_manager
from app.services.telegram_service import get_telegram_service

logger = logging.getLogger("unplug.bridge")


def persist_alerts(alerts: List[Dict[str, Any]]) -> int:
    """
    Write alerts to the ``fatigue_alerts`` table. Stores the new row id back
    into each alert dict. Returns the number of alerts persisted.
    """
    if not alerts:
        return 0

    db: SASession = database.SessionLocal()
    rows = []
    try:
        for a in alerts:
            row = FatigueAlert(
                alert_type=a["alert_type"],
                severity=a["severity"],
                message=a["message"],
                fatigue_level=a.get("fatigue_level", 0.0),
                usage_duration=a.get("usage_duration", 0.0),
            )
            db.add(row)
            rows.append(row)
        db.commit()
        for a, row in zip(alerts, rows):
            a["id"] = row.id
        logger.debug(f"Persisted {len(rows)} fatigue alert(s)")
        return len(rows)
    except Exception as exc:
        logger.error(f"Failed to persist fatigue alerts: {exc}")
        db.rollback()
        return 0
    finally:
        db.close()


async def broadcast_alerts(alerts: List[Dict[str, Any]]) -> None:
    """Broadcast each alert on the ``"alerts"`` WebSocket channel."""
    for alert_data in alerts:
        try:
            await ws_manager.send_alert(alert_data)
            logger.debug(
                f"Broadcast fatigue alert: {alert_data.get('alert_type')} "
                f"[{alert_data.get('severity')}]"
            )
        except Exception as exc:
            logger.warning(f"Failed to broadcast fatigue alert: {exc}")


async def notify_telegram(alerts: List[Dict[str, Any]]) -> None:
    """Send alerts to Telegram. No-op when Telegram is not configured."""
    telegram = get_telegram_service()
    if not telegram.enabled:
        return

    for alert_data in alerts:
        try:
            await telegram.send_fatigue_alert(alert_data)
        except Exception as exc:
            logger.debug(f"Telegram fatigue alert skipped: {exc}")


async def persist_and_broadcast(alerts: List[Dict[str, Any]]) -> int:
    """
    Convenience wrapper: persist to DB → broadcast on WebSocket → notify
    via Telegram. Returns the number of alerts persisted.
    """
    count = persist_alerts(alerts)
    await broadcast_alerts(alerts)
    await notify_telegram(alerts)
    return count
