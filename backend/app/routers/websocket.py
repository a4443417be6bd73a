"""
WebSocket Router
Real-time streaming of monitor status and fatigue alerts.
"""

import json
import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.services.websocket_manager import ws_manager

logger = logging.getLogger("unplug.ws")

router = APIRouter(tags=["WebSocket"])


@router.websocket("/ws/monitor")
async def websocket_monitor(websocket: WebSocket):
    """
    Monitor status stream.

    Protocol:
    - Server pushes {"type": "status", "signal": "...", "data": {...}} on
      every engine change, and once right after connecting.
    - Client may send {"type": "ping"} → {"type": "pong"}
      or {"type": "reset"} to reset the usage timer.
    """
    await ws_manager.connect(websocket, "monitor")
    monitor = getattr(websocket.app.state, "monitor", None)

    try:
        if monitor is not None:
            await websocket.send_json({"type": "status", "signal": None, "data": monitor.status()})

        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                continue

            msg_type = msg.get("type", "")

            if msg_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if msg_type == "reset" and monitor is not None:
                monitor.reset_usage()
                continue

    except WebSocketDisconnect:
        logger.info("Monitor client disconnected")
    except Exception as e:
        logger.error(f"Monitor WS error: {e}", exc_info=True)
    finally:
        ws_manager.disconnect(websocket, "monitor")


@router.websocket("/ws/alerts")
async def websocket_alerts(websocket: WebSocket):
    """WebSocket endpoint for real-time alert streaming"""
    await ws_manager.connect(websocket, "alerts")
    try:
        while True:
            # Keep connection alive, alerts are pushed via broadcast
            await websocket.receive_text()
    except WebSocketDisconnect:
        ws_manager.disconnect(websocket, "alerts")
