"""
UNPLUG WebSocket Manager
Handles real-time streaming of monitor status and alerts.
"""

import logging
from typing import Dict, Set
from fastapi import WebSocket

logger = logging.getLogger("unplug.websocket")


class ConnectionManager:
    """Manages WebSocket connections for real-time streaming"""

    def __init__(self):
        # Channel-based connections
        self.active_connections: Dict[str, Set[WebSocket]] = {
            "monitor": set(),
            "alerts": set(),
        }

    async def connect(self, websocket: WebSocket, channel: str = "monitor"):
        await websocket.accept()
        if channel not in self.active_connections:
            self.active_connections[channel] = set()
        self.active_connections[channel].add(websocket)
        logger.info(f"Client connected to channel: {channel} (total: {len(self.active_connections[channel])})")

    def disconnect(self, websocket: WebSocket, channel: str = "monitor"):
        if channel in self.active_connections:
            self.active_connections[channel].discard(websocket)
        logger.info(f"Client disconnected from channel: {channel}")

    async def broadcast_to_channel(self, channel: str, message: dict):
        """Send message to all clients on a channel"""
        if channel not in self.active_connections:
            return

        dead = set()
        for ws in list(self.active_connections[channel]):
            try:
                await ws.send_json(message)
            except Exception:
                dead.add(ws)

        for ws in dead:
            self.active_connections[channel].discard(ws)

    async def send_alert(self, alert: dict):
        """Broadcast alert to alert channel"""
        await self.broadcast_to_channel("alerts", {
            "type": "alert",
            "data": alert
        })

    async def send_status(self, status: dict, signal: str = None):
        """Send monitor status to the monitor channel"""
        await self.broadcast_to_channel("monitor", {
            "type": "status",
            "signal": signal,
            "data": status
        })

    @property
    def total_connections(self) -> int:
        return sum(len(conns) for conns in self.active_connections.values())


# Global instance
ws_manager = ConnectionManager()
