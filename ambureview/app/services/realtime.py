"""
Realtime fan-out over WebSockets.

Clients subscribe to one ambulance channel; notifications for that
ambulance are pushed to every open connection on the channel.
"""

import asyncio
import json
import logging
from typing import Dict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Per-ambulance WebSocket connection registry."""

    def __init__(self):
        self._connections: Dict[int, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, ambulance_id: int, websocket: WebSocket):
        async with self._lock:
            self._connections.setdefault(ambulance_id, set()).add(websocket)
            logger.info(
                "WebSocket connected to ambulance %s (total: %d)",
                ambulance_id, len(self._connections[ambulance_id])
            )

    async def disconnect(self, ambulance_id: int, websocket: WebSocket):
        async with self._lock:
            channel = self._connections.get(ambulance_id)
            if channel is None:
                return
            channel.discard(websocket)
            logger.info("WebSocket disconnected from ambulance %s (total: %d)", ambulance_id, len(channel))
            if not channel:
                del self._connections[ambulance_id]

    def connection_count(self, ambulance_id: int) -> int:
        return len(self._connections.get(ambulance_id, ()))

    async def send_to_ambulance(self, ambulance_id: int, message: dict) -> int:
        """
        Push a message to every subscriber of an ambulance channel.

        Dead connections are dropped. Returns the number of successful sends.
        """
        async with self._lock:
            connections = set(self._connections.get(ambulance_id, ()))

        if not connections:
            return 0

        message_json = json.dumps(message, default=str)
        failed = []
        delivered = 0

        for websocket in connections:
            try:
                await websocket.send_text(message_json)
                delivered += 1
            except Exception as e:
                logger.warning("Failed to send to ambulance %s WebSocket: %s", ambulance_id, e)
                failed.append(websocket)

        if failed:
            async with self._lock:
                channel = self._connections.get(ambulance_id)
                if channel is not None:
                    for websocket in failed:
                        channel.discard(websocket)

        return delivered


connection_manager = ConnectionManager()
