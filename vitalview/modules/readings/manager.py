import json
from typing import Any, List

import structlog
from fastapi import WebSocket

log = structlog.get_logger()


class VitalConnectionManager:
    """Realtime viewers of stored readings."""

    def __init__(self) -> None:
        self.connections: List[WebSocket] = []

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.connections.append(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self.connections:
            self.connections.remove(websocket)

    async def broadcast(self, payload: dict[str, Any]) -> int:
        """Send ``payload`` to every viewer, dropping sockets that fail; returns deliveries."""
        message = json.dumps(payload, default=str)
        delivered = 0
        for connection in list(self.connections):
            try:
                await connection.send_text(message)
                delivered += 1
            except Exception as exc:
                log.info("dropping dead vitals websocket", error=str(exc))
                self.disconnect(connection)
        return delivered
