# mediconnect/services/notifier.py
import asyncio
import logging
import os
from typing import Any, Dict

from fastapi import WebSocket

logger = logging.getLogger(__name__)

WS_SEND_TIMEOUT = float(os.getenv("WS_SEND_TIMEOUT", "2.0"))

NEW_PATIENT = "NEW_PATIENT"
UPDATE_VISIT = "UPDATE_VISIT"
NEW_ACTION = "NEW_ACTION"
UPDATE_ACTION = "UPDATE_ACTION"


class ConnectionRegistry:
    """Process-wide set of live WebSocket viewers.

    Every client receives every event. Delivery is best-effort: a client whose
    send fails or stalls past ``send_timeout`` is dropped, and nothing is
    queued or replayed for it.
    """

    def __init__(self, send_timeout: float = WS_SEND_TIMEOUT):
        self.send_timeout = send_timeout
        self._clients = set()

    def __len__(self):
        return len(self._clients)

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self._clients.add(websocket)
        logger.info(f"✅ Client {id(websocket)} connected. Total: {len(self._clients)}")

    def disconnect(self, websocket: WebSocket):
        self._clients.discard(websocket)
        logger.info(f"🔌 Client {id(websocket)} disconnected. Total: {len(self._clients)}")

    async def _send(self, websocket, message: Dict[str, Any]):
        try:
            await asyncio.wait_for(websocket.send_json(message), timeout=self.send_timeout)
        except Exception as e:
            self._clients.discard(websocket)
            logger.warning(f"⚠️ Removed client {id(websocket)} due to error: {e!r}")
            await self._close(websocket)

    async def _close(self, websocket):
        # closing tells the viewer to reconnect instead of waiting on a dead feed
        try:
            await asyncio.wait_for(websocket.close(), timeout=self.send_timeout)
        except Exception as e:
            logger.debug(f"Client {id(websocket)} already gone: {e!r}")

    async def broadcast(self, message: Dict[str, Any]):
        clients = list(self._clients)
        if not clients:
            return
        logger.info(f"📡 Broadcasting {message.get('type')} to {len(clients)} clients.")
        await asyncio.gather(*(self._send(ws, message) for ws in clients))


notifier = ConnectionRegistry()


def get_notifier() -> ConnectionRegistry:
    return notifier


def event(event_type: str, key: str, record) -> Dict[str, Any]:
    """Build a broadcast message from a pydantic record."""
    return {"type": event_type, key: record.model_dump(mode="json")}
