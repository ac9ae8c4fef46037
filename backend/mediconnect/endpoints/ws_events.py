# mediconnect/endpoints/ws_events.py
from fastapi import WebSocket, WebSocketDisconnect

from mediconnect.services.notifier import notifier


async def ws_events(websocket: WebSocket):
    """Live feed of patient, visit and action mutations for every dashboard."""
    await notifier.connect(websocket)
    try:
        while True:
            # clients only listen; anything they send is a keep-alive
            await websocket.receive_text()
    except WebSocketDisconnect:
        notifier.disconnect(websocket)
