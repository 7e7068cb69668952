# routes/live.py

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

router = APIRouter(tags=["live"])


@router.websocket("/ws")
async def live_rain(websocket: WebSocket):
    monitor = websocket.app.state.monitor

    await websocket.accept()
    await monitor.connect(websocket)
    try:
        # Observers only listen; anything they send is ignored.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return
    finally:
        await monitor.disconnect(websocket)
