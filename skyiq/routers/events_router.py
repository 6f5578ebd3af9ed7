from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from skyiq.db.unit_of_work import UnitOfWork
from skyiq.dependencies import get_ws_broadcaster

router = APIRouter()


@router.websocket("/ws")
async def dashboard_events(websocket: WebSocket, broadcaster=Depends(get_ws_broadcaster)):
    with UnitOfWork() as uow:
        calls = uow.calls.list_recent(50)

    await broadcaster.connect(websocket, initial={"event": "call_history", "data": {"calls": calls}})
    try:
        # Viewers only listen; drain anything they send until they leave
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(websocket)
