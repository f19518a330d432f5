"""
WebSocket router for real-time notifications.

Provides a WebSocket endpoint that:
1. Authenticates users via JWT query parameter
2. Maintains persistent connections (private channel per user)
3. Lets clients subscribe to topics such as ``position/{household_id}``
"""

import json
from uuid import UUID

import anyio
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query

from krisefikser.core.security import decode_access_token
from krisefikser.core.websocket import BROADCAST_TOPIC, manager
from krisefikser.db.models import User
from krisefikser.db.session import SessionLocal
from krisefikser.services.user_service import position_topic

router = APIRouter(prefix="/ws", tags=["WebSocket"])


def _current_household_id(user_id: UUID) -> str | None:
    with SessionLocal() as db:
        user = db.get(User, user_id)
        return user.household_id if user else None


async def _may_subscribe(user_id: UUID, topic: str) -> bool:
    if topic == BROADCAST_TOPIC:
        return True
    household_id = await anyio.to_thread.run_sync(_current_household_id, user_id)
    return household_id is not None and topic == position_topic(household_id)


@router.websocket("/notifications")
async def websocket_notifications(
    websocket: WebSocket,
    token: str | None = Query(None),
):
    """
    WebSocket endpoint for real-time notifications.

    Client messages:
    - ``ping`` -> ``pong``
    - ``subscribe:<topic>`` / ``unsubscribe:<topic>``

    Server pushes:
    - notifications (type: 'notification')
    - household member positions (type: 'position_update')
    """
    user_id = None
    if token:
        try:
            payload = decode_access_token(token)
            user_id = UUID(payload["sub"])
        except Exception:
            await websocket.close(code=4001, reason="Invalid token")
            return

    if not user_id:
        await websocket.close(code=4001, reason="Authentication required")
        return

    await manager.connect(websocket, user_id)

    try:
        while True:
            try:
                data = await websocket.receive_text()
            except WebSocketDisconnect:
                break

            if data == "ping":
                await websocket.send_text("pong")
            elif data.startswith("subscribe:"):
                topic = data.removeprefix("subscribe:").strip()
                if await _may_subscribe(user_id, topic):
                    await manager.subscribe(websocket, topic)
                    await websocket.send_text(json.dumps({"type": "subscribed", "topic": topic}))
                else:
                    await websocket.send_text(
                        json.dumps({"type": "error", "detail": f"Cannot subscribe to {topic}"})
                    )
            elif data.startswith("unsubscribe:"):
                topic = data.removeprefix("unsubscribe:").strip()
                await manager.unsubscribe(websocket, topic)
                await websocket.send_text(json.dumps({"type": "unsubscribed", "topic": topic}))
    finally:
        await manager.disconnect(websocket, user_id)
