"""
FILE: nexuschain/notifications/router.py
WebSocket endpoint — authenticated or guest sockets, product tracking rooms
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from sqlmodel import Session

from nexuschain.core.dependencies import resolve_token_user
from nexuschain.core.exceptions import ForbiddenError
from nexuschain.notifications.relay import product_room
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
):
    """
    Connect with ?token=<access token> to receive user and role notifications,
    or without one as a guest that can only track products.

    Client frames:
        {"event": "track:product", "productId": "..."}
        {"event": "untrack:product", "productId": "..."}
    """
    manager = websocket.app.state.connections

    user = None
    if token:
        # Short-lived session; the socket itself holds no pooled connection
        with Session(websocket.app.state.engine) as session:
            try:
                user = resolve_token_user(token, session)
            except ForbiddenError:
                await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
                return
            except HTTPException:
                logger.info("WebSocket token rejected, continuing as guest")

    await manager.connect(
        websocket,
        user_id=user.id if user else None,
        role=user.role if user else None,
    )
    logger.info(f"🔌 WebSocket connected: {user.email if user else 'guest'}")

    try:
        while True:
            message = await websocket.receive_json()
            if not isinstance(message, dict):
                continue
            event = message.get("event")
            product_id = message.get("productId")
            if not product_id:
                continue

            if event == "track:product":
                await manager.join(websocket, product_room(product_id))
                await websocket.send_json({"event": "track:product:success", "data": {"productId": product_id}})
            elif event == "untrack:product":
                await manager.leave(websocket, product_room(product_id))
                await websocket.send_json({"event": "untrack:product:success", "data": {"productId": product_id}})
    except WebSocketDisconnect:
        logger.info(f"🔌 WebSocket disconnected: {user.email if user else 'guest'}")
    finally:
        await manager.disconnect(websocket)
