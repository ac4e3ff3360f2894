"""
FILE: nexuschain/notifications/manager.py
WebSocket connection manager — room-based fan-out
Sockets join rooms keyed by the relay's address strings.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder
from starlette.websockets import WebSocketState

from nexuschain.notifications.relay import BROADCAST, role_room, user_room

logger = logging.getLogger(__name__)


def _is_ws_connected(ws: WebSocket) -> bool:
    return ws.client_state == WebSocketState.CONNECTED and ws.application_state == WebSocketState.CONNECTED


class ConnectionManager:
    """
    Tracks connected sockets and their rooms. Implements the relay Transport.
    No ordering or delivery guarantees beyond a single send_json per socket.
    """

    def __init__(self):
        self.rooms: Dict[str, Set[WebSocket]] = {}
        self._ws_rooms: Dict[WebSocket, Set[str]] = {}
        self._lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        return len(self._ws_rooms)

    async def connect(
        self,
        websocket: WebSocket,
        user_id: Optional[Any] = None,
        role: Optional[Any] = None,
    ) -> None:
        """Accept the socket; authenticated sockets join their user and role rooms."""
        await websocket.accept()
        async with self._lock:
            self._ws_rooms[websocket] = set()
        if user_id is not None:
            await self.join(websocket, user_room(user_id))
        if role is not None:
            await self.join(websocket, role_room(role))

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            for room in self._ws_rooms.pop(websocket, set()):
                members = self.rooms.get(room)
                if members is None:
                    continue
                members.discard(websocket)
                if not members:
                    del self.rooms[room]

    async def join(self, websocket: WebSocket, room: str) -> None:
        async with self._lock:
            if room not in self.rooms:
                self.rooms[room] = set()
            self.rooms[room].add(websocket)
            self._ws_rooms.setdefault(websocket, set()).add(room)

    async def leave(self, websocket: WebSocket, room: str) -> None:
        async with self._lock:
            members = self.rooms.get(room)
            if members is not None:
                members.discard(websocket)
                if not members:
                    del self.rooms[room]
            if websocket in self._ws_rooms:
                self._ws_rooms[websocket].discard(room)

    def members(self, room: str) -> Set[WebSocket]:
        return set(self.rooms.get(room, set()))

    async def send(self, address: str, event: str, payload: Dict[str, Any]) -> None:
        """Send one frame to every socket at address. Dead sockets are dropped."""
        if address == BROADCAST:
            targets = list(self._ws_rooms.keys())
        else:
            targets = list(self.members(address))

        message = jsonable_encoder({"event": event, "data": payload})
        dead: List[WebSocket] = []
        for ws in targets:
            if not _is_ws_connected(ws):
                dead.append(ws)
                continue
            try:
                await ws.send_json(message)
            except Exception as e:
                logger.warning(f"WebSocket send failed on {address}: {e}")
                dead.append(ws)

        for ws in dead:
            await self.disconnect(ws)
