"""
WebSocket endpoint for live ambulance alerts.

Clients connect to /ws/ambulances/{ambulance_id}?token=<jwt> and receive
every notification dispatched for that ambulance as a JSON text frame.
Incoming frames are ignored apart from "ping", which is answered with "pong".
"""

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.jwt import decode_access_token
from ambureview.app.core.token_revocation import is_token_revoked, are_user_tokens_revoked
from ambureview.app.db.session import get_db
from ambureview.app.models.enums import UserRole
from ambureview.app.models.user import User
from ambureview.app.services.realtime import connection_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])

# Application-defined close codes
CLOSE_UNAUTHORIZED = 4401
CLOSE_FORBIDDEN = 4403


def _extract_token(websocket: WebSocket):
    token = websocket.query_params.get("token")
    if token:
        return token
    auth = websocket.headers.get("authorization")
    if auth and auth.lower().startswith("bearer "):
        return auth.split(" ", 1)[1]
    return None


async def _authorize(websocket: WebSocket, ambulance_id: int, db: AsyncSession):
    """Close code when the socket must be refused, else None."""
    token = _extract_token(websocket)
    payload = decode_access_token(token) if token else None
    if not payload or not payload.get("user_id"):
        return CLOSE_UNAUTHORIZED
    if await is_token_revoked(token) or await are_user_tokens_revoked(payload["user_id"]):
        return CLOSE_UNAUTHORIZED

    user = await db.get(User, payload["user_id"])
    if user is None or not user.is_active:
        return CLOSE_UNAUTHORIZED
    if user.role == UserRole.USER and user.assigned_ambulance_id != ambulance_id:
        return CLOSE_FORBIDDEN
    return None


@router.websocket("/ws/ambulances/{ambulance_id}")
async def ambulance_socket(websocket: WebSocket, ambulance_id: int, db: AsyncSession = Depends(get_db)):
    close_code = await _authorize(websocket, ambulance_id, db)
    if close_code is not None:
        await websocket.close(code=close_code)
        return

    await websocket.accept()
    await connection_manager.connect(ambulance_id, websocket)
    try:
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        pass
    finally:
        await connection_manager.disconnect(ambulance_id, websocket)
