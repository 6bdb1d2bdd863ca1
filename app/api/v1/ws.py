"""Real-time venue updates over WebSocket.

Clients connect to ``/v1/ws?venue_id=…&token=…``. The token is optional so
public request displays can follow a venue without signing in.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import sessionmaker

from app.api.deps import Auth, Denylist, Publisher, resolve_access_token
from app.core.database import get_session_factory
from app.core.errors import AuthenticationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])

SessionFactory = Annotated[sessionmaker, Depends(get_session_factory)]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.websocket("/ws")
async def venue_updates(
    websocket: WebSocket,
    session_factory: SessionFactory,
    denylist: Denylist,
    hub: Publisher,
    venue_id: str | None = Query(default=None),
    token: str | None = Query(default=None),
) -> None:
    if not venue_id:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="venue_id required")
        return

    user_id = None
    if token:
        # The session is closed before the socket opens; no connection is held
        # for the lifetime of the feed.
        async with session_factory() as session:
            try:
                auth = await resolve_access_token(token, session, denylist)
                user_id = auth.user_id
            except AuthenticationError:
                logger.warning("WebSocket token rejected for venue %s", venue_id)

    await websocket.accept()
    hub.subscribe(venue_id, websocket)
    logger.info("WebSocket connected to venue %s (user %s)", venue_id, user_id)
    try:
        await websocket.send_json({
            "type": "connected",
            "venue_id": venue_id,
            "authenticated": user_id is not None,
            "timestamp": _now(),
        })
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                logger.warning("Malformed WebSocket message on venue %s", venue_id)
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_json({"type": "pong", "timestamp": _now()})
    except WebSocketDisconnect:
        pass
    finally:
        hub.unsubscribe(venue_id, websocket)
        logger.info("WebSocket disconnected from venue %s", venue_id)


@router.get("/ws/stats")
async def websocket_stats(auth: Auth, hub: Publisher) -> dict:
    """Connection counts per venue."""
    return hub.stats()
