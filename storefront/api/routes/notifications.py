"""WebSocket route for real-time order notifications."""

import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from storefront.api.middleware.auth import AuthError, decode_jwt
from storefront.core.notifications import get_notification_hub

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hub", tags=["notifications"])


@router.websocket("/notifications")
async def notifications(
    websocket: WebSocket,
    access_token: str = Query(default="", description="Bearer token of the buyer"),
) -> None:
    """Keep a buyer's connection open to receive order notifications.

    Browsers cannot set headers on WebSocket handshakes, so the access token
    comes as a query parameter. Incoming messages are ignored.
    """
    try:
        user = decode_jwt(access_token).to_user_context()
    except AuthError as e:
        logger.warning("Rejected notification connection: %s", e.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    if not user.email:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    hub = get_notification_hub()
    await websocket.accept()
    await hub.connect(user.email, websocket)

    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await hub.disconnect(user.email, websocket)
