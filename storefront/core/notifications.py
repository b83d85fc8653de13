"""Real-time notification hub over WebSockets."""

import asyncio
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)

ORDER_COMPLETE_EVENT = "OrderCompleteNotification"


class NotificationHub:
    """Tracks one live WebSocket connection per buyer email.

    A newer connection for the same email replaces the older one.
    """

    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def _key(email: str) -> str:
        return email.strip().lower()

    async def connect(self, email: str, websocket: WebSocket) -> None:
        """Register an accepted connection for a buyer."""
        async with self._lock:
            self._connections[self._key(email)] = websocket
        logger.debug("Notification connection registered for %s", email)

    async def disconnect(self, email: str, websocket: WebSocket) -> None:
        """Drop a buyer's connection if it is still the registered one."""
        key = self._key(email)
        async with self._lock:
            if self._connections.get(key) is websocket:
                del self._connections[key]
        logger.debug("Notification connection removed for %s", email)

    def get_connection(self, email: str) -> WebSocket | None:
        """Get the live connection for a buyer, if any."""
        return self._connections.get(self._key(email))

    def connection_count(self) -> int:
        return len(self._connections)

    async def send_order_complete(self, email: str, order: dict[str, Any]) -> bool:
        """Push the finalized order to the buyer's live connection.

        Delivery is best-effort: a missing connection or a send failure is
        logged and reported as False, never raised.

        Args:
            email: Buyer email identifying the connection.
            order: JSON-serializable order payload.

        Returns:
            bool: True if the message was handed to the socket.
        """
        websocket = self.get_connection(email)
        if websocket is None:
            logger.debug("No live connection for %s, skipping notification", email)
            return False

        try:
            await websocket.send_json({"type": ORDER_COMPLETE_EVENT, "order": order})
        except Exception as e:
            logger.warning("Failed to notify %s of order completion: %s", email, str(e))
            await self.disconnect(email, websocket)
            return False

        logger.info("Sent %s to %s", ORDER_COMPLETE_EVENT, email)
        return True


# Global hub instance
_notification_hub: NotificationHub | None = None


def get_notification_hub() -> NotificationHub:
    """Get or create the global notification hub."""
    global _notification_hub
    if _notification_hub is None:
        _notification_hub = NotificationHub()
    return _notification_hub
