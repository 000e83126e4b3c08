"""Telegram Bot API notifier.

Sends HTML messages to the boss and employee group chats. Delivery is
best-effort: failures are logged and reported as ``False`` so that a
Telegram outage never fails a business request.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from functools import lru_cache
from typing import Any, Literal

import httpx

from app.core.config import Settings, get_settings
from app.core.logging import get_logger
from app.features.notifications import messages

logger = get_logger(__name__)


class TelegramNotifier:
    """Async client for the Telegram ``sendMessage`` method.

    The underlying ``httpx.AsyncClient`` is created lazily and reused.
    Pass ``transport`` to route requests elsewhere (e.g. ``httpx.MockTransport``).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize notifier.

        Args:
            settings: Settings to read the bot token and chat ids from.
            transport: Optional httpx transport override.
        """
        self.settings = settings or get_settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def enabled(self) -> bool:
        """Whether a bot token and at least one chat are configured."""
        return self.settings.telegram_enabled

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.telegram_api_base,
                timeout=httpx.Timeout(self.settings.telegram_timeout_seconds, connect=5.0),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # =========================================================================
    # Transport
    # =========================================================================

    async def send_message(self, chat_id: str, text: str) -> bool:
        """Send one message to a chat.

        Args:
            chat_id: Telegram chat id.
            text: HTML message text.

        Returns:
            True when Telegram accepted the message.
        """
        if not self.enabled or not chat_id:
            logger.debug("notifications.send_skipped", chat_id=chat_id or None)
            return False

        payload: dict[str, Any] = {"chat_id": chat_id, "text": text, "parse_mode": "HTML"}
        try:
            response = await self._get_client().post(
                f"/bot{self.settings.telegram_bot_token}/sendMessage",
                json=payload,
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "notifications.send_failed",
                chat_id=chat_id,
                status_code=e.response.status_code,
                error=e.response.text[:200],
            )
            return False
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(
                "notifications.send_failed",
                chat_id=chat_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if not body.get("ok"):
            logger.warning(
                "notifications.send_rejected",
                chat_id=chat_id,
                description=body.get("description"),
            )
            return False

        logger.info("notifications.message_sent", chat_id=chat_id, length=len(text))
        return True

    async def broadcast(self, boss_text: str, employee_text: str | None = None) -> dict[str, bool]:
        """Send the boss and employee variants concurrently.

        Args:
            boss_text: Detailed message for the boss group.
            employee_text: Short message for the employee group (optional).

        Returns:
            Delivery result per group.
        """
        targets: dict[str, tuple[str, str]] = {
            "boss": (self.settings.telegram_boss_chat_id, boss_text),
        }
        if employee_text is not None:
            targets["employee"] = (self.settings.telegram_employee_chat_id, employee_text)

        results = await asyncio.gather(
            *(self.send_message(chat_id, text) for chat_id, text in targets.values())
        )
        return dict(zip(targets.keys(), results, strict=True))

    # =========================================================================
    # Business notifications
    # =========================================================================

    async def notify_login(self, **fields: Any) -> dict[str, bool]:
        """Login record to the boss group. See ``messages.format_login``."""
        return await self.broadcast(messages.format_login(**fields))

    async def notify_attendance(self, **fields: Any) -> dict[str, bool]:
        """Clock-in/out to both groups. See ``messages.format_attendance``."""
        return await self.broadcast(*messages.format_attendance(**fields))

    async def notify_revenue(self, **fields: Any) -> dict[str, bool]:
        """Revenue record to both groups. See ``messages.format_revenue``."""
        return await self.broadcast(*messages.format_revenue(**fields))

    async def notify_order(self, **fields: Any) -> dict[str, bool]:
        """Order placed, grouped by supplier. See ``messages.format_order``."""
        return await self.broadcast(*messages.format_order(**fields))

    async def notify_inventory_alert(self, **fields: Any) -> dict[str, bool]:
        """Low/out-of-stock alert. See ``messages.format_inventory_alert``."""
        return await self.broadcast(*messages.format_inventory_alert(**fields))

    async def notify_order_frequency(self, **fields: Any) -> dict[str, bool]:
        """Order-frequency anomaly. See ``messages.format_order_frequency_alert``."""
        return await self.broadcast(*messages.format_order_frequency_alert(**fields))

    async def notify_maintenance_request(self, **fields: Any) -> dict[str, bool]:
        """New maintenance request. See ``messages.format_maintenance_request``."""
        return await self.broadcast(*messages.format_maintenance_request(**fields))

    async def notify_maintenance_status(self, **fields: Any) -> dict[str, bool]:
        """Maintenance status change. See ``messages.format_maintenance_status``."""
        return await self.broadcast(messages.format_maintenance_status(**fields))

    async def send_flight_report(
        self,
        title: str,
        lines: list[str],
        status: Literal["success", "warning", "failure"] = "success",
        finished_at: datetime | None = None,
    ) -> dict[str, bool]:
        """Push a task status block to the boss group."""
        return await self.broadcast(
            messages.format_flight_report(title, lines, status=status, finished_at=finished_at)
        )


@lru_cache
def get_notifier() -> TelegramNotifier:
    """Get cached notifier singleton (FastAPI dependency)."""
    return TelegramNotifier()
