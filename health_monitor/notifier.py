"""
Webhook Notification Handler.

============================================================
PURPOSE
============================================================
Send down/recovery alerts to a chat webhook (Lark-style
payload).

PRINCIPLES:
- One POST per alert, no retry
- Delivery failures are logged, never raised to the caller
- Plain-text messages, timestamps in the configured timezone

============================================================
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Optional

import aiohttp

from core.exceptions import NotificationDeliveryError

from .context import MonitorContext
from .models import StatusRecord


logger = logging.getLogger(__name__)


WEBHOOK_TIMEOUT_MS = 5000


# ============================================================
# ALERT MESSAGE FORMATTER
# ============================================================

class AlertFormatter:
    """Formats alert bodies."""

    DOWN_HEADER = "🚨 SERVER DOWN ALERT 🚨"
    DOWN_FOOTER = "Please investigate immediately!"
    UP_HEADER = "✅ SERVER RECOVERY NOTIFICATION ✅"
    UP_FOOTER = "Server is back online!"

    @staticmethod
    def describe_error(record: StatusRecord) -> str:
        """Error line for a down alert."""
        if record.error:
            return record.error
        if record.status_code is not None:
            return f"HTTP {record.status_code}"
        return "No response"

    @classmethod
    def format_down(cls, target: str, record: StatusRecord, last_check: str) -> str:
        """Format a down alert."""
        lines = [
            cls.DOWN_HEADER,
            "",
            f"Server: {target}",
            "Status: DOWN",
            f"Error: {cls.describe_error(record)}",
            f"Consecutive Failures: {record.consecutive_failures}",
            f"Last Check: {last_check}",
            "",
            cls.DOWN_FOOTER,
        ]
        return "\n".join(lines)

    @classmethod
    def format_up(cls, target: str, record: StatusRecord, recovery_time: str) -> str:
        """Format a recovery alert."""
        lines = [
            cls.UP_HEADER,
            "",
            f"Server: {target}",
            "Status: UP",
            f"Status Code: {record.status_code}",
            f"Response Time: {record.response_time_ms}ms",
            f"Recovery Time: {recovery_time}",
            "",
            cls.UP_FOOTER,
        ]
        return "\n".join(lines)

    @staticmethod
    def build_payload(text: str) -> Dict[str, Any]:
        """Webhook JSON body."""
        return {
            "msg_type": "text",
            "content": {"text": text},
        }


# ============================================================
# WEBHOOK NOTIFIER
# ============================================================

class WebhookNotifier:
    """
    Sends alerts to the configured webhook.

    Uses the HTTP session shared through the monitor context.
    """

    def __init__(
        self,
        context: MonitorContext,
        formatter: Optional[AlertFormatter] = None,
    ) -> None:
        self._context = context
        self._formatter = formatter or AlertFormatter()

    @property
    def recovery_enabled(self) -> bool:
        return self._context.config.send_recovery_notifications

    def _timestamp(self, dt: Optional[datetime]) -> str:
        return self._context.local_time(dt)

    async def notify_down(self, target: str, record: StatusRecord) -> bool:
        """
        Send a down alert.

        Returns True if delivered.
        """
        text = self._formatter.format_down(
            target, record, self._timestamp(record.last_check)
        )
        delivered = await self._send(text, "down")
        if delivered:
            logger.info(f"Down alert sent for {target}")
        return delivered

    async def notify_up(self, target: str, record: StatusRecord) -> bool:
        """
        Send a recovery alert.

        Returns False without sending when recovery
        notifications are disabled.
        """
        if not self.recovery_enabled:
            logger.debug(f"Recovery notifications disabled, skipping {target}")
            return False

        text = self._formatter.format_up(
            target, record, self._timestamp(record.last_check)
        )
        delivered = await self._send(text, "up")
        if delivered:
            logger.info(f"Recovery alert sent for {target}")
        return delivered

    async def _send(self, text: str, message_type: str) -> bool:
        """Deliver a message, logging and absorbing delivery errors."""
        try:
            await self._post(self._formatter.build_payload(text), message_type)
            return True
        except NotificationDeliveryError as e:
            logger.error(f"Failed to send {message_type} alert: {e.message}")
            return False

    async def _post(self, payload: Dict[str, Any], message_type: str) -> None:
        """
        POST a payload to the webhook.

        Raises:
            NotificationDeliveryError: transport error or non-2xx status
        """
        session = self._context.require_session()
        timeout = aiohttp.ClientTimeout(total=WEBHOOK_TIMEOUT_MS / 1000)

        try:
            async with session.post(
                self._context.config.webhook_url,
                json=payload,
                timeout=timeout,
            ) as response:
                if 200 <= response.status < 300:
                    return
                body = await response.text()
                raise NotificationDeliveryError(
                    f"Webhook returned {response.status}: {body[:200]}",
                    message_type=message_type,
                    status_code=response.status,
                )

        except asyncio.TimeoutError as e:
            raise NotificationDeliveryError(
                f"Webhook timeout of {WEBHOOK_TIMEOUT_MS}ms exceeded",
                message_type=message_type,
                cause=e,
            ) from e
        except aiohttp.ClientError as e:
            raise NotificationDeliveryError(
                f"Webhook request error: {e}",
                message_type=message_type,
                cause=e,
            ) from e
