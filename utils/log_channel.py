"""
Admin alerts, sent as a private message to BOT_ADMIN_ID.

Rules:
- Never blocks main flow
- Never crashes if the alert fails (logged, not retried)
- No-op when no admin id is configured
"""
from __future__ import annotations

import html
from typing import Optional

from utils.logger import logger


class AdminNotifier:
    def __init__(self, transport, admin_id: Optional[int]):
        self.transport = transport
        self.admin_id = admin_id

    async def notify(self, text: str) -> bool:
        """Send `text` (HTML) to the admin; True when it went out"""
        if not self.admin_id:
            logger.warning(f"Admin alert dropped, no admin configured: {text[:120]}")
            return False
        try:
            await self.transport.send_text(self.admin_id, text)
            return True
        except Exception as e:
            logger.error(f"Admin alert failed: {type(e).__name__}: {e}")
            return False

    async def archive_unreachable(self, channel_id: int, request_label: str, error: Exception) -> bool:
        return await self.notify(
            "🚨 <b>Archive channel unreachable</b>\n\n"
            f"Channel: <code>{channel_id}</code>\n"
            f"Request: <code>{html.escape(request_label)}</code>\n"
            f"Error: <code>{html.escape(str(error)[:300])}</code>\n\n"
            "Check that the bot is still an admin of the channel."
        )


# Global notifier (initialized after transport is created)
admin_notifier: Optional[AdminNotifier] = None


def init_admin_notifier(transport, admin_id: Optional[int]) -> AdminNotifier:
    global admin_notifier
    admin_notifier = AdminNotifier(transport, admin_id)
    return admin_notifier
