"""
Discord notifier - posts matched concerts to a channel webhook.
"""

import asyncio
import logging
from typing import List, Optional

from core.infra.http import HttpClient
from core.interfaces import Notifier
from core.models import EventRecord, NotificationResult

from .console_notifier import format_record, split_message


logger = logging.getLogger(__name__)

# Discord rejects message content longer than this
MAX_CONTENT = 2000


def build_messages(records: List[EventRecord]) -> List[str]:
    """Split the listing into webhook-sized messages."""
    header = f"**🤘 {len(records)} matching concert(s)**"
    return split_message(header, [format_record(r) for r in records], MAX_CONTENT)


class DiscordNotifier(Notifier):
    """Notifier that sends concerts to a Discord webhook."""

    name = "DiscordNotifier"

    def __init__(self, webhook_url: Optional[str] = None, http: Optional[HttpClient] = None):
        self.webhook_url = webhook_url
        self.http = http or HttpClient()

    async def send(
        self, records: List[EventRecord], cancel: Optional[asyncio.Event] = None
    ) -> NotificationResult:
        if not self.webhook_url:
            logger.warning("Discord webhook not configured, skipping notification")
            return NotificationResult(success=False, message="Discord webhook not configured")

        if not records:
            return NotificationResult(success=True, message="No concerts to notify", records_notified=0)

        for content in build_messages(records):
            await self.http.post_json(self.webhook_url, {"content": content}, cancel)

        logger.info(f"Sent {len(records)} concert(s) to Discord")
        return NotificationResult(
            success=True,
            message=f"Notified about {len(records)} concert(s) on Discord",
            records_notified=len(records),
        )

    async def close(self) -> None:
        await self.http.close()
