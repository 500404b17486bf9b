"""
Telegram notifier for sending matched concerts to a chat.
"""

import asyncio
import logging
from typing import List, Optional

try:
    import telegram
    from telegram import Bot
except ImportError:
    telegram = None
    Bot = None

from core.errors import raise_if_cancelled
from core.interfaces import Notifier
from core.models import EventRecord, NotificationResult

from .console_notifier import format_record, split_message


logger = logging.getLogger(__name__)

# Telegram rejects message text longer than this
MAX_MESSAGE = 4096


class TelegramNotifier(Notifier):
    """Notifier that sends concerts to a Telegram chat."""

    name = "TelegramNotifier"

    def __init__(
        self,
        bot_token: Optional[str] = None,
        chat_id: Optional[str] = None,
    ):
        if telegram is None:
            raise ImportError("python-telegram-bot package is required for Telegram notifications")

        self.bot = Bot(token=bot_token) if bot_token else None
        self.chat_id = chat_id

    async def send(
        self, records: List[EventRecord], cancel: Optional[asyncio.Event] = None
    ) -> NotificationResult:
        raise_if_cancelled(cancel)

        if not self.bot or not self.chat_id:
            logger.warning("Telegram bot or chat_id not configured, skipping notification")
            return NotificationResult(success=False, message="Telegram bot not configured")

        if not records:
            return NotificationResult(success=True, message="No concerts to notify", records_notified=0)

        header = f"🤘 {len(records)} matching concert(s)\n"
        for text in split_message(header, [format_record(r) for r in records], MAX_MESSAGE):
            raise_if_cancelled(cancel)
            await self.bot.send_message(chat_id=self.chat_id, text=text)

        logger.info(f"Sent {len(records)} concert(s) to Telegram chat {self.chat_id}")
        return NotificationResult(
            success=True,
            message=f"Notified about {len(records)} concert(s) on Telegram",
            records_notified=len(records),
        )
