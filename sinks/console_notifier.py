"""
Console notifier - prints matched concerts to stdout.
"""

import asyncio
import logging
from typing import List, Optional

from core.errors import raise_if_cancelled
from core.interfaces import Notifier
from core.models import EventRecord, NotificationResult


logger = logging.getLogger(__name__)


def format_record(record: EventRecord) -> str:
    """One human-readable line per concert."""
    performers = ", ".join(record.performers)
    flags = []
    if record.is_festival:
        flags.append("festival")
    if record.is_newly_listed:
        flags.append("ny")
    if record.is_cancelled:
        flags.append("aflyst")
    suffix = f" [{', '.join(flags)}]" if flags else ""
    weekday = f" ({record.weekday})" if record.weekday else ""
    return f"{record.date:%Y-%m-%d}{weekday} | {performers} @ {record.venue}{suffix}\n    {record.url}"


def split_message(header: str, lines: List[str], limit: int) -> List[str]:
    """Pack ``header`` and ``lines`` into messages of at most ``limit`` characters.

    Lines are kept whole where possible; a single line longer than ``limit``
    is cut into ``limit``-sized pieces.
    """
    pieces: List[str] = []
    for line in [header, *lines]:
        pieces.extend(line[i:i + limit] for i in range(0, max(len(line), 1), limit))

    messages: List[str] = []
    current = ""
    for piece in pieces:
        if current and len(current) + 1 + len(piece) > limit:
            messages.append(current)
            current = piece
        else:
            current = f"{current}\n{piece}" if current else piece
    if current:
        messages.append(current)
    return messages


class ConsoleNotifier(Notifier):
    """Notifier that writes matched concerts to the console."""

    name = "ConsoleNotifier"

    async def send(
        self, records: List[EventRecord], cancel: Optional[asyncio.Event] = None
    ) -> NotificationResult:
        raise_if_cancelled(cancel)

        if not records:
            return NotificationResult(success=True, message="No concerts to notify", records_notified=0)

        lines = [f"🤘 {len(records)} matching concert(s) found:"]
        lines.extend(format_record(r) for r in records)
        print("\n".join(lines))

        logger.info(f"Printed {len(records)} concert(s) to console")
        return NotificationResult(
            success=True,
            message=f"Notified about {len(records)} concert(s)",
            records_notified=len(records),
        )
