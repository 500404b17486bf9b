"""
Occurrences and the in-process event bus.

Publishers and subscribers share one ``EventBus`` instance that is created
at startup and passed to whoever needs it.
"""

import asyncio
import logging
from abc import abstractmethod
from datetime import datetime
from typing import Awaitable, Callable, ClassVar, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import raise_if_cancelled
from .models import EventRecord, utcnow

logger = logging.getLogger(__name__)


class Occurrence(BaseModel):
    """Immutable fact published through the bus."""
    model_config = ConfigDict(frozen=True)

    kind: ClassVar[str] = "Occurrence"

    @property
    @abstractmethod
    def occurred_at(self) -> datetime:
        pass


class NewRecordsFound(Occurrence):
    """Records whose identity was not in the store before this run (unfiltered)."""
    kind: ClassVar[str] = "NewRecordsFound"

    records: List[EventRecord]
    source_url: str
    found_at: datetime = Field(default_factory=utcnow)

    @property
    def occurred_at(self) -> datetime:
        return self.found_at


class RecordsScraped(Occurrence):
    """Every valid record one source returned, before any diffing."""
    kind: ClassVar[str] = "RecordsScraped"

    records: List[EventRecord]
    source_url: str
    scraped_at: datetime = Field(default_factory=utcnow)

    @property
    def occurred_at(self) -> datetime:
        return self.scraped_at


Handler = Callable[[Occurrence, Optional[asyncio.Event]], Awaitable[None]]


class EventBus:
    """Sequential publish/subscribe keyed by occurrence kind."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Handler]] = {}

    def subscribe(self, kind: str, handler: Handler) -> None:
        """Register ``handler`` for occurrences of exactly ``kind``."""
        self._handlers.setdefault(kind, []).append(handler)
        logger.debug(f"Subscribed handler for {kind}")

    def handler_count(self, kind: str) -> int:
        return len(self._handlers.get(kind, []))

    async def publish(self, occurrence: Occurrence, cancel: Optional[asyncio.Event] = None) -> None:
        """Await every handler of the occurrence's kind, in subscription order.

        Handler exceptions are not caught here; they reach the publisher.
        """
        raise_if_cancelled(cancel)

        handlers = list(self._handlers.get(occurrence.kind, []))
        if not handlers:
            logger.debug(f"No handlers registered for {occurrence.kind}")
            return

        logger.debug(f"Publishing {occurrence.kind} to {len(handlers)} handler(s)")
        for handler in handlers:
            await handler(occurrence, cancel)
