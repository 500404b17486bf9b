"""
Core interfaces for the concert watch platform.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import List, Optional

from .models import EventRecord, NotificationResult, ScrapeOutcome


class Scraper(ABC):
    """Abstract base class for calendar scrapers.

    A scraper fetches one page and turns it into event records. It reports
    problems through the returned :class:`ScrapeOutcome` instead of raising;
    only cancellation escapes.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry key for this scraper (matched case-insensitively)."""
        pass

    @abstractmethod
    def supports_url(self, url: str) -> bool:
        """Whether this scraper understands pages at ``url``."""
        pass

    @abstractmethod
    async def scrape(self, url: str, cancel: Optional[asyncio.Event] = None) -> ScrapeOutcome:
        """Fetch and parse ``url``."""
        pass

    async def close(self) -> None:
        """Release network resources. Optional."""
        pass


class Notifier(ABC):
    """Abstract base class for notification channels."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this channel."""
        pass

    @abstractmethod
    async def send(
        self, records: List[EventRecord], cancel: Optional[asyncio.Event] = None
    ) -> NotificationResult:
        """Deliver matched records."""
        pass
