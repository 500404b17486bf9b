"""
Storage interface and the in-memory implementation.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from .errors import raise_if_cancelled
from .models import EventRecord, PreferenceProfile, Source, utcnow

logger = logging.getLogger(__name__)


class DataStore(ABC):
    """Persistence used by the orchestrator and the notification handler.

    ``save_records`` replaces the whole stored record set. Errors raised by
    an implementation are not handled by the core and end the run.
    """

    @abstractmethod
    async def get_previous_records(self) -> List[EventRecord]:
        pass

    @abstractmethod
    async def save_records(self, records: List[EventRecord]) -> None:
        pass

    @abstractmethod
    async def get_preferences(self) -> PreferenceProfile:
        pass

    @abstractmethod
    async def save_preferences(self, preferences: PreferenceProfile) -> None:
        pass

    @abstractmethod
    async def get_sources(self) -> List[Source]:
        """All configured sources, due or not."""
        pass

    @abstractmethod
    async def register_source(self, source: Source) -> None:
        """Add a source, or refresh its configuration keeping the recorded status."""
        pass

    @abstractmethod
    async def update_source_scraped(
        self,
        source_id: str,
        scraped_at: datetime,
        success: bool,
        error: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> None:
        pass

    async def get_sources_due_for_scraping(
        self, cancel: Optional[asyncio.Event] = None
    ) -> List[Source]:
        raise_if_cancelled(cancel)
        now = utcnow()
        return [s for s in await self.get_sources() if s.is_due(now)]


def merge_source(existing: Optional[Source], incoming: Source) -> Source:
    """Configuration from ``incoming``, scrape status from ``existing``."""
    if existing is None:
        return incoming
    return incoming.model_copy(
        update={
            "last_scraped_at": existing.last_scraped_at,
            "last_scrape_success": existing.last_scrape_success,
            "last_scrape_error": existing.last_scrape_error,
        }
    )


class InMemoryDataStore(DataStore):
    """Process-local store for development and tests."""

    def __init__(self, sources: Optional[List[Source]] = None):
        self._records: List[EventRecord] = []
        self._preferences = PreferenceProfile()
        self._sources: Dict[str, Source] = {s.id: s for s in sources or []}

    async def get_previous_records(self) -> List[EventRecord]:
        return list(self._records)

    async def save_records(self, records: List[EventRecord]) -> None:
        self._records = list(records)

    async def get_preferences(self) -> PreferenceProfile:
        return self._preferences

    async def save_preferences(self, preferences: PreferenceProfile) -> None:
        self._preferences = preferences

    async def get_sources(self) -> List[Source]:
        return list(self._sources.values())

    async def register_source(self, source: Source) -> None:
        self._sources[source.id] = merge_source(self._sources.get(source.id), source)

    async def update_source_scraped(
        self,
        source_id: str,
        scraped_at: datetime,
        success: bool,
        error: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> None:
        raise_if_cancelled(cancel)
        source = self._sources.get(source_id)
        if source is None:
            logger.warning(f"Unknown source id {source_id}, status not recorded")
            return
        self._sources[source_id] = source.model_copy(
            update={
                "last_scraped_at": scraped_at,
                "last_scrape_success": success,
                "last_scrape_error": error,
            }
        )
