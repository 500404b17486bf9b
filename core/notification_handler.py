"""
Notification handler - reacts to NewRecordsFound by matching and notifying.
"""

import asyncio
import logging
from typing import Optional

from .errors import OperationCancelledError
from .events import EventBus, NewRecordsFound
from .interfaces import Notifier
from .matcher import RelevanceMatcher
from .storage import DataStore

logger = logging.getLogger(__name__)


class NotificationHandler:
    """Matches new records against the stored preferences and forwards hits.

    Notification failures are logged here and never reach the publisher, so
    records already persisted by the orchestrator are unaffected.
    """

    def __init__(
        self,
        store: DataStore,
        matcher: RelevanceMatcher,
        notifier: Notifier,
        bus: Optional[EventBus] = None,
    ):
        self.store = store
        self.matcher = matcher
        self.notifier = notifier
        if bus is not None:
            bus.subscribe(NewRecordsFound.kind, self.handle)

    async def handle(self, occurrence: NewRecordsFound, cancel: Optional[asyncio.Event] = None) -> None:
        if not occurrence.records:
            return

        preferences = await self.store.get_preferences()
        matches = self.matcher.find_matches(occurrence.records, preferences)

        if not matches:
            logger.info(f"No matching concerts among {len(occurrence.records)} new from {occurrence.source_url}")
            return

        logger.info(f"{len(matches)} of {len(occurrence.records)} new concerts match preferences")
        try:
            result = await self.notifier.send(matches, cancel)
        except OperationCancelledError:
            logger.warning(f"Notification via {self.notifier.name} cancelled")
            return
        except Exception as e:
            logger.error(f"Notification via {self.notifier.name} failed: {e}", exc_info=True)
            return

        if result.success:
            logger.info(f"{self.notifier.name}: {result.message}")
        else:
            logger.warning(f"{self.notifier.name} reported failure: {result.message}")
