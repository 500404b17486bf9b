"""
Orchestrator for the Scrape→Identify→Persist→Publish workflow.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from .errors import OperationCancelledError, ScraperNotFoundError, raise_if_cancelled
from .events import EventBus, NewRecordsFound
from .identity import assign_identities
from .models import ScrapeOutcome, Source, WorkflowOutcome, utcnow
from .plugin_loader import ScraperRegistry
from .storage import DataStore


logger = logging.getLogger(__name__)


class Orchestrator:
    """Runs the workflow for every source that is due.

    Sources are processed one at a time. A scrape failure is recorded on the
    source and reported in its outcome; storage errors are not caught and end
    the run. Records are saved before ``NewRecordsFound`` is published.
    """

    def __init__(self, registry: ScraperRegistry, store: DataStore, bus: EventBus):
        self.registry = registry
        self.store = store
        self.bus = bus

    async def run_due_workflows(self, cancel: Optional[asyncio.Event] = None) -> List[WorkflowOutcome]:
        """Process all due sources and return their outcomes in order."""
        sources = await self.store.get_sources_due_for_scraping(cancel)

        if not sources:
            logger.info("No sources due for scraping")
            return []

        outcomes: List[WorkflowOutcome] = []
        for source in sources:
            raise_if_cancelled(cancel)
            outcomes.append(await self._process_source(source, cancel))
        return outcomes

    async def _process_source(self, source: Source, cancel: Optional[asyncio.Event]) -> WorkflowOutcome:
        executed_at = utcnow()
        logger.info(f"Processing source {source.name} ({source.id})")

        try:
            scraper = self.registry.get(source.scraper)
        except ScraperNotFoundError as e:
            return await self._record_failure(source, executed_at, str(e), cancel)

        try:
            result = await scraper.scrape(source.url, cancel)
        except OperationCancelledError:
            raise
        except Exception as e:
            logger.error(f"Scraper {scraper.name} raised: {e}", exc_info=True)
            result = ScrapeOutcome.failed(f"Scraping failed: {e}")

        if not result.success:
            return await self._record_failure(source, executed_at, result.error or "Scraping failed", cancel)

        scraped = assign_identities(result.records)
        previous = await self.store.get_previous_records()
        known_ids = {r.id for r in previous}
        new_records = [r for r in scraped if r.id not in known_ids]

        await self.store.save_records(scraped)

        published: List[str] = []
        error: Optional[str] = None
        if new_records:
            occurrence = NewRecordsFound(records=new_records, source_url=source.url, found_at=executed_at)
            try:
                await self.bus.publish(occurrence, cancel)
            except OperationCancelledError:
                raise
            except Exception as e:
                # Records are already saved; report the handler failure only
                error = f"Publishing {occurrence.kind} failed: {e}"
                logger.error(error, exc_info=True)
            else:
                published.append(occurrence.kind)
                logger.info(
                    f"Published {occurrence.kind} with {len(new_records)} new concerts from {source.id}"
                )

        await self.store.update_source_scraped(source.id, executed_at, True, None, cancel)

        return WorkflowOutcome(
            success=True,
            source_id=source.id,
            source_name=source.name,
            records_scraped=len(scraped),
            new_records=len(new_records),
            occurrences_published=published,
            error=error,
            executed_at=executed_at,
        )

    async def _record_failure(
        self,
        source: Source,
        executed_at: datetime,
        error: str,
        cancel: Optional[asyncio.Event],
    ) -> WorkflowOutcome:
        logger.warning(f"Scraping failed for source {source.id}: {error}")
        await self.store.update_source_scraped(source.id, executed_at, False, error, cancel)
        return WorkflowOutcome(
            success=False,
            source_id=source.id,
            source_name=source.name,
            error=error,
            executed_at=executed_at,
        )
