"""
Main entry point for the concert watch platform with scheduling support.
"""

import asyncio
import logging
import os
import signal
import sys
from typing import List, Optional

from dotenv import load_dotenv

# Add project root to PYTHONPATH so imports work when running this script directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.config import AppConfig, HttpConfig, NotifierConfig, StorageConfig, load_config
from core.errors import OperationCancelledError
from core.events import EventBus
from core.infra.http import HttpClient
from core.infra.scheduler import Scheduler
from core.interfaces import Notifier
from core.matcher import RelevanceMatcher
from core.models import WorkflowOutcome
from core.notification_handler import NotificationHandler
from core.orchestrator import Orchestrator
from core.plugin_loader import ScraperRegistry
from core.storage import DataStore, InMemoryDataStore
from sinks.console_notifier import ConsoleNotifier
from sinks.discord_notifier import DiscordNotifier
from sinks.json_store import JsonDataStore
from sinks.sqlite_store import SqliteDataStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def setup_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format=LOG_FORMAT,
    )


def build_store(storage: StorageConfig) -> DataStore:
    if storage.backend == "memory":
        return InMemoryDataStore()
    if storage.backend == "sqlite":
        return SqliteDataStore(os.path.join(storage.path, "concerts.db"))
    return JsonDataStore(storage.path)


def build_notifier(notifier: NotifierConfig, http: HttpConfig) -> Notifier:
    if notifier.type == "discord":
        client = HttpClient(timeout=http.timeout, user_agent=http.user_agent)
        return DiscordNotifier(webhook_url=notifier.webhook_url, http=client)
    if notifier.type == "telegram":
        # Optional dependency, only imported when configured
        from sinks.telegram_notifier import TelegramNotifier
        return TelegramNotifier(bot_token=notifier.bot_token, chat_id=notifier.chat_id)
    return ConsoleNotifier()


class Services:
    """Everything one process needs, wired once and shared."""

    def __init__(self, cfg: AppConfig, store: Optional[DataStore] = None):
        self.cfg = cfg
        self.store = store or build_store(cfg.storage)
        self.bus = EventBus()
        self.registry = ScraperRegistry.from_plugins(
            timeout=cfg.http.timeout, user_agent=cfg.http.user_agent
        )
        self.notifier = build_notifier(cfg.notifier, cfg.http)
        self.handler = NotificationHandler(self.store, RelevanceMatcher(), self.notifier, self.bus)
        self.orchestrator = Orchestrator(self.registry, self.store, self.bus)

    async def seed(self) -> None:
        """Register configured sources and, if given, the configured preferences."""
        for source_cfg in self.cfg.sources:
            await self.store.register_source(source_cfg.to_source())
        if self.cfg.preferences is not None:
            await self.store.save_preferences(self.cfg.preferences)
        logger.info(
            f"Registered {len(self.cfg.sources)} source(s); scrapers available: {self.registry.list_available()}"
        )

    async def close(self) -> None:
        await self.registry.close()
        for resource in (self.notifier, self.store):
            close = getattr(resource, "close", None)
            if close is not None:
                await close()


async def run_once(services: Services, cancel: Optional[asyncio.Event] = None) -> List[WorkflowOutcome]:
    """Run all due workflows and log a summary per source."""
    logger.info("Starting concert orchestration...")
    outcomes = await services.orchestrator.run_due_workflows(cancel)
    logger.info(f"Orchestration completed. Processed {len(outcomes)} source(s)")

    for outcome in outcomes:
        if outcome.success:
            logger.info(
                f"Source: {outcome.source_name} - Scraped: {outcome.records_scraped}, "
                f"New: {outcome.new_records}, Published: {outcome.occurrences_published}"
            )
            if outcome.error:
                logger.warning(f"Source: {outcome.source_name} - {outcome.error}")
        else:
            logger.error(f"Error scraping {outcome.source_name}: {outcome.error}")
    return outcomes


async def _scheduled_run(services: Services, cancel: asyncio.Event) -> None:
    try:
        await run_once(services, cancel)
    except OperationCancelledError:
        logger.info("Scheduled run cancelled")
    except Exception as e:
        logger.error(f"Scheduled run failed: {e}", exc_info=True)


async def main() -> None:
    """Main entry point with scheduler support."""
    load_dotenv()
    setup_logging()

    cfg = load_config()
    services = Services(cfg)
    await services.seed()

    # Setup graceful shutdown; the same event cancels in-flight workflows
    stop_event = asyncio.Event()

    def signal_handler():
        logger.info("Received shutdown signal")
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        asyncio.get_running_loop().add_signal_handler(sig, signal_handler)

    scheduler_mode = os.getenv("SCHEDULER_MODE", "enabled")
    if scheduler_mode == "disabled":
        logger.info("Running concert watch once (scheduler disabled)...")
        try:
            await run_once(services, stop_event)
        except OperationCancelledError:
            logger.info("Run cancelled")
        finally:
            await services.close()
        return

    scheduler = Scheduler(timezone=cfg.scheduler.timezone)
    try:
        await scheduler.start()
        scheduler.schedule(
            _scheduled_run,
            "concert-watch",
            interval_minutes=cfg.scheduler.interval_minutes,
            cron=cfg.scheduler.cron,
            args=[services, stop_event],
        )
        for job_id, job in scheduler.list_jobs().items():
            logger.info(f"Job {job_id}: next run {job['next_run']} ({job['trigger']})")

        # Kick off a run immediately on startup
        startup_run = asyncio.create_task(_scheduled_run(services, stop_event))

        await stop_event.wait()
        await startup_run
    finally:
        logger.info("Shutting down...")
        await scheduler.stop()
        await services.close()
        logger.info("Shutdown complete")


if __name__ == "__main__":
    asyncio.run(main())
