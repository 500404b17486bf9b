"""
SQLite storage for records, preferences and source status.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from core.errors import raise_if_cancelled
from core.infra.db import Database
from core.models import EventRecord, PreferenceProfile, Source
from core.storage import DataStore

logger = logging.getLogger(__name__)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS event_records (
        position INTEGER PRIMARY KEY,
        id TEXT,
        event_date TEXT NOT NULL,
        venue TEXT NOT NULL,
        payload TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_event_records_id ON event_records (id)",
    """
    CREATE TABLE IF NOT EXISTS preferences (
        key INTEGER PRIMARY KEY CHECK (key = 1),
        payload TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS sources (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        scraper TEXT NOT NULL,
        url TEXT NOT NULL,
        interval_seconds REAL NOT NULL,
        enabled INTEGER NOT NULL DEFAULT 1,
        last_scraped_at TEXT,
        last_scrape_success INTEGER,
        last_scrape_error TEXT
    )
    """,
]


def _source_from_row(row) -> Source:
    success = row["last_scrape_success"]
    return Source(
        id=row["id"],
        name=row["name"],
        scraper=row["scraper"],
        url=row["url"],
        scrape_interval=timedelta(seconds=row["interval_seconds"]),
        enabled=bool(row["enabled"]),
        last_scraped_at=datetime.fromisoformat(row["last_scraped_at"]) if row["last_scraped_at"] else None,
        last_scrape_success=None if success is None else bool(success),
        last_scrape_error=row["last_scrape_error"],
    )


class SqliteDataStore(DataStore):
    """Store backed by one SQLite file through :class:`core.infra.db.Database`."""

    def __init__(self, db_path: str = "concert-data/concerts.db"):
        self.db = Database(db_path, schema=SCHEMA)

    async def get_previous_records(self) -> List[EventRecord]:
        rows = await self.db.fetch_all("SELECT payload FROM event_records ORDER BY position")
        return [EventRecord.model_validate_json(row["payload"]) for row in rows]

    async def save_records(self, records: List[EventRecord]) -> None:
        await self.db.replace_all(
            "event_records",
            ["position", "id", "event_date", "venue", "payload"],
            (
                (i, r.id, r.date.isoformat(), r.venue, r.model_dump_json(by_alias=True))
                for i, r in enumerate(records)
            ),
        )
        logger.info(f"Saved {len(records)} records to {self.db.db_path}")

    async def get_preferences(self) -> PreferenceProfile:
        row = await self.db.fetch_one("SELECT payload FROM preferences WHERE key = 1")
        if row is None:
            return PreferenceProfile()
        return PreferenceProfile.model_validate_json(row["payload"])

    async def save_preferences(self, preferences: PreferenceProfile) -> None:
        await self.db.upsert(
            "preferences",
            {"key": 1, "payload": preferences.model_dump_json(by_alias=True)},
            ["key"],
        )

    async def get_sources(self) -> List[Source]:
        rows = await self.db.fetch_all("SELECT * FROM sources ORDER BY rowid")
        return [_source_from_row(row) for row in rows]

    async def register_source(self, source: Source) -> None:
        # Status columns are left out so a re-registration keeps them
        await self.db.upsert(
            "sources",
            {
                "id": source.id,
                "name": source.name,
                "scraper": source.scraper,
                "url": source.url,
                "interval_seconds": source.scrape_interval.total_seconds(),
                "enabled": int(source.enabled),
            },
            ["id"],
        )

    async def update_source_scraped(
        self,
        source_id: str,
        scraped_at: datetime,
        success: bool,
        error: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> None:
        raise_if_cancelled(cancel)
        await self.db.write(
            """
            UPDATE sources
               SET last_scraped_at = ?, last_scrape_success = ?, last_scrape_error = ?
             WHERE id = ?
            """,
            (scraped_at.isoformat(), int(success), error, source_id),
        )

    async def close(self) -> None:
        await self.db.close()
