"""
JSON file storage - one document per concern inside a data directory.

Missing or malformed files read as empty/default; write errors propagate.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from core.errors import raise_if_cancelled
from core.models import EventRecord, PreferenceProfile, Source
from core.storage import DataStore, merge_source

logger = logging.getLogger(__name__)

_RECORDS = TypeAdapter(List[EventRecord])
_PREFERENCES = TypeAdapter(PreferenceProfile)
_SOURCES = TypeAdapter(List[Source])


class JsonDataStore(DataStore):
    """File-backed store: records.json, preferences.json and sources.json."""

    RECORDS_FILE = "records.json"
    PREFERENCES_FILE = "preferences.json"
    SOURCES_FILE = "sources.json"

    def __init__(self, data_dir: Union[str, Path] = "concert-data"):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    # ---------------------------------------------- #
    # File helpers
    def _read(self, filename: str, adapter: TypeAdapter, default: Any) -> Any:
        path = self.data_dir / filename
        if not path.exists():
            return default
        try:
            return adapter.validate_json(path.read_bytes())
        except ValidationError as e:
            logger.warning(f"Ignoring malformed {path}: {e.error_count()} error(s)")
            return default

    def _write(self, filename: str, adapter: TypeAdapter, value: Any) -> None:
        path = self.data_dir / filename
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_bytes(adapter.dump_json(value, by_alias=True, indent=2))
        tmp.replace(path)

    # ---------------------------------------------- #
    # Records & preferences
    async def get_previous_records(self) -> List[EventRecord]:
        return self._read(self.RECORDS_FILE, _RECORDS, [])

    async def save_records(self, records: List[EventRecord]) -> None:
        self._write(self.RECORDS_FILE, _RECORDS, list(records))
        logger.info(f"Saved {len(records)} records to {self.data_dir / self.RECORDS_FILE}")

    async def get_preferences(self) -> PreferenceProfile:
        return self._read(self.PREFERENCES_FILE, _PREFERENCES, PreferenceProfile())

    async def save_preferences(self, preferences: PreferenceProfile) -> None:
        self._write(self.PREFERENCES_FILE, _PREFERENCES, preferences)

    # ---------------------------------------------- #
    # Sources
    async def get_sources(self) -> List[Source]:
        return self._read(self.SOURCES_FILE, _SOURCES, [])

    async def register_source(self, source: Source) -> None:
        sources = {s.id: s for s in await self.get_sources()}
        sources[source.id] = merge_source(sources.get(source.id), source)
        self._write(self.SOURCES_FILE, _SOURCES, list(sources.values()))

    async def update_source_scraped(
        self,
        source_id: str,
        scraped_at: datetime,
        success: bool,
        error: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> None:
        raise_if_cancelled(cancel)
        sources = await self.get_sources()
        updated = []
        found = False
        for source in sources:
            if source.id == source_id:
                found = True
                source = source.model_copy(
                    update={
                        "last_scraped_at": scraped_at,
                        "last_scrape_success": success,
                        "last_scrape_error": error,
                    }
                )
            updated.append(source)

        if not found:
            logger.warning(f"Unknown source id {source_id}, status not recorded")
            return
        self._write(self.SOURCES_FILE, _SOURCES, updated)
