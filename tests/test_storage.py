import asyncio
import json
from datetime import date, datetime, timedelta, timezone

from conftest import make_record
from core.identity import assign_identities
from core.models import PreferenceProfile, Source
from core.storage import InMemoryDataStore
from sinks.json_store import JsonDataStore
from sinks.sqlite_store import SqliteDataStore

SCRAPED_AT = datetime(2025, 12, 15, 8, 0, tzinfo=timezone.utc)


def _source(**kwargs):
    return Source(
        id="heavymetal-dk",
        name="HeavyMetal.dk",
        scraper="HeavyMetalDk",
        url="https://heavymetal.dk/koncertkalender",
        **kwargs,
    )


def test_source_defaults_and_due_check():
    now = datetime(2025, 12, 15, 12, 0, tzinfo=timezone.utc)
    source = _source()

    assert source.scrape_interval == timedelta(hours=24)
    assert source.is_due(now)
    assert not _source(last_scraped_at=now - timedelta(hours=23)).is_due(now)
    assert _source(last_scraped_at=now - timedelta(hours=24)).is_due(now)
    assert not _source(enabled=False).is_due(now)


def test_in_memory_due_sources():
    now = datetime.now(timezone.utc)
    store = InMemoryDataStore(
        [
            _source(),
            _source(last_scraped_at=now).model_copy(update={"id": "fresh"}),
            _source(enabled=False).model_copy(update={"id": "off"}),
        ]
    )

    due = asyncio.run(store.get_sources_due_for_scraping())

    assert [s.id for s in due] == ["heavymetal-dk"]


def test_register_source_keeps_status():
    store = InMemoryDataStore([_source(last_scraped_at=SCRAPED_AT, last_scrape_success=False)])

    asyncio.run(store.register_source(_source().model_copy(update={"name": "Renamed"})))

    source = asyncio.run(store.get_sources())[0]
    assert source.name == "Renamed"
    assert source.last_scraped_at == SCRAPED_AT
    assert source.last_scrape_success is False


def test_json_store_defaults_when_files_absent(tmp_path):
    store = JsonDataStore(tmp_path / "data")

    assert asyncio.run(store.get_previous_records()) == []
    assert asyncio.run(store.get_preferences()) == PreferenceProfile()
    assert asyncio.run(store.get_sources()) == []


def test_json_store_ignores_malformed_files(tmp_path):
    (tmp_path / "records.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "preferences.json").write_text("[1, 2]", encoding="utf-8")
    store = JsonDataStore(tmp_path)

    assert asyncio.run(store.get_previous_records()) == []
    assert asyncio.run(store.get_preferences()) == PreferenceProfile()


def test_json_store_round_trip_uses_camel_case(tmp_path):
    store = JsonDataStore(tmp_path)
    records = assign_identities([make_record(is_newly_listed=True, scraped_at=SCRAPED_AT)])
    preferences = PreferenceProfile(favorite_artists=["Katatonia"], start_date=date(2026, 1, 1))

    asyncio.run(store.save_records(records))
    asyncio.run(store.save_preferences(preferences))

    raw = json.loads((tmp_path / "records.json").read_text(encoding="utf-8"))
    assert raw[0]["isNewlyListed"] is True
    assert "scrapedAt" in raw[0]
    assert asyncio.run(store.get_previous_records()) == records
    assert asyncio.run(store.get_preferences()) == preferences


def test_json_store_source_status(tmp_path):
    store = JsonDataStore(tmp_path)
    asyncio.run(store.register_source(_source()))

    asyncio.run(store.update_source_scraped("heavymetal-dk", SCRAPED_AT, False, "Network error: boom"))
    asyncio.run(store.update_source_scraped("missing", SCRAPED_AT, True))

    sources = asyncio.run(store.get_sources())
    assert len(sources) == 1
    assert sources[0].last_scraped_at == SCRAPED_AT
    assert sources[0].last_scrape_success is False
    assert sources[0].last_scrape_error == "Network error: boom"


def test_sqlite_store_round_trip(tmp_path):
    async def scenario():
        store = SqliteDataStore(str(tmp_path / "db" / "concerts.db"))
        try:
            records = assign_identities(
                [make_record(scraped_at=SCRAPED_AT), make_record(performers=("Baest",), scraped_at=SCRAPED_AT)]
            )
            await store.save_records(records)
            await store.save_records(records[:1])
            saved = await store.get_previous_records()

            preferences = PreferenceProfile(keywords=["doom"])
            await store.save_preferences(preferences)
            loaded_preferences = await store.get_preferences()

            await store.register_source(_source(scrape_interval=timedelta(hours=6)))
            await store.update_source_scraped("heavymetal-dk", SCRAPED_AT, True)
            await store.register_source(_source(scrape_interval=timedelta(hours=12)))
            sources = await store.get_sources()
            return records, saved, preferences, loaded_preferences, sources
        finally:
            await store.close()

    records, saved, preferences, loaded_preferences, sources = asyncio.run(scenario())

    assert saved == records[:1]
    assert loaded_preferences == preferences
    assert len(sources) == 1
    assert sources[0].scrape_interval == timedelta(hours=12)
    assert sources[0].last_scrape_success is True
    assert sources[0].last_scraped_at == SCRAPED_AT


def test_sqlite_store_empty_defaults(tmp_path):
    async def scenario():
        store = SqliteDataStore(str(tmp_path / "concerts.db"))
        try:
            return await store.get_previous_records(), await store.get_preferences()
        finally:
            await store.close()

    records, preferences = asyncio.run(scenario())

    assert records == []
    assert preferences == PreferenceProfile()
