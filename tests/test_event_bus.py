import asyncio
from datetime import datetime, timezone

import pytest

from conftest import make_record
from core.errors import OperationCancelledError
from core.events import EventBus, NewRecordsFound, Occurrence, RecordsScraped


def _occurrence():
    return NewRecordsFound(records=[make_record()], source_url="https://heavymetal.dk/koncertkalender")


def test_publish_runs_handlers_in_subscription_order():
    bus = EventBus()
    calls = []

    async def first(occurrence, cancel=None):
        calls.append(("first", len(occurrence.records)))

    async def second(occurrence, cancel=None):
        calls.append(("second", len(occurrence.records)))

    bus.subscribe(NewRecordsFound.kind, first)
    bus.subscribe(NewRecordsFound.kind, second)
    asyncio.run(bus.publish(_occurrence()))

    assert calls == [("first", 1), ("second", 1)]
    assert bus.handler_count(NewRecordsFound.kind) == 2


def test_publish_without_handlers_is_noop():
    bus = EventBus()

    asyncio.run(bus.publish(_occurrence()))

    assert bus.handler_count(NewRecordsFound.kind) == 0


def test_handler_error_reaches_publisher_and_stops_later_handlers():
    bus = EventBus()
    calls = []

    async def failing(occurrence, cancel=None):
        raise RuntimeError("handler broke")

    async def later(occurrence, cancel=None):
        calls.append("later")

    bus.subscribe(NewRecordsFound.kind, failing)
    bus.subscribe(NewRecordsFound.kind, later)

    with pytest.raises(RuntimeError, match="handler broke"):
        asyncio.run(bus.publish(_occurrence()))
    assert calls == []


def test_publish_checks_cancellation_first():
    bus = EventBus()
    calls = []

    async def handler(occurrence, cancel=None):
        calls.append(occurrence)

    bus.subscribe(NewRecordsFound.kind, handler)
    cancel = asyncio.Event()
    cancel.set()

    with pytest.raises(OperationCancelledError):
        asyncio.run(bus.publish(_occurrence(), cancel))
    assert calls == []


def test_occurrence_is_immutable_and_timestamped():
    found_at = datetime(2025, 12, 15, 8, 0, tzinfo=timezone.utc)
    occurrence = NewRecordsFound(records=[], source_url="https://heavymetal.dk", found_at=found_at)

    assert occurrence.occurred_at == found_at
    assert occurrence.kind == "NewRecordsFound"
    with pytest.raises(Exception):
        occurrence.source_url = "https://example.com"


def test_publish_reaches_only_the_exact_kind():
    bus = EventBus()
    calls = []

    async def on_new(occurrence, cancel=None):
        calls.append(("new", occurrence.kind))

    async def on_scraped(occurrence, cancel=None):
        calls.append(("scraped", occurrence.kind))

    bus.subscribe(NewRecordsFound.kind, on_new)
    bus.subscribe(RecordsScraped.kind, on_scraped)

    asyncio.run(bus.publish(_occurrence()))
    assert calls == [("new", "NewRecordsFound")]

    calls.clear()
    asyncio.run(bus.publish(RecordsScraped(records=[make_record()], source_url="https://heavymetal.dk/koncertkalender")))
    assert calls == [("scraped", "RecordsScraped")]


def test_records_scraped_timestamp():
    scraped_at = datetime(2025, 12, 15, 8, 0, tzinfo=timezone.utc)
    occurrence = RecordsScraped(records=[], source_url="https://heavymetal.dk", scraped_at=scraped_at)

    assert occurrence.occurred_at == scraped_at


def test_base_occurrence_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Occurrence()
