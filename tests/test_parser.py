from datetime import date, datetime, timezone

from conftest import load_fixture
from plugins.heavymetal_dk.parser import parse_calendar


def test_single_concert_fields():
    records = parse_calendar(load_fixture("single-concert.html"))

    assert len(records) == 1
    concert = records[0]
    assert concert.date == date(2025, 12, 18)
    assert concert.weekday == "tor"
    assert concert.performers == ["Katatonia"]
    assert concert.venue == "Amager Bio"
    assert concert.url == "https://heavymetal.dk/koncert/katatonia-amager-bio-18-december-2025"
    assert concert.slug == "katatonia-amager-bio-18-december-2025"
    assert concert.id == concert.slug
    assert not concert.is_cancelled
    assert not concert.is_newly_listed
    assert not concert.is_festival


def test_full_calendar_skips_invalid_rows_and_rolls_year():
    records = parse_calendar(load_fixture("full-calendar-2025-12-15.html"))

    assert len(records) == 5
    assert records[0].date == date(2025, 12, 18)
    january = [r for r in records if r.date.month == 1]
    assert len(january) == 1
    assert january[0].date.year == 2026


def test_multi_artist_show_keeps_order():
    records = parse_calendar(load_fixture("full-calendar-2025-12-15.html"))

    show = next(r for r in records if len(r.performers) > 1 and not r.is_festival)
    assert show.performers == ["Katatonia", "Evergrey", "Klogr"]


def test_festival_name_comes_first():
    records = parse_calendar(load_fixture("festival-event.html"))

    assert len(records) == 1
    festival = records[0]
    assert festival.is_festival
    assert festival.performers == ["Udgårdsfest 2025", "Einherjer", "Finsterforst", "Hamferð"]


def test_cancelled_marker():
    records = parse_calendar(load_fixture("cancelled-concert.html"))

    assert len(records) == 1
    assert records[0].is_cancelled
    assert "Iron Maiden" in records[0].performers


def test_newly_listed_marker():
    records = parse_calendar(load_fixture("new-concert.html"))

    assert len(records) == 1
    assert records[0].is_newly_listed
    assert records[0].performers == ["Slayer"]
    assert records[0].date == date(2026, 3, 20)


def test_text_date_fallback_uses_rolled_year():
    records = parse_calendar(load_fixture("year-rollover-no-meta.html"))

    assert [r.date for r in records] == [date(2025, 11, 28), date(2026, 2, 13)]
    assert records[1].weekday == "fre"


def _text_only_section(header: str, day_month: str, slug: str) -> str:
    return f"""
<h2>{header}</h2>
<table class="event-table">
  <tr itemprop="event">
    <td class="event-date">{day_month} (fre)</td>
    <td class="event-artists"><span class="artists" itemprop="name"><a href="/artist/{slug}">{slug.title()}</a></span></td>
    <td class="event-venue"><a itemprop="url" href="/spillested/loppen">Loppen, København K</a></td>
    <td class="event-meta"><a href="/koncert/{slug}-loppen">Info</a></td>
  </tr>
</table>
"""


def test_year_stays_rolled_for_following_sections():
    html = (
        _text_only_section("December 2025", "12/12", "baest")
        + _text_only_section("Januar 2025", "09/01", "konvent")
        + _text_only_section("Februar 2025", "13/02", "heilung")
    )

    records = parse_calendar(html)

    assert [r.date for r in records] == [date(2025, 12, 12), date(2026, 1, 9), date(2026, 2, 13)]


def test_scraped_at_is_stamped_on_every_record():
    stamp = datetime(2025, 12, 15, 8, 0, tzinfo=timezone.utc)
    records = parse_calendar(load_fixture("full-calendar-2025-12-15.html"), scraped_at=stamp)

    assert all(r.scraped_at == stamp for r in records)


def test_unusable_pages_yield_nothing():
    assert parse_calendar("") == []
    assert parse_calendar("<html><body><p>Ingen koncerter</p></body></html>") == []
    assert parse_calendar("<h2>Nyheder</h2><table class='event-table'></table>") == []


def test_parsing_is_idempotent():
    html = load_fixture("full-calendar-2025-12-15.html")
    stamp = datetime(2025, 12, 15, 8, 0, tzinfo=timezone.utc)

    first = parse_calendar(html, scraped_at=stamp)
    second = parse_calendar(html, scraped_at=stamp)

    assert [r.model_dump_json() for r in first] == [r.model_dump_json() for r in second]
