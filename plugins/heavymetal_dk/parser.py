"""
heavymetal.dk calendar parser - turns the concert calendar page into EventRecords.

Page shape: ``<h2>December 2025</h2>`` month headers, each followed by a
``<table class="event-table">`` whose ``<tr itemprop="event">`` rows hold one
concert each.
"""

import logging
import re
from datetime import date, datetime
from typing import List, Optional, Tuple
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from core.models import EventRecord, utcnow

logger = logging.getLogger(__name__)

BASE_URL = "https://heavymetal.dk"

DANISH_MONTHS = {
    "januar": 1,
    "februar": 2,
    "marts": 3,
    "april": 4,
    "maj": 5,
    "juni": 6,
    "juli": 7,
    "august": 8,
    "september": 9,
    "oktober": 10,
    "november": 11,
    "december": 12,
}

# "December 2025"
MONTH_HEADER_RE = re.compile(r"(" + "|".join(DANISH_MONTHS) + r")\s+(\d{4})", re.IGNORECASE)
# "15/12 (man)"
DATE_TEXT_RE = re.compile(r"(\d{1,2})/(\d{1,2})\s*\((\w+)\)")

CANCELLED_MARKER = "aflyst"
NEWLY_LISTED_MARKER = "ny"


def parse_calendar(
    html: str,
    scraped_at: Optional[datetime] = None,
    base_url: str = BASE_URL,
) -> List[EventRecord]:
    """Parse a calendar page. Never raises; returns [] when the page is unusable."""
    scraped_at = scraped_at or utcnow()
    try:
        return _parse_sections(html or "", scraped_at, base_url)
    except Exception as e:
        logger.error(f"Failed to parse calendar HTML: {e}")
        return []


def _parse_sections(html: str, scraped_at: datetime, base_url: str) -> List[EventRecord]:
    soup = BeautifulSoup(html, "html.parser")
    headers = soup.find_all("h2")
    if not headers:
        logger.warning("No month headers found in HTML")
        return []

    records: List[EventRecord] = []
    previous: Optional[Tuple[int, int]] = None

    for header in headers:
        context = _section_context(header, previous)
        if context is None:
            continue
        previous = context
        month, year = context

        table = _section_table(header)
        if table is None:
            logger.warning(f"No table found after month header {month}/{year}")
            continue

        rows = table.find_all("tr", attrs={"itemprop": "event"})
        if not rows:
            logger.debug(f"No event rows found for {month}/{year}")
            continue

        for row in rows:
            try:
                record = _parse_row(row, year, scraped_at, base_url)
            except Exception as e:
                logger.warning(f"Failed to parse concert row: {e}")
                continue
            if record is not None and record.is_valid():
                records.append(record)
                logger.debug(f"Added concert: {record.slug}")

    return records


def _section_context(header: Tag, previous: Optional[Tuple[int, int]]) -> Optional[Tuple[int, int]]:
    """(month, year) of a header, rolling the year over after December."""
    match = MONTH_HEADER_RE.search(header.get_text(" ", strip=True))
    if not match:
        return None

    month = DANISH_MONTHS[match.group(1).lower()]
    year = int(match.group(2))

    # Sections run forward in time; the year never decreases
    if previous is not None:
        prev_month, prev_year = previous
        if (year, month) < (prev_year, prev_month):
            rolled = prev_year + 1 if month < prev_month else prev_year
            logger.debug(f"Section {month}/{year} after {prev_month}/{prev_year}: using {month}/{rolled}")
            year = rolled

    return month, year


def _section_table(header: Tag) -> Optional[Tag]:
    """First event-table sibling before the next month header."""
    for sibling in header.next_siblings:
        name = getattr(sibling, "name", None)
        if name == "h2":
            return None
        if name == "table" and "event-table" in (sibling.get("class") or []):
            return sibling
    return None


def _parse_row(row: Tag, year: int, scraped_at: datetime, base_url: str) -> Optional[EventRecord]:
    date_cell = row.find("td", class_="event-date")
    date_text = date_cell.get_text(" ", strip=True) if date_cell else ""
    text_match = DATE_TEXT_RE.search(date_text)

    event_date = _iso_date(row) or _text_date(text_match, year)
    if event_date is None:
        logger.warning("Date information missing in concert row")
        return None

    lowered = date_text.casefold()
    url = _detail_url(row, base_url)
    slug = urlparse(url).path.rstrip("/").rsplit("/", 1)[-1] if url else ""
    performers, is_festival = _performers(row)

    return EventRecord(
        id=slug or None,
        date=event_date,
        weekday=text_match.group(3) if text_match else "",
        performers=performers,
        venue=_venue(row),
        url=url,
        slug=slug,
        is_cancelled=CANCELLED_MARKER in lowered,
        is_newly_listed=NEWLY_LISTED_MARKER in lowered,
        is_festival=is_festival,
        scraped_at=scraped_at,
    )


def _iso_date(row: Tag) -> Optional[date]:
    meta = row.find("meta", attrs={"itemprop": "startDate"})
    if meta is None:
        return None
    content = (meta.get("content") or "").strip()
    try:
        return date.fromisoformat(content[:10])
    except ValueError:
        logger.warning(f"Failed to parse ISO date: {content!r}")
        return None


def _text_date(match: Optional[re.Match], year: int) -> Optional[date]:
    """Fallback: day/month from the display text plus the section's year."""
    if match is None:
        return None
    try:
        return date(year, int(match.group(2)), int(match.group(1)))
    except ValueError:
        return None


def _venue(row: Tag) -> str:
    # "Pumpehuset, København V" -> "Pumpehuset"
    link = row.select_one("td.event-venue a[itemprop=url]")
    if link is None:
        return ""
    return link.get_text(" ", strip=True).split(",", 1)[0].strip()


def _detail_url(row: Tag, base_url: str) -> str:
    link = row.select_one("td.event-meta a[href]")
    href = (link.get("href") or "").strip() if link else ""
    if not href:
        return ""
    return urljoin(base_url.rstrip("/") + "/", href)


def _performers(row: Tag) -> Tuple[List[str], bool]:
    span = row.find("span", class_="artists", itemprop="name")
    if span is None:
        return [], False

    performers: List[str] = []
    festival_link = span.select_one("strong a")
    if festival_link is not None:
        name = festival_link.get_text(" ", strip=True)
        if name:
            performers.append(name)

    for link in span.find_all("a", href=True):
        if link is festival_link or "/artist/" not in link["href"]:
            continue
        name = link.get_text(" ", strip=True)
        if name:
            performers.append(name)

    return performers, festival_link is not None
