"""
Relevance scoring of event records against a preference profile.
"""

import logging
from typing import List, Optional

from .models import EventRecord, PreferenceProfile

logger = logging.getLogger(__name__)

ARTIST_POINTS = 100
VENUE_POINTS = 50
KEYWORD_POINTS = 25


def score(record: EventRecord, profile: Optional[PreferenceProfile]) -> int:
    """Score a record: +100 per favourite artist, +50 favourite venue, +25 per keyword."""
    if record is None or profile is None:
        return 0

    performers = [p.casefold() for p in record.performers]
    total = 0

    for artist in profile.favorite_artists:
        if artist.casefold() in performers:
            total += ARTIST_POINTS

    venue = record.venue.casefold()
    if any(v.casefold() == venue for v in profile.favorite_venues):
        total += VENUE_POINTS

    for keyword in profile.keywords:
        needle = keyword.casefold()
        if any(needle in p for p in performers):
            total += KEYWORD_POINTS

    return total


def _within_dates(record: EventRecord, profile: PreferenceProfile) -> bool:
    if profile.start_date is not None and record.date < profile.start_date:
        return False
    if profile.end_date is not None and record.date > profile.end_date:
        return False
    return True


def find_matches(
    records: List[EventRecord], profile: Optional[PreferenceProfile]
) -> List[EventRecord]:
    """Relevant, non-cancelled records inside the date window, best first.

    Without a profile there is nothing to filter on and the input is
    returned unchanged.
    """
    if not records:
        return []
    if profile is None:
        return list(records)

    scored = []
    for record in records:
        if record.is_cancelled or not _within_dates(record, profile):
            continue
        points = score(record, profile)
        if points > 0:
            scored.append((points, record))

    scored.sort(key=lambda pair: (-pair[0], pair[1].date))
    logger.debug(f"Matched {len(scored)} of {len(records)} records")
    return [record for _, record in scored]


class RelevanceMatcher:
    """Injectable wrapper so handlers can be tested with a stub matcher."""

    def score(self, record: EventRecord, profile: Optional[PreferenceProfile]) -> int:
        return score(record, profile)

    def find_matches(
        self, records: List[EventRecord], profile: Optional[PreferenceProfile]
    ) -> List[EventRecord]:
        return find_matches(records, profile)
