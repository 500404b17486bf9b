"""
Content-derived identifiers for event records.

The identifier depends only on (venue, date, performer set), so the same
show reported by two sources, or re-listed under a new detail URL, maps to
the same id.
"""

import hashlib
from typing import Iterable, List

from .models import EventRecord

ID_LENGTH = 16
_DELIMITER = "|"


def record_identity(record: EventRecord) -> str:
    """Return the 16 hex character identity of a record."""
    performers = _DELIMITER.join(sorted(record.performers))
    key = f"{record.venue}{_DELIMITER}{record.date:%Y-%m-%d}{_DELIMITER}{performers}"
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return digest[:ID_LENGTH]


def assign_identities(records: Iterable[EventRecord]) -> List[EventRecord]:
    """Return copies of ``records`` with ``id`` replaced by their identity."""
    return [r.model_copy(update={"id": record_identity(r)}) for r in records]
