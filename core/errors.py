"""
Exception types shared across the platform.
"""

import asyncio
from typing import Optional


class ConcertWatchError(Exception):
    """Base class for platform errors."""


class ScraperNotFoundError(ConcertWatchError, KeyError):
    """No registered scraper matches the requested name or URL."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable
        return str(self.args[0]) if self.args else ""


class OperationCancelledError(ConcertWatchError):
    """Raised at a checkpoint once the cancel event has been set."""


class ConfigError(ConcertWatchError):
    """Configuration file could not be loaded or validated."""


def raise_if_cancelled(cancel: Optional[asyncio.Event]) -> None:
    """Cancellation checkpoint used at the entry of every async boundary."""
    if cancel is not None and cancel.is_set():
        raise OperationCancelledError("Operation cancelled")
