"""
heavymetal.dk plugin - entry point registration.

The plugin loader discovers :class:`HeavyMetalDkScraper` from this package;
:func:`parse_calendar` is exposed for offline parsing from the CLI.
"""

from .parser import parse_calendar
from .scraper import HeavyMetalDkScraper

__all__ = ["HeavyMetalDkScraper", "parse_calendar"]
