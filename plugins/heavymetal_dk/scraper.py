"""
heavymetal.dk scraper - downloads the concert calendar and parses it.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from core.errors import OperationCancelledError
from core.infra.http import HttpClient
from core.interfaces import Scraper
from core.models import ScrapeOutcome, utcnow

from .parser import BASE_URL, parse_calendar

logger = logging.getLogger(__name__)


class HeavyMetalDkScraper(Scraper):
    """Scrapes the heavymetal.dk concert calendar."""

    name = "HeavyMetalDk"

    def __init__(self, http: Optional[HttpClient] = None, **kwargs):
        self.http = http or HttpClient(**kwargs)

    def supports_url(self, url: str) -> bool:
        return bool(url) and "heavymetal.dk" in url.lower()

    async def scrape(self, url: str, cancel: Optional[asyncio.Event] = None) -> ScrapeOutcome:
        """Fetch and parse ``url``; failures come back as a failed outcome."""
        try:
            logger.info(f"Starting scraping of {url}")
            html = await self.http.get_text(url, cancel)
            records = parse_calendar(html, scraped_at=utcnow(), base_url=BASE_URL)
            logger.info(f"Successfully scraped {len(records)} concerts")
            return ScrapeOutcome.ok(records)

        except OperationCancelledError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"HTTP error while scraping {url}: {e}")
            return ScrapeOutcome.failed(f"Network error: {str(e) or type(e).__name__}")
        except Exception as e:
            logger.error(f"Unexpected error while scraping {url}: {e}")
            return ScrapeOutcome.failed(f"Scraping failed: {e}")

    async def close(self) -> None:
        await self.http.close()
