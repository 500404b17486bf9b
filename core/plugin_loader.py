"""
Plugin loader for automatic discovery and registration of scraper classes.
"""

import importlib
import inspect
import logging
import pathlib
from typing import Any, Dict, Iterable, List, Type

from .errors import ScraperNotFoundError
from .interfaces import Scraper

logger = logging.getLogger(__name__)

# Plugin directory relative to this file
PLUGIN_DIR = pathlib.Path(__file__).parent.parent / "plugins"


def discover_scraper_classes() -> Dict[str, Type[Scraper]]:
    """Import every package under plugins/ and collect concrete Scraper subclasses.

    Returns a mapping of ``plugin_name.ClassName`` to class.
    """
    found: Dict[str, Type[Scraper]] = {}

    if not PLUGIN_DIR.exists():
        logger.warning(f"Plugin directory does not exist: {PLUGIN_DIR}")
        return found

    for pkg_dir in sorted(PLUGIN_DIR.iterdir()):
        # Skip files, caches and private packages
        if not (pkg_dir / "__init__.py").exists() or pkg_dir.name.startswith("_"):
            continue

        module_name = f"plugins.{pkg_dir.name}"
        try:
            mod = importlib.import_module(module_name)
        except Exception as e:
            logger.error(f"Failed to load plugin {module_name}: {e}")
            continue

        for name, obj in inspect.getmembers(mod, inspect.isclass):
            if issubclass(obj, Scraper) and obj is not Scraper and not inspect.isabstract(obj):
                key = f"{pkg_dir.name}.{obj.__name__}"
                found[key] = obj
                logger.debug(f"Registered scraper: {key}")

    logger.info(f"Plugin discovery complete: {len(found)} scraper(s)")
    return found


class ScraperRegistry:
    """Resolves scraper instances by name or by URL."""

    def __init__(self, scrapers: Iterable[Scraper] = ()):
        self._scrapers: List[Scraper] = list(scrapers)

    @classmethod
    def from_plugins(cls, **scraper_kwargs: Any) -> "ScraperRegistry":
        """Instantiate every discovered scraper with the shared keyword arguments."""
        instances = [scraper_cls(**scraper_kwargs) for scraper_cls in discover_scraper_classes().values()]
        return cls(instances)

    def register(self, scraper: Scraper) -> None:
        self._scrapers.append(scraper)

    def get(self, name: str) -> Scraper:
        """Get a scraper by its name (case-insensitive).

        Raises:
            ScraperNotFoundError: If no scraper has that name
        """
        if not name or not name.strip():
            raise ScraperNotFoundError("Scraper name cannot be empty")

        for scraper in self._scrapers:
            if scraper.name.lower() == name.lower():
                return scraper

        available = [s.name for s in self._scrapers]
        raise ScraperNotFoundError(f"Scraper '{name}' not found. Available: {available}")

    def for_url(self, url: str) -> Scraper:
        """Get the first scraper that supports ``url``.

        Raises:
            ScraperNotFoundError: If no scraper supports the URL
        """
        if not url or not url.strip():
            raise ScraperNotFoundError("URL cannot be empty")

        for scraper in self._scrapers:
            if scraper.supports_url(url):
                return scraper

        raise ScraperNotFoundError(f"No scraper found for URL: {url}")

    def list_available(self) -> List[str]:
        return [s.name for s in self._scrapers]

    async def close(self) -> None:
        for scraper in self._scrapers:
            await scraper.close()
