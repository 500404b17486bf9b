"""
Core data models for the concert watch platform.
"""

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _CamelModel(BaseModel):
    """Persisted models serialise with camelCase keys and accept both forms."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EventRecord(_CamelModel):
    """One concert or festival listing."""
    id: Optional[str] = None
    date: date
    weekday: str = ""  # Danish abbreviation, e.g. "tor"
    performers: List[str] = Field(default_factory=list)
    venue: str = ""
    url: str = ""
    slug: str = ""
    is_cancelled: bool = False
    is_newly_listed: bool = False  # "Ny" marker from the site, not the diff
    is_festival: bool = False
    scraped_at: datetime = Field(default_factory=utcnow)

    def is_valid(self) -> bool:
        return bool(self.performers) and bool(self.venue.strip()) and bool(self.url.strip())


class Source(_CamelModel):
    """A configured calendar page to scrape."""
    id: str
    name: str
    scraper: str  # registry key, e.g. "HeavyMetalDk"
    url: str
    scrape_interval: timedelta = timedelta(hours=24)
    last_scraped_at: Optional[datetime] = None
    last_scrape_success: Optional[bool] = None
    last_scrape_error: Optional[str] = None
    enabled: bool = True

    def is_due(self, now: Optional[datetime] = None) -> bool:
        """Enabled and never attempted, or the scrape interval has elapsed."""
        if not self.enabled:
            return False
        if self.last_scraped_at is None:
            return True
        now = now or utcnow()
        return now >= self.last_scraped_at + self.scrape_interval


class PreferenceProfile(_CamelModel):
    """User matching criteria."""
    favorite_artists: List[str] = Field(default_factory=list)
    favorite_venues: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notification_email: Optional[str] = None


class ScrapeOutcome(BaseModel):
    """Result of a single scrape attempt."""
    success: bool
    records: List[EventRecord] = Field(default_factory=list)
    error: Optional[str] = None
    records_scraped: int = 0
    scraped_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def ok(cls, records: List[EventRecord]) -> "ScrapeOutcome":
        return cls(success=True, records=records, records_scraped=len(records))

    @classmethod
    def failed(cls, error: str) -> "ScrapeOutcome":
        return cls(success=False, error=error)


class WorkflowOutcome(BaseModel):
    """Reported result of one orchestrator run for one source."""
    success: bool
    source_id: str
    source_name: str
    records_scraped: int = 0
    new_records: int = 0
    occurrences_published: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    executed_at: datetime = Field(default_factory=utcnow)


class NotificationResult(BaseModel):
    """Result returned by a notification channel."""
    success: bool
    message: str = ""
    records_notified: int = 0
    sent_at: datetime = Field(default_factory=utcnow)
