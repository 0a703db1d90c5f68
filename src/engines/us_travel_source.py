"""US State Department travel advisories via the travel.state.gov RSS feed."""

import io
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

import feedparser
from bs4 import BeautifulSoup

from src.engines.bounded_fetcher import BoundedFetcher
from src.engines.risk_item import SOURCE_US_TRAVEL, timestamp_or_now
from src.engines.source_fetcher import AdapterResult, collect_safely


logger = logging.getLogger(__name__)


US_ADVISORIES_RSS_URL = (
    "https://travel.state.gov/content/travel/en/traveladvisories/traveladvisories.rss"
)
US_TRAVEL_HOME_URL = "https://travel.state.gov"

# The feed covers every country; entries are kept when they mention this one.
COUNTRY_NEEDLE = "south africa"

DEFAULT_TITLE = "US Travel Advisory"
SUMMARY_MAX_CHARS = 280
MAX_ITEMS = 5


def strip_html(markup: str | None) -> str:
    """Reduce HTML to its text content.

    Besides dropping tags this decodes entities and joins text runs with
    single spaces, trimming each run.
    """
    if not markup:
        return ""
    soup = BeautifulSoup(markup, "lxml")
    return soup.get_text(separator=" ", strip=True)


def _published_at(entry: Any) -> datetime | None:
    # feedparser normalizes pubDate to a UTC struct_time, zone names included.
    parsed = entry.get("published_parsed")
    if not parsed:
        return None
    return datetime(*parsed[:6], tzinfo=timezone.utc)


class USTravelAdvisorySource:
    """Risk source for the State Department advisory feed.

    Prefers the feed's own fields and filters entries client-side, since the
    feed is not scoped to one country. At most five entries are returned,
    in feed order.
    """

    def __init__(self, fetcher: BoundedFetcher):
        self.fetcher = fetcher
        self._source_name = SOURCE_US_TRAVEL

    @property
    def source_name(self) -> str:
        """Return the source identifier."""
        return self._source_name

    def fetch(self, params: Mapping[str, str | None] | None = None) -> AdapterResult:
        """Fetch and filter the advisory feed; takes no parameters."""
        return collect_safely(self.source_name, self._collect)

    def _collect(self) -> list[dict[str, Any]]:
        content = self.fetcher.fetch_text(
            US_ADVISORIES_RSS_URL,
            headers={"Accept": "application/rss+xml, application/xml"},
        )
        # feedparser tries str input as a URL or file path first, so pass a
        # stream. The text is already decoded; declare UTF-8 to match.
        feed = feedparser.parse(
            io.BytesIO(content.encode("utf-8")),
            response_headers={"content-type": "application/rss+xml; charset=utf-8"},
        )

        # The loose parser recovers entries from broken XML; treat any
        # well-formedness problem as a failed fetch.
        if feed.bozo and not isinstance(feed.bozo_exception, feedparser.CharacterEncodingOverride):
            raise ValueError(f"Failed to parse RSS feed: {feed.bozo_exception}")

        matching = [entry for entry in feed.entries if self._mentions_country(entry)]
        logger.debug(
            f"{len(matching)} of {len(feed.entries)} advisories mention '{COUNTRY_NEEDLE}'"
        )

        return [self._parse_rss_entry(entry) for entry in matching[:MAX_ITEMS]]

    @staticmethod
    def _mentions_country(entry: Any) -> bool:
        title = (entry.get("title") or "").lower()
        description = (entry.get("summary") or "").lower()
        return COUNTRY_NEEDLE in title or COUNTRY_NEEDLE in description

    def _parse_rss_entry(self, entry: Any) -> dict[str, Any]:
        """Map a single feedparser entry to an item record."""
        guid = entry.get("id")
        link = entry.get("link")
        title = entry.get("title")

        return {
            "id": f"us:travel:{guid or link or title or ''}",
            "ts": timestamp_or_now(_published_at(entry), entry.get("published")),
            "source": self.source_name,
            "title": title or DEFAULT_TITLE,
            "summary": strip_html(entry.get("summary"))[:SUMMARY_MAX_CHARS],
            "severity": 3,
            "links": [link or US_TRAVEL_HOME_URL],
        }
