"""Global news events for South Africa via the GDELT DOC 2.0 article search."""

from collections.abc import Mapping
from typing import Any

from src.engines.bounded_fetcher import BoundedFetcher
from src.engines.query_params import clamp_int
from src.engines.risk_item import SOURCE_GDELT, timestamp_or_now
from src.engines.severity import classify
from src.engines.source_fetcher import AdapterResult, collect_safely


GDELT_DOC_URL = "https://api.gdeltproject.org/api/v2/doc/doc"

DEFAULT_QUERY = (
    "(South Africa) "
    "(murder OR explosion OR bomb OR protest OR riot OR kidnapping OR shooting)"
)
DEFAULT_HOURS = 24
MIN_HOURS = 1
MAX_HOURS = 168
MAX_RECORDS = 50


def build_params(query: str, hours: int) -> dict[str, str]:
    """Build the article-list query string for a full-text search window."""
    return {
        "query": query,
        "mode": "ArtList",
        "maxrecords": str(MAX_RECORDS),
        "format": "json",
        "TIMESPAN": f"{hours}HRS",
    }


def article_summary(article: Mapping[str, Any]) -> str:
    """Describe where an article came from: "<domain> • <country>" or the domain."""
    domain = article.get("domain") or ""
    country = article.get("sourcecountry") or article.get("sourceCountry")
    if country:
        return f"{domain} • {country}"
    return domain


class GdeltSource:
    """Risk source for GDELT news articles.

    Severity comes from the keyword classifier, since GDELT carries none.
    """

    def __init__(self, fetcher: BoundedFetcher):
        self.fetcher = fetcher
        self._source_name = SOURCE_GDELT

    @property
    def source_name(self) -> str:
        """Return the source identifier."""
        return self._source_name

    def fetch(self, params: Mapping[str, str | None] | None = None) -> AdapterResult:
        """Search recent articles.

        Args:
            params: May carry "q" (full-text query) and "hours"
                (window, default 24, 1-168)
        """
        params = params or {}
        query = params.get("q") or DEFAULT_QUERY
        hours = clamp_int(params.get("hours"), DEFAULT_HOURS, MIN_HOURS, MAX_HOURS)
        return collect_safely(self.source_name, lambda: self._collect(query, hours))

    def _collect(self, query: str, hours: int) -> list[dict[str, Any]]:
        data = self.fetcher.fetch_json(GDELT_DOC_URL, params=build_params(query, hours))
        return [self._parse_article(article) for article in data.get("articles") or []]

    def _parse_article(self, article: Mapping[str, Any]) -> dict[str, Any]:
        """Map a single GDELT article to an item record."""
        url = article.get("url")
        title = article.get("title")

        return {
            "id": f"gdelt:{url or title or ''}",
            "ts": timestamp_or_now(article.get("seendate"), article.get("timestamp")),
            "source": self.source_name,
            "title": title,
            "summary": article_summary(article),
            "severity": classify(f"{title or ''} {url or ''}"),
            "links": [url] if url else [],
        }
