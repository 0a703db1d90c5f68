"""ReliefWeb situation reports for South Africa via the ReliefWeb search API."""

import re
from collections.abc import Mapping
from typing import Any

from src.config.settings import DEFAULT_RELIEFWEB_APPNAME
from src.engines.bounded_fetcher import BoundedFetcher
from src.engines.query_params import clamp_int
from src.engines.risk_item import SOURCE_RELIEFWEB
from src.engines.source_fetcher import AdapterResult, collect_safely


RELIEFWEB_REPORTS_URL = "https://api.reliefweb.int/v1/reports?profile=list"

COUNTRY_NAME = "South Africa"
THEMES = ("Safety and Security", "Protection and Human Rights", "Health")

DEFAULT_DAYS = 21
MIN_DAYS = 1
MAX_DAYS = 60
RESULT_LIMIT = 30

ELEVATED_THEMES = re.compile(r"Epidemic|Conflict|Security|Protection", re.IGNORECASE)


def build_query(days: int, appname: str = DEFAULT_RELIEFWEB_APPNAME) -> dict[str, Any]:
    """Build the search body for recent country reports on the tracked themes.

    Args:
        days: Recency window in days
        appname: Application name ReliefWeb requires on every query

    Returns:
        JSON-serializable request body
    """
    return {
        "appname": appname,
        "filter": {
            "operator": "AND",
            "conditions": [
                {"field": "primary_country.name", "value": COUNTRY_NAME},
                {
                    "operator": "OR",
                    "conditions": [
                        {"field": "theme.name", "value": theme} for theme in THEMES
                    ],
                },
                {"field": "date.created", "value": {"from": f"now-{days}d"}},
            ],
        },
        "fields": {
            "include": ["title", "url", "date.created", "theme.name", "source.name"],
        },
        "limit": RESULT_LIMIT,
        "profile": "list",
    }


def theme_severity(themes: str) -> int:
    """Return 4 when the joined theme names signal conflict or protection needs."""
    return 4 if ELEVATED_THEMES.search(themes) else 3


def _created_date(fields: Mapping[str, Any]) -> Any:
    # The API nests the date ("date": {"created": ...}); accept the flat
    # dotted key as well.
    date = fields.get("date")
    if isinstance(date, Mapping) and date.get("created"):
        return date["created"]
    return fields.get("date.created")


class ReliefWebSource:
    """Risk source for ReliefWeb reports.

    Attributes:
        appname: Application name sent with each query
    """

    def __init__(self, fetcher: BoundedFetcher, appname: str = DEFAULT_RELIEFWEB_APPNAME):
        self.fetcher = fetcher
        self.appname = appname
        self._source_name = SOURCE_RELIEFWEB

    @property
    def source_name(self) -> str:
        """Return the source identifier."""
        return self._source_name

    def fetch(self, params: Mapping[str, str | None] | None = None) -> AdapterResult:
        """Fetch recent reports.

        Args:
            params: May carry "days", the recency window (default 21, 1-60)
        """
        days = clamp_int((params or {}).get("days"), DEFAULT_DAYS, MIN_DAYS, MAX_DAYS)
        return collect_safely(self.source_name, lambda: self._collect(days))

    def _collect(self, days: int) -> list[dict[str, Any]]:
        data = self.fetcher.fetch_json(
            RELIEFWEB_REPORTS_URL,
            method="POST",
            headers={"Content-Type": "application/json"},
            json_body=build_query(days, self.appname),
        )
        return [self._parse_record(record) for record in data.get("data") or []]

    def _parse_record(self, record: Mapping[str, Any]) -> dict[str, Any]:
        """Map a single report record to an item record."""
        fields = record.get("fields") or {}
        themes = ", ".join(
            str(theme.get("name") or "") for theme in fields.get("theme") or []
        )
        url = fields.get("url")

        return {
            "id": f"rw:{record.get('id')}",
            "ts": _created_date(fields),
            "source": self.source_name,
            "title": fields.get("title"),
            "summary": themes,
            "severity": theme_severity(themes),
            "links": [url] if url else [],
        }
