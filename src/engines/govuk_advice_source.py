"""UK government (FCDO) travel advice for South Africa via the gov.uk content API."""

from collections.abc import Mapping
from typing import Any

from src.engines.bounded_fetcher import BoundedFetcher
from src.engines.risk_item import SOURCE_GOV_UK, utc_now_iso
from src.engines.source_fetcher import AdapterResult, collect_safely


GOVUK_CONTENT_URL = "https://www.gov.uk/api/content/foreign-travel-advice/south-africa"
GOVUK_PAGE_URL = "https://www.gov.uk/foreign-travel-advice/south-africa"

ITEM_ID = "govuk:za"
ITEM_TITLE = "UK travel advice – South Africa"
PLACEHOLDER_SUMMARY = "Travel advice"


class GovUkAdviceSource:
    """Risk source for the gov.uk foreign travel advice page.

    Always yields exactly one item describing the latest advice change.
    """

    def __init__(self, fetcher: BoundedFetcher):
        self.fetcher = fetcher
        self._source_name = SOURCE_GOV_UK

    @property
    def source_name(self) -> str:
        """Return the source identifier."""
        return self._source_name

    def fetch(self, params: Mapping[str, str | None] | None = None) -> AdapterResult:
        """Fetch the advice document; takes no parameters."""
        return collect_safely(self.source_name, self._collect)

    def _collect(self) -> list[dict[str, Any]]:
        document = self.fetcher.fetch_json(
            GOVUK_CONTENT_URL,
            headers={"Accept": "application/json"},
        )
        return [self._parse_document(document)]

    def _parse_document(self, document: Mapping[str, Any]) -> dict[str, Any]:
        """Map the content API document to an item record."""
        details = document.get("details") or {}
        latest_update = details.get("latest_update") or {}

        ts = (
            latest_update.get("published")
            or document.get("public_updated_at")
            or utc_now_iso()
        )
        summary = (
            details.get("change_description")
            or details.get("summary")
            or PLACEHOLDER_SUMMARY
        )

        return {
            "id": ITEM_ID,
            "ts": ts,
            "source": self.source_name,
            "title": ITEM_TITLE,
            "summary": summary,
            "severity": 3,
            "links": [GOVUK_PAGE_URL],
        }
