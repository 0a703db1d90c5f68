"""Risk item data model and normalization utilities."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from dateutil import parser as date_parser
from dateutil.parser import ParserError


logger = logging.getLogger(__name__)


# Source tags, one per upstream
SOURCE_GOV_UK = "gov.uk"
SOURCE_US_TRAVEL = "travel.state.gov"
SOURCE_RELIEFWEB = "reliefweb"
SOURCE_GDELT = "gdelt"

KNOWN_SOURCES = frozenset({
    SOURCE_GOV_UK,
    SOURCE_US_TRAVEL,
    SOURCE_RELIEFWEB,
    SOURCE_GDELT,
})

# Named zones RFC 822 feed dates may carry; dateutil drops them otherwise.
_RFC822_ZONES = {
    "UT": 0, "GMT": 0,
    "EST": -5 * 3600, "EDT": -4 * 3600,
    "CST": -6 * 3600, "CDT": -5 * 3600,
    "MST": -7 * 3600, "MDT": -6 * 3600,
    "PST": -8 * 3600, "PDT": -7 * 3600,
}

DEFAULT_SEVERITY = 3
MIN_SEVERITY = 1
MAX_SEVERITY = 5

# GDELT reports dates in ISO basic form, e.g. 20240115T103000Z
_COMPACT_UTC_FORMAT = "%Y%m%dT%H%M%SZ"


@dataclass
class RiskItem:
    """A normalized risk signal, identical in shape for every source.

    Attributes:
        id: "<source-prefix>:<upstream-id>", used by clients to de-duplicate
        ts: ISO-8601 timestamp of the upstream event or publication
        source: One of KNOWN_SOURCES
        title: Short human-readable title, may be empty
        summary: Short description derived per source
        severity: Integer 1-5
        links: URLs pointing at the source material
        lat: Latitude, reserved (no source populates it)
        lng: Longitude, reserved (no source populates it)
    """
    id: str
    ts: str
    source: str
    title: str
    summary: str
    severity: int = DEFAULT_SEVERITY
    links: list[str] = field(default_factory=list)
    lat: float | None = None
    lng: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON wire shape; unset coordinates are omitted."""
        data: dict[str, Any] = {
            "id": self.id,
            "ts": self.ts,
            "source": self.source,
            "title": self.title,
            "summary": self.summary,
            "severity": self.severity,
            "links": list(self.links),
        }
        if self.lat is not None:
            data["lat"] = self.lat
        if self.lng is not None:
            data["lng"] = self.lng
        return data


def format_timestamp(value: datetime) -> str:
    """Render a datetime as UTC ISO-8601 with millisecond precision.

    Naive datetimes are taken to be UTC.

    Example:
        >>> format_timestamp(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc))
        '2024-01-15T10:30:00.000Z'
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    """Return the current time in the item timestamp format."""
    return format_timestamp(datetime.now(timezone.utc))


def parse_date(date_str: Any) -> datetime | None:
    """Parse a date string into a datetime object.

    Accepts GDELT's compact form as well as anything python-dateutil
    understands (RFC 822 feed dates, ISO-8601). Returns None on parse
    failure instead of raising an exception.

    Example:
        >>> parse_date("Mon, 15 Jan 2024 10:30:00 GMT")
        datetime.datetime(2024, 1, 15, 10, 30, tzinfo=tzutc())
        >>> parse_date("20240115T103000Z")
        datetime.datetime(2024, 1, 15, 10, 30, tzinfo=datetime.timezone.utc)
        >>> parse_date("Mon, 15 Jan 2024 10:30:00 EST")
        datetime.datetime(2024, 1, 15, 10, 30, tzinfo=tzoffset('EST', -18000))
        >>> parse_date("not a date")
        None
    """
    if isinstance(date_str, datetime):
        return date_str
    if not isinstance(date_str, str):
        return None

    date_str = date_str.strip()
    if not date_str:
        return None

    try:
        return datetime.strptime(date_str, _COMPACT_UTC_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        pass

    try:
        return date_parser.parse(date_str, tzinfos=_RFC822_ZONES)
    except (ParserError, ValueError, OverflowError) as e:
        logger.debug(f"Failed to parse date '{date_str}': {e}")
        return None


def timestamp_or_now(*candidates: Any) -> str:
    """Format the first parseable date among candidates, else the current time."""
    for candidate in candidates:
        parsed = parse_date(candidate)
        if parsed is not None:
            return format_timestamp(parsed)
    return utc_now_iso()


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _as_severity(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return DEFAULT_SEVERITY
    try:
        severity = int(value)
    except (TypeError, ValueError):
        return DEFAULT_SEVERITY
    return max(MIN_SEVERITY, min(MAX_SEVERITY, severity))


def _as_coordinate(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def normalize_item(partial: Mapping[str, Any]) -> RiskItem:
    """Build a RiskItem from a loosely shaped adapter record.

    Copies id, ts, source, title, summary, lat and lng; severity falls back
    to 3 and links to an empty list when the record does not carry them.
    Never raises for records an adapter can produce.

    Args:
        partial: Mapping with any subset of the RiskItem fields

    Returns:
        RiskItem with every required field present

    Example:
        >>> item = normalize_item({"id": "gdelt:x", "ts": "2024-01-15T10:30:00Z",
        ...                        "source": "gdelt", "title": "t", "summary": "s"})
        >>> item.severity, item.links
        (3, [])
    """
    ts = partial.get("ts")
    if isinstance(ts, datetime):
        ts = format_timestamp(ts)
    elif not ts:
        ts = utc_now_iso()

    links = partial.get("links")
    if links is None:
        links = []
    elif isinstance(links, str):
        links = [links]

    return RiskItem(
        id=_as_text(partial.get("id")),
        ts=str(ts),
        source=_as_text(partial.get("source")),
        title=_as_text(partial.get("title")),
        summary=_as_text(partial.get("summary")),
        severity=_as_severity(partial.get("severity")),
        links=[str(link) for link in links if link],
        lat=_as_coordinate(partial.get("lat")),
        lng=_as_coordinate(partial.get("lng")),
    )


def normalize_items(partials: list[Mapping[str, Any]]) -> list[RiskItem]:
    """Normalize a batch of adapter records, preserving order."""
    return [normalize_item(partial) for partial in partials]
