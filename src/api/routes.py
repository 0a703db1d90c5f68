"""HTTP endpoints: one per risk source, plus a liveness probe.

Source endpoints always answer 200 with a JSON array. An upstream failure
shows up as an empty array, never as an error status.
"""

import time
from collections.abc import Mapping
from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from src.config.settings import Settings
from src.engines.bounded_fetcher import BoundedFetcher
from src.engines.gdelt_source import GdeltSource
from src.engines.govuk_advice_source import GovUkAdviceSource
from src.engines.observability import record_outcome
from src.engines.reliefweb_source import ReliefWebSource
from src.engines.risk_item import utc_now_iso
from src.engines.source_fetcher import RiskSource
from src.engines.us_travel_source import USTravelAdvisorySource


router = APIRouter(prefix="/v1", tags=["risk"])
health_router = APIRouter(tags=["health"])


def get_settings(request: Request) -> Settings:
    """Return the settings the application was created with."""
    return request.app.state.settings


def get_fetcher(settings: Settings = Depends(get_settings)) -> BoundedFetcher:
    """Build the fetcher used for one request's upstream call."""
    return BoundedFetcher(
        timeout_seconds=settings.request_timeout_seconds,
        user_agent=settings.user_agent,
    )


def respond(
    source: RiskSource,
    params: Mapping[str, str | None] | None = None,
) -> list[dict[str, Any]]:
    """Fetch one source and collapse its result into the response array."""
    started = time.perf_counter()
    result = source.fetch(params)
    record_outcome(result, duration_ms=(time.perf_counter() - started) * 1000)
    return [item.to_dict() for item in result.items_or_empty()]


@health_router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict[str, Any]:
    return {
        "ok": True,
        "time": utc_now_iso(),
        "origins": list(settings.cors_origins),
    }


@router.get("/gov/uk/za")
def govuk_travel_advice(fetcher: BoundedFetcher = Depends(get_fetcher)):
    """UK travel advice for South Africa (0 or 1 item)."""
    return respond(GovUkAdviceSource(fetcher))


@router.get("/us/travel")
def us_travel_advisories(fetcher: BoundedFetcher = Depends(get_fetcher)):
    """US travel advisories mentioning South Africa (up to 5 items)."""
    return respond(USTravelAdvisorySource(fetcher))


@router.get("/reliefweb/za")
def reliefweb_reports(
    days: str | None = Query(default=None, description="Recency window in days, 1-60"),
    fetcher: BoundedFetcher = Depends(get_fetcher),
    settings: Settings = Depends(get_settings),
):
    """ReliefWeb reports on South Africa (up to 30 items)."""
    source = ReliefWebSource(fetcher, appname=settings.reliefweb_appname)
    return respond(source, {"days": days})


@router.get("/gdelt")
def gdelt_events(
    q: str | None = Query(default=None, description="GDELT full-text query"),
    hours: str | None = Query(default=None, description="Search window in hours, 1-168"),
    fetcher: BoundedFetcher = Depends(get_fetcher),
):
    """GDELT news articles (up to 50 items)."""
    return respond(GdeltSource(fetcher), {"q": q, "hours": hours})
