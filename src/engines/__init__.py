"""Engines module - fetching, source adapters and normalization."""

from src.engines.bounded_fetcher import BoundedFetcher, FetchError
from src.engines.gdelt_source import GdeltSource
from src.engines.govuk_advice_source import GovUkAdviceSource
from src.engines.reliefweb_source import ReliefWebSource
from src.engines.risk_item import RiskItem, normalize_item
from src.engines.severity import classify
from src.engines.source_fetcher import AdapterResult, RiskSource
from src.engines.us_travel_source import USTravelAdvisorySource

__all__ = [
    # Fetching
    "BoundedFetcher",
    "FetchError",
    # Sources
    "GdeltSource",
    "GovUkAdviceSource",
    "ReliefWebSource",
    "USTravelAdvisorySource",
    "RiskSource",
    "AdapterResult",
    # Normalization
    "RiskItem",
    "normalize_item",
    "classify",
]
