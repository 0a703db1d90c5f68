"""Logging of per-source fetch outcomes.

Every endpoint reports its AdapterResult here so a degraded upstream is
visible in the logs even though clients only ever see an empty array.
"""

import logging
from dataclasses import dataclass

from src.engines.source_fetcher import AdapterResult


logger = logging.getLogger(__name__)


@dataclass
class SourceOutcome:
    """Summary of one source fetch.

    Attributes:
        source: Source tag
        item_count: Number of items returned to the client
        error: Failure message, or None when the fetch succeeded
        duration_ms: Wall time spent fetching and mapping
    """
    source: str
    item_count: int
    error: str | None = None
    duration_ms: float = 0.0

    @property
    def degraded(self) -> bool:
        return self.error is not None


def record_outcome(result: AdapterResult, duration_ms: float = 0.0) -> SourceOutcome:
    """Log a source result and return its summary.

    Args:
        result: Result returned by a risk source
        duration_ms: Time the fetch took, in milliseconds

    Returns:
        SourceOutcome describing the fetch

    Example:
        >>> outcome = record_outcome(AdapterResult(source="gdelt", items=[]))
        # Logs: "Source 'gdelt': 0 items in 0 ms"
    """
    outcome = SourceOutcome(
        source=result.source,
        item_count=len(result.items_or_empty()),
        error=result.error,
        duration_ms=duration_ms,
    )

    if outcome.degraded:
        logger.warning(
            f"Source '{outcome.source}' degraded to no items after "
            f"{outcome.duration_ms:.0f} ms: {outcome.error}"
        )
    else:
        logger.info(
            f"Source '{outcome.source}': {outcome.item_count} items in "
            f"{outcome.duration_ms:.0f} ms"
        )

    return outcome
