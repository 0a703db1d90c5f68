"""Source protocol and the result type every risk source returns."""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from src.engines.risk_item import RiskItem, normalize_items


logger = logging.getLogger(__name__)


@dataclass
class AdapterResult:
    """Outcome of one source fetch.

    Either items were produced (error is None) or the source failed and
    items is empty.
    """

    source: str
    items: list[RiskItem] = field(default_factory=list)
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    def items_or_empty(self) -> list[RiskItem]:
        """Collapse the result to a plain list, empty on failure."""
        if self.error is not None:
            return []
        return self.items


@runtime_checkable
class RiskSource(Protocol):
    """Protocol defining the interface for risk sources.

    Every upstream adapter implements this protocol so endpoint handlers
    can treat them alike.

    Attributes:
        source_name: Source tag placed on every item (e.g., "gdelt")
    """

    @property
    def source_name(self) -> str:
        """Return the source identifier."""
        ...

    def fetch(self, params: Mapping[str, str | None] | None = None) -> AdapterResult:
        """Fetch the upstream once and map it to normalized items.

        Args:
            params: Raw query parameters from the inbound request

        Returns:
            AdapterResult; failures are reported through its error field,
            never raised.
        """
        ...


def collect_safely(
    source_name: str,
    collect: Callable[[], list[Mapping[str, Any]]],
) -> AdapterResult:
    """Run a source's fetch-and-map step and capture any failure.

    Args:
        source_name: Source tag used in the result and log messages
        collect: Callable doing the single upstream fetch and returning
            loosely shaped item records

    Returns:
        AdapterResult with normalized items, or with an error and no items
    """
    try:
        records = collect()
        return AdapterResult(source=source_name, items=normalize_items(records))
    except Exception as e:
        error_msg = f"Failed to fetch from {source_name}: {str(e)}"
        logger.debug(error_msg, exc_info=True)
        return AdapterResult(source=source_name, items=[], error=error_msg)
