"""Shared fixtures: an in-memory stand-in for the bounded fetcher."""

from typing import Any

import pytest

from src.engines.bounded_fetcher import FetchError


class StubFetcher:
    """Fetcher double that returns a canned payload or raises FetchError.

    Records every call so tests can check request shape.
    """

    def __init__(self, payload: Any = None, error: Exception | None = None):
        self.payload = payload
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def _respond(self, kind: str, url: str, **kwargs: Any) -> Any:
        self.calls.append({"kind": kind, "url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.payload

    def fetch_json(self, url: str, **kwargs: Any) -> Any:
        return self._respond("json", url, **kwargs)

    def fetch_text(self, url: str, **kwargs: Any) -> Any:
        return self._respond("text", url, **kwargs)


@pytest.fixture
def stub_fetcher():
    """Factory fixture: stub_fetcher(payload) or stub_fetcher(error=...)."""
    def _make(payload: Any = None, error: Exception | None = None) -> StubFetcher:
        return StubFetcher(payload=payload, error=error)
    return _make


@pytest.fixture
def failing_fetcher():
    return StubFetcher(error=FetchError("upstream returned 500"))
