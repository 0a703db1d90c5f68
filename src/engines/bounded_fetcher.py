"""Outbound HTTP access with a hard per-call deadline.

Every upstream request in the service goes through BoundedFetcher. Any
failure (network error, non-2xx status, unparseable JSON, deadline expiry)
surfaces as a single FetchError.
"""

import json
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

import requests

from src.config.settings import DEFAULT_REQUEST_TIMEOUT_SECONDS, DEFAULT_USER_AGENT


logger = logging.getLogger(__name__)


# Small reads keep the deadline check close to the wire.
CHUNK_SIZE = 4 * 1024


class FetchError(Exception):
    """Raised when an upstream request fails for any reason."""


class BoundedFetcher:
    """Performs one HTTP request per call, bounded by a total deadline.

    The deadline covers connecting, waiting for the response and reading
    the body. The session and response are always closed before returning.
    No retries are attempted.

    Attributes:
        timeout_seconds: Total time budget for each call
        user_agent: User-Agent header sent with every request
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.timeout_seconds = timeout_seconds
        self.user_agent = user_agent

    def fetch_json(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> Any:
        """Fetch a URL and decode the body as JSON.

        Raises:
            FetchError: On any network, status, deadline or decoding failure
        """
        body, encoding = self._fetch(url, method, headers, params, json_body)
        try:
            return json.loads(body.decode(encoding or "utf-8"))
        except (ValueError, LookupError) as e:
            raise FetchError(f"Invalid JSON from {url}: {e}") from e

    def fetch_text(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> str:
        """Fetch a URL and return the body as text.

        Raises:
            FetchError: On any network, status or deadline failure
        """
        body, encoding = self._fetch(url, method, headers, params, json_body)
        try:
            return body.decode(encoding or "utf-8", errors="replace")
        except LookupError as e:
            raise FetchError(f"Unknown charset '{encoding}' from {url}") from e

    def _fetch(
        self,
        url: str,
        method: str,
        headers: dict[str, str] | None,
        params: dict[str, Any] | None,
        json_body: Any,
    ) -> tuple[bytes, str | None]:
        """Run the request and return (body, declared charset).

        The request runs on a worker thread and the caller waits at most
        timeout_seconds for it. On expiry the in-flight response is closed
        and the worker stops at its next read.
        """
        deadline = time.monotonic() + self.timeout_seconds
        request_headers = {"User-Agent": self.user_agent}
        if headers:
            request_headers.update(headers)

        logger.debug(f"{method} {url}")

        call = _BoundedCall(deadline)
        worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="bounded-fetch")
        try:
            future = worker.submit(
                call.run, method, url, request_headers, params, json_body
            )
            try:
                return future.result(timeout=max(0.0, deadline - time.monotonic()))
            except FutureTimeoutError:
                call.abandon()
                raise FetchError(
                    f"Deadline of {self.timeout_seconds}s exceeded for {url}"
                ) from None
            except _DeadlineExceeded:
                raise FetchError(
                    f"Deadline of {self.timeout_seconds}s exceeded for {url}"
                ) from None
            except requests.RequestException as e:
                raise FetchError(f"Request to {url} failed: {e}") from e
        finally:
            worker.shutdown(wait=False)


class _DeadlineExceeded(Exception):
    pass


class _BoundedCall:
    """One request/response exchange that can be abandoned from another thread.

    Socket timeouts are capped at the time left, so an abandoned worker
    still stops no later than one more timeout after the deadline.
    """

    def __init__(self, deadline: float):
        self.deadline = deadline
        self._abandoned = threading.Event()
        self._lock = threading.Lock()
        self._session: requests.Session | None = None
        self._response: requests.Response | None = None

    def _remaining(self) -> float:
        remaining = self.deadline - time.monotonic()
        if remaining <= 0 or self._abandoned.is_set():
            raise _DeadlineExceeded()
        return remaining

    def run(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        params: dict[str, Any] | None,
        json_body: Any,
    ) -> tuple[bytes, str | None]:
        with requests.Session() as session:
            with self._lock:
                self._session = session
            remaining = self._remaining()
            with session.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json_body,
                timeout=(remaining, remaining),
                stream=True,
            ) as response:
                with self._lock:
                    self._response = response
                if self._abandoned.is_set():
                    raise _DeadlineExceeded()
                response.raise_for_status()

                chunks: list[bytes] = []
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    self._remaining()
                    chunks.append(chunk)

                return b"".join(chunks), _declared_charset(response)

    def abandon(self) -> None:
        """Stop the exchange; the worker fails at its next read."""
        self._abandoned.set()
        with self._lock:
            response, session = self._response, self._session
        if response is not None:
            response.close()
        if session is not None:
            session.close()


def _declared_charset(response: requests.Response) -> str | None:
    # requests assumes ISO-8859-1 for text/* without a charset; only trust
    # an explicit declaration.
    content_type = response.headers.get("Content-Type", "")
    if "charset=" not in content_type.lower():
        return None
    return response.encoding
