"""Unit tests for the bounded HTTP fetcher.

Most tests replace the network with a mocked requests.Session; the
deadline tests run against a local server that stalls or trickles bytes.
"""

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import MagicMock, patch

import pytest
import requests

from src.engines.bounded_fetcher import BoundedFetcher, FetchError


def _mock_session(body: bytes = b"", status_error: Exception | None = None,
                  headers: dict[str, str] | None = None, encoding: str | None = None,
                  request_error: Exception | None = None) -> MagicMock:
    """Build a mocked Session whose request() yields one streamed response."""
    response = MagicMock()
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    response.headers = headers or {}
    response.encoding = encoding
    response.iter_content.return_value = [body[i:i + 4] for i in range(0, len(body), 4)]
    if status_error is not None:
        response.raise_for_status.side_effect = status_error

    session = MagicMock()
    session.__enter__.return_value = session
    session.__exit__.return_value = False
    if request_error is not None:
        session.request.side_effect = request_error
    else:
        session.request.return_value = response
    return session


class TestBoundedFetcherSuccess:
    """Unit tests for successful fetches."""

    def test_fetch_json_decodes_body(self):
        session = _mock_session(b'{"articles": [1, 2]}')
        fetcher = BoundedFetcher(timeout_seconds=10)

        with patch("src.engines.bounded_fetcher.requests.Session", return_value=session):
            assert fetcher.fetch_json("https://example.com/api") == {"articles": [1, 2]}

    def test_fetch_text_returns_body(self):
        session = _mock_session("<rss>é</rss>".encode("utf-8"))
        fetcher = BoundedFetcher()

        with patch("src.engines.bounded_fetcher.requests.Session", return_value=session):
            assert fetcher.fetch_text("https://example.com/feed") == "<rss>é</rss>"

    def test_fetch_text_honours_declared_charset(self):
        session = _mock_session(
            "café".encode("latin-1"),
            headers={"Content-Type": "text/xml; charset=ISO-8859-1"},
            encoding="ISO-8859-1",
        )
        fetcher = BoundedFetcher()

        with patch("src.engines.bounded_fetcher.requests.Session", return_value=session):
            assert fetcher.fetch_text("https://example.com/feed") == "café"

    def test_request_carries_timeout_headers_and_body(self):
        session = _mock_session(b"{}")
        fetcher = BoundedFetcher(timeout_seconds=7.5, user_agent="TestAgent/1.0")

        with patch("src.engines.bounded_fetcher.requests.Session", return_value=session):
            fetcher.fetch_json(
                "https://example.com/api",
                method="POST",
                headers={"Content-Type": "application/json"},
                json_body={"limit": 30},
            )

        session.request.assert_called_once()
        args, kwargs = session.request.call_args
        assert args == ("POST", "https://example.com/api")
        connect_timeout, read_timeout = kwargs["timeout"]
        assert 0 < connect_timeout <= 7.5
        assert 0 < read_timeout <= 7.5
        assert kwargs["stream"] is True
        assert kwargs["json"] == {"limit": 30}
        assert kwargs["headers"]["User-Agent"] == "TestAgent/1.0"
        assert kwargs["headers"]["Content-Type"] == "application/json"

    def test_exactly_one_request_per_call(self):
        session = _mock_session(b"[]")
        fetcher = BoundedFetcher()

        with patch("src.engines.bounded_fetcher.requests.Session", return_value=session):
            fetcher.fetch_json("https://example.com/api")

        assert session.request.call_count == 1


class TestBoundedFetcherFailures:
    """Every failure kind SHALL surface as FetchError."""

    def test_http_error_status(self):
        session = _mock_session(status_error=requests.HTTPError("500 Server Error"))
        fetcher = BoundedFetcher()

        with patch("src.engines.bounded_fetcher.requests.Session", return_value=session):
            with pytest.raises(FetchError):
                fetcher.fetch_json("https://example.com/api")

    def test_connection_error(self):
        session = _mock_session(request_error=requests.ConnectionError("refused"))
        fetcher = BoundedFetcher()

        with patch("src.engines.bounded_fetcher.requests.Session", return_value=session):
            with pytest.raises(FetchError):
                fetcher.fetch_text("https://example.com/feed")

    def test_timeout(self):
        session = _mock_session(request_error=requests.Timeout("read timed out"))
        fetcher = BoundedFetcher()

        with patch("src.engines.bounded_fetcher.requests.Session", return_value=session):
            with pytest.raises(FetchError):
                fetcher.fetch_json("https://example.com/api")

    def test_malformed_json(self):
        session = _mock_session(b"<html>not json</html>")
        fetcher = BoundedFetcher()

        with patch("src.engines.bounded_fetcher.requests.Session", return_value=session):
            with pytest.raises(FetchError):
                fetcher.fetch_json("https://example.com/api")

    def test_deadline_expires_while_reading_body(self):
        session = _mock_session(b"0123456789abcdef")
        fetcher = BoundedFetcher(timeout_seconds=10)

        # Start at t=0; every later reading is past the deadline.
        readings = [0.0]

        def clock():
            return readings.pop(0) if readings else 11.0

        with patch("src.engines.bounded_fetcher.requests.Session", return_value=session), \
                patch("src.engines.bounded_fetcher.time.monotonic", side_effect=clock):
            with pytest.raises(FetchError, match="Deadline"):
                fetcher.fetch_text("https://example.com/slow")

    def test_resources_released_on_failure(self):
        session = _mock_session(status_error=requests.HTTPError("503"))
        response = session.request.return_value
        fetcher = BoundedFetcher()

        with patch("src.engines.bounded_fetcher.requests.Session", return_value=session):
            with pytest.raises(FetchError):
                fetcher.fetch_json("https://example.com/api")

        session.__exit__.assert_called_once()
        response.__exit__.assert_called_once()


class _SlowHandler(BaseHTTPRequestHandler):
    """Serves /drip one byte at a time, /stall never answers, /fast at once."""

    BODY = b"x" * 40

    def do_GET(self):
        try:
            if self.path == "/stall":
                time.sleep(3)
                return
            self.send_response(200)
            self.send_header("Content-Type", "text/plain; charset=utf-8")
            self.send_header("Content-Length", str(len(self.BODY)))
            self.end_headers()
            if self.path == "/fast":
                self.wfile.write(self.BODY)
                return
            for byte in self.BODY:
                self.wfile.write(bytes([byte]))
                self.wfile.flush()
                time.sleep(0.1)
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):
        pass


@pytest.fixture
def slow_server():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _SlowHandler)
    server.daemon_threads = True
    server.block_on_close = False
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


class TestBoundedFetcherDeadline:
    """The whole call SHALL finish within the deadline, however slow the server."""

    def test_trickled_body_is_cut_off_at_deadline(self, slow_server):
        fetcher = BoundedFetcher(timeout_seconds=1.0)

        started = time.monotonic()
        with pytest.raises(FetchError, match="Deadline"):
            fetcher.fetch_text(f"{slow_server}/drip")

        assert time.monotonic() - started < 1.5

    def test_stalled_headers_are_cut_off_at_deadline(self, slow_server):
        fetcher = BoundedFetcher(timeout_seconds=0.5)

        started = time.monotonic()
        with pytest.raises(FetchError):
            fetcher.fetch_text(f"{slow_server}/stall")

        assert time.monotonic() - started < 1.0

    def test_prompt_response_is_read_in_full(self, slow_server):
        fetcher = BoundedFetcher(timeout_seconds=2.0)
        assert fetcher.fetch_text(f"{slow_server}/fast") == "x" * 40
