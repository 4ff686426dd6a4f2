"""Tests for the Fetcher retry policy and HTTP backend selection."""

import pytest
import requests
import urllib3

from localbin.exceptions import FetchBackendMissingError, FetchError, FetchErrorKind
from localbin.install.http import (
    Fetcher,
    HttpBackend,
    HttpResponse,
    RequestsBackend,
    Urllib3Backend,
    select_backend,
)

pytestmark = [pytest.mark.unit]


class ScriptedBackend(HttpBackend):
    """Backend replaying a fixed sequence of responses or transport errors."""

    name = "scripted"

    def __init__(self, script):
        self.script = list(script)
        self.calls = []

    def get(self, url, headers, destination=None):
        self.calls.append((url, dict(headers), destination))
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        if destination is not None and step.status_code < 400:
            destination.write_bytes(step.body)
            return HttpResponse(step.status_code, step.headers, bytes_written=len(step.body))
        return step


def _ok(body=b"payload"):
    return HttpResponse(200, {}, body)


class TestFetcherRetries:
    def test_fetch_bytes_returns_body(self):
        backend = ScriptedBackend([_ok(b"{}")])
        fetcher = Fetcher(backend=backend)

        assert fetcher.fetch_bytes("https://api.example/x", {"Accept": "json"}) == b"{}"
        _, headers, destination = backend.calls[0]
        assert headers["Accept"] == "json"
        assert headers["User-Agent"].startswith("localbin/")
        assert destination is None

    def test_fetch_writes_destination(self, tmp_path):
        backend = ScriptedBackend([_ok(b"binary")])
        target = tmp_path / "asset"

        result = Fetcher(backend=backend).fetch("https://dl.example/a", target)

        assert result == target
        assert target.read_bytes() == b"binary"
        _, headers, _ = backend.calls[0]
        assert set(headers) == {"User-Agent"}

    def test_transport_errors_are_retried(self):
        backend = ScriptedBackend(
            [FetchError("reset"), FetchError("timeout"), _ok(b"done")]
        )
        assert Fetcher(backend=backend).fetch_bytes("u") == b"done"
        assert len(backend.calls) == 3

    @pytest.mark.parametrize("status", [408, 429, 500, 502, 503, 504])
    def test_retryable_status_then_success(self, status):
        backend = ScriptedBackend([HttpResponse(status), _ok()])
        assert Fetcher(backend=backend).fetch_bytes("u") == b"payload"
        assert len(backend.calls) == 2

    def test_gives_up_after_three_retries(self, mocker):
        sleep = mocker.patch("localbin.install.http.time.sleep")
        backend = ScriptedBackend([HttpResponse(503)] * 4)

        with pytest.raises(FetchError) as exc_info:
            Fetcher(backend=backend).fetch_bytes("u")

        assert len(backend.calls) == 4
        assert exc_info.value.status_code == 503
        assert exc_info.value.retry_count == 3
        assert sleep.call_count == 3
        sleep.assert_called_with(2.0)

    def test_not_found_fails_without_retry(self):
        backend = ScriptedBackend([HttpResponse(404), _ok()])

        with pytest.raises(FetchError) as exc_info:
            Fetcher(backend=backend).fetch_bytes("https://api.example/missing")

        assert len(backend.calls) == 1
        assert exc_info.value.kind is FetchErrorKind.HTTP
        assert exc_info.value.url == "https://api.example/missing"

    def test_rate_limit_message_on_403(self):
        headers = {"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1700000000"}
        backend = ScriptedBackend([HttpResponse(403, headers)])

        with pytest.raises(FetchError) as exc_info:
            Fetcher(backend=backend).fetch_bytes("u")

        assert "rate limit exceeded" in str(exc_info.value)
        assert "2023-11-14 22:13:20 UTC" in str(exc_info.value)

    def test_custom_retry_count(self):
        backend = ScriptedBackend([FetchError("down")] * 2)
        with pytest.raises(FetchError):
            Fetcher(backend=backend, retries=1).fetch_bytes("u")
        assert len(backend.calls) == 2


class TestBackendSelection:
    def test_prefers_requests(self, mocker):
        mocker.patch("localbin.install.http.importlib.util.find_spec", return_value=object())
        assert isinstance(select_backend(), RequestsBackend)

    def test_falls_back_to_urllib3(self, mocker):
        mocker.patch(
            "localbin.install.http.importlib.util.find_spec",
            side_effect=lambda name: None if name == "requests" else object(),
        )
        assert isinstance(select_backend(), Urllib3Backend)

    def test_no_backend_available(self, mocker):
        mocker.patch("localbin.install.http.importlib.util.find_spec", return_value=None)
        with pytest.raises(FetchBackendMissingError) as exc_info:
            Fetcher()
        assert exc_info.value.kind is FetchErrorKind.NO_BACKEND


class TestRequestsBackend:
    def test_streams_to_destination(self, mocker, tmp_path):
        backend = RequestsBackend()
        response = mocker.MagicMock()
        response.status_code = 200
        response.headers = {"Content-Type": "application/octet-stream"}
        response.iter_content.return_value = [b"ab", b"", b"cd"]
        response.__enter__.return_value = response
        get = mocker.patch.object(backend.session, "get", return_value=response)

        result = backend.get("https://dl.example/a", {"User-Agent": "t"}, tmp_path / "a")

        assert result.bytes_written == 4
        assert (tmp_path / "a").read_bytes() == b"abcd"
        assert get.call_args.kwargs["stream"] is True
        assert get.call_args.kwargs["timeout"] == (15, 60)

    def test_error_status_keeps_body_in_memory(self, mocker, tmp_path):
        backend = RequestsBackend()
        response = mocker.MagicMock()
        response.status_code = 404
        response.headers = {}
        response.content = b"Not Found"
        response.__enter__.return_value = response
        mocker.patch.object(backend.session, "get", return_value=response)

        result = backend.get("u", {}, tmp_path / "a")

        assert result.status_code == 404
        assert result.body == b"Not Found"
        assert not (tmp_path / "a").exists()

    def test_request_exception_becomes_fetch_error(self, mocker):
        backend = RequestsBackend()
        mocker.patch.object(
            backend.session, "get", side_effect=requests.ConnectionError("refused")
        )
        with pytest.raises(FetchError, match="Network error"):
            backend.get("https://dl.example/a", {})


class TestUrllib3Backend:
    def test_reads_body_and_releases_connection(self, mocker):
        backend = Urllib3Backend()
        response = mocker.MagicMock()
        response.status = 200
        response.headers = {"Content-Type": "application/json"}
        response.read.return_value = b"{}"
        mocker.patch.object(backend.pool, "request", return_value=response)

        result = backend.get("https://api.example/x", {"Accept": "json"})

        assert result.body == b"{}"
        response.release_conn.assert_called_once()

    def test_http_error_becomes_fetch_error(self, mocker):
        backend = Urllib3Backend()
        mocker.patch.object(
            backend.pool,
            "request",
            side_effect=urllib3.exceptions.NewConnectionError(None, "refused"),
        )
        with pytest.raises(FetchError):
            backend.get("https://api.example/x", {})
