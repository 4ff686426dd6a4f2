"""
HTTP fetching for localbin.

Two interchangeable client backends are supported: `requests` and plain
`urllib3`. The first importable one is selected once when a Fetcher is
created. Retries are synchronous with a fixed delay between attempts.
"""

import importlib.util
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple, Type

from localbin.constants import (
    CONNECT_TIMEOUT,
    DEFAULT_CHUNK_SIZE,
    FETCH_RETRIES,
    FETCH_RETRY_DELAY,
    READ_TIMEOUT,
    RETRYABLE_STATUS_CODES,
)
from localbin.exceptions import FetchBackendMissingError, FetchError, FetchErrorKind
from localbin.log_utils import logger
from localbin.utils import describe_rate_limit, get_user_agent

from .interfaces import Pathish


@dataclass
class HttpResponse:
    """Outcome of a single GET request."""

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    """Response body; empty when the body was streamed to a file"""

    bytes_written: int = 0
    """Number of bytes streamed to the destination file"""


def _write_chunks(chunks: Iterable[bytes], destination: Path) -> int:
    written = 0
    with open(destination, "wb") as target:
        for chunk in chunks:
            if chunk:
                target.write(chunk)
                written += len(chunk)
    return written


class HttpBackend(ABC):
    """
    A minimal GET client.

    Backends return the response for any HTTP status and only raise
    FetchError for transport failures (DNS, refused connections, timeouts).
    When `destination` is given and the status is below 400, the body is
    streamed to that path instead of being held in memory.
    """

    name = "abstract"

    @abstractmethod
    def get(
        self,
        url: str,
        headers: Mapping[str, str],
        destination: Optional[Path] = None,
    ) -> HttpResponse:
        """Perform one GET request without retrying."""

    def close(self) -> None:
        """Release pooled connections."""


class RequestsBackend(HttpBackend):
    name = "requests"

    def __init__(self) -> None:
        import requests

        self._requests = requests
        self.session = requests.Session()

    def get(
        self,
        url: str,
        headers: Mapping[str, str],
        destination: Optional[Path] = None,
    ) -> HttpResponse:
        try:
            with self.session.get(
                url,
                headers=dict(headers),
                stream=True,
                timeout=(CONNECT_TIMEOUT, READ_TIMEOUT),
            ) as response:
                response_headers = dict(response.headers)
                if destination is None or response.status_code >= 400:
                    return HttpResponse(
                        response.status_code, response_headers, response.content
                    )
                written = _write_chunks(
                    response.iter_content(chunk_size=DEFAULT_CHUNK_SIZE), destination
                )
                return HttpResponse(
                    response.status_code, response_headers, bytes_written=written
                )
        except self._requests.RequestException as e:
            raise FetchError(
                f"Network error fetching {url}", url=url, details=str(e)
            ) from e

    def close(self) -> None:
        self.session.close()


class Urllib3Backend(HttpBackend):
    name = "urllib3"

    def __init__(self) -> None:
        import urllib3

        self._urllib3 = urllib3
        # Only redirects are followed here; Fetcher owns the retry policy.
        self.pool = urllib3.PoolManager(
            timeout=urllib3.Timeout(connect=CONNECT_TIMEOUT, read=READ_TIMEOUT),
            retries=urllib3.Retry(
                total=None, connect=0, read=0, status=0, other=0, redirect=10
            ),
        )

    def get(
        self,
        url: str,
        headers: Mapping[str, str],
        destination: Optional[Path] = None,
    ) -> HttpResponse:
        response = None
        try:
            response = self.pool.request(
                "GET", url, headers=dict(headers), preload_content=False
            )
            response_headers = dict(response.headers)
            if destination is None or response.status >= 400:
                return HttpResponse(response.status, response_headers, response.read())
            written = _write_chunks(response.stream(DEFAULT_CHUNK_SIZE), destination)
            return HttpResponse(response.status, response_headers, bytes_written=written)
        except self._urllib3.exceptions.HTTPError as e:
            raise FetchError(
                f"Network error fetching {url}", url=url, details=str(e)
            ) from e
        finally:
            if response is not None:
                response.release_conn()

    def close(self) -> None:
        self.pool.clear()


# Backends in order of preference: (importable module, backend class)
BACKEND_CANDIDATES: Sequence[Tuple[str, Type[HttpBackend]]] = (
    ("requests", RequestsBackend),
    ("urllib3", Urllib3Backend),
)


def select_backend(
    candidates: Sequence[Tuple[str, Type[HttpBackend]]] = BACKEND_CANDIDATES,
) -> HttpBackend:
    """
    Instantiate the first HTTP backend whose library can be imported.

    Returns:
        HttpBackend: The selected backend.

    Raises:
        FetchBackendMissingError: If none of the candidate libraries is installed.
    """
    for module_name, backend_cls in candidates:
        if importlib.util.find_spec(module_name) is not None:
            logger.debug(f"Using HTTP backend: {backend_cls.name}")
            return backend_cls()
    raise FetchBackendMissingError()


class Fetcher:
    """
    Retrieves URLs to disk or memory with bounded, fixed-delay retries.

    Connection errors, timeouts and retryable HTTP statuses (408, 429, 5xx)
    are retried up to `retries` times, sleeping `retry_delay` seconds
    between attempts. Other HTTP errors fail immediately.
    """

    def __init__(
        self,
        backend: Optional[HttpBackend] = None,
        retries: int = FETCH_RETRIES,
        retry_delay: float = FETCH_RETRY_DELAY,
    ) -> None:
        self.backend = backend if backend is not None else select_backend()
        self.retries = retries
        self.retry_delay = retry_delay

    @property
    def backend_name(self) -> str:
        return self.backend.name

    def fetch(self, url: str, destination: Pathish) -> Path:
        """
        Download `url` into `destination`.

        The caller owns `destination` and should discard it if this raises.

        Returns:
            Path: The destination path.

        Raises:
            FetchError: If the download fails after all retries.
        """
        destination = Path(destination)
        logger.debug(f">>> Fetching: {url}")
        logger.debug(f">>> To file:  {destination}")
        logger.debug(f">>> Using:    {self.backend_name}")
        response = self._get_with_retry(
            url, {"User-Agent": get_user_agent()}, destination
        )
        logger.debug(f"Fetched {response.bytes_written} bytes from {url}")
        return destination

    def fetch_bytes(self, url: str, headers: Optional[Dict[str, str]] = None) -> bytes:
        """
        Fetch `url` and return the response body.

        Raises:
            FetchError: If the request fails after all retries.
        """
        request_headers = {"User-Agent": get_user_agent()}
        request_headers.update(headers or {})
        logger.debug(f"Making HTTP request: {url}")
        return self._get_with_retry(url, request_headers).body

    def close(self) -> None:
        self.backend.close()

    def _get_with_retry(
        self,
        url: str,
        headers: Mapping[str, str],
        destination: Optional[Path] = None,
    ) -> HttpResponse:
        last_error: Optional[FetchError] = None
        for attempt in range(self.retries + 1):
            if attempt:
                logger.debug(
                    f"Retrying {url} in {self.retry_delay}s "
                    f"(attempt {attempt + 1}/{self.retries + 1}): {last_error}"
                )
                time.sleep(self.retry_delay)
            try:
                response = self.backend.get(url, headers, destination)
            except FetchError as e:
                last_error = e
                continue

            logger.debug(f"Received HTTP {response.status_code} for {url}")
            if response.status_code in RETRYABLE_STATUS_CODES:
                last_error = self._http_error(url, response)
                continue
            if response.status_code >= 400:
                error = self._http_error(url, response)
                error.retry_count = attempt
                raise error
            return response

        assert last_error is not None
        last_error.retry_count = self.retries
        raise last_error

    def _http_error(self, url: str, response: HttpResponse) -> FetchError:
        message = f"HTTP {response.status_code} fetching {url}"
        details = None
        if response.status_code == 403:
            details = describe_rate_limit(response.headers) or "access forbidden"
        return FetchError(
            message,
            kind=FetchErrorKind.HTTP,
            url=url,
            status_code=response.status_code,
            details=details,
        )
