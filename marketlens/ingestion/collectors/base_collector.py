"""Abstract base class for all HTTP data source collectors.

Every collector talks to a third-party HTTP API that rate-limits aggressively
and fails intermittently. The base class owns that discipline so subclasses
only describe endpoints and payloads:

- One shared `requests.Session` per collector instance
- A minimum interval between consecutive requests (lock-guarded, so one
  instance can be shared by a worker pool)
- Retry with exponential backoff and jitter on 429 / 5xx / timeouts and
  dropped connections, honouring `Retry-After`
- Typed failures: `TransientFetchError` after the last retry,
  `PermanentFetchError` for anything that retrying cannot fix
"""

import random
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from marketlens.shared.config import Config
from marketlens.shared.exceptions import PermanentFetchError, TransientFetchError
from marketlens.shared.utils import setup_logger


class BaseCollector(ABC):
    """Base class for all data collectors.

    Subclasses must define:
        SOURCE_NAME (str): identifier used in log messages (e.g. "yahoo").

    Subclasses must implement:
        health_check(): verify the source is reachable.

    Subclasses issue requests through `_request()` / `_get_json()`.
    """

    SOURCE_NAME: str  # e.g. "yahoo", "google_news", "polymarket"

    # Retry policy
    MAX_RETRIES: int = 5
    BACKOFF_BASE: float = 1.0  # seconds, doubled per attempt
    BACKOFF_JITTER: float = 0.25  # seconds, uniform upper bound
    RETRYABLE_STATUS: frozenset[int] = frozenset({429, 500, 502, 503, 504})
    RETRYABLE_EXCEPTIONS: tuple[type[requests.RequestException], ...] = (
        requests.Timeout,
        requests.ConnectionError,
        requests.exceptions.ChunkedEncodingError,
    )

    USER_AGENT = "Mozilla/5.0 (compatible; marketlens/0.1)"

    def __init__(
        self,
        log_file: Path | None = None,
        request_delay: float | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the collector.

        Args:
            log_file: Optional path for file-based logging.
            request_delay: Minimum seconds between requests (default: Config.REQUEST_DELAY).
            timeout: Per-request timeout in seconds (default: Config.REQUEST_TIMEOUT).
        """
        self.logger = setup_logger(self.__class__.__name__, log_file, Config.LOG_LEVEL)
        self.request_delay = Config.REQUEST_DELAY if request_delay is None else request_delay
        self.timeout = Config.REQUEST_TIMEOUT if timeout is None else timeout
        self._session = self._build_session()
        self._last_request_time: float = 0.0
        self._throttle_lock = threading.Lock()

    @abstractmethod
    def health_check(self) -> bool:
        """Verify the data source is reachable and responding.

        Returns:
            True if the source is available, False otherwise.
        """
        ...

    # ------------------------------------------------------------------
    # HTTP layer
    # ------------------------------------------------------------------

    def _request(self, url: str, params: dict[str, Any] | None = None) -> requests.Response:
        """Execute a throttled GET request with retry on transient failures.

        Args:
            url: Fully qualified URL.
            params: Query parameters.

        Returns:
            The successful (2xx) response.

        Raises:
            TransientFetchError: 429 / 5xx / dropped connection persisted past MAX_RETRIES.
            PermanentFetchError: Any other non-2xx status or transport error.
        """
        last_status: int | None = None
        last_exception: requests.RequestException | None = None

        for attempt in range(self.MAX_RETRIES + 1):
            self._throttle()
            retry_after: str | None = None

            try:
                response = self._session.get(url, params=params, timeout=self.timeout)
            except self.RETRYABLE_EXCEPTIONS as exc:
                last_status, last_exception = None, exc
                self.logger.warning(
                    "%s request error (attempt %d/%d): %s",
                    self.SOURCE_NAME,
                    attempt + 1,
                    self.MAX_RETRIES + 1,
                    exc,
                )
            except requests.RequestException as exc:
                raise PermanentFetchError(
                    f"{self.SOURCE_NAME} request to {url} failed: {exc}"
                ) from exc
            else:
                if response.status_code in self.RETRYABLE_STATUS:
                    last_status, last_exception = response.status_code, None
                    retry_after = response.headers.get("Retry-After")
                    self.logger.warning(
                        "%s HTTP %d from %s (attempt %d/%d)",
                        self.SOURCE_NAME,
                        response.status_code,
                        url,
                        attempt + 1,
                        self.MAX_RETRIES + 1,
                    )
                elif not response.ok:
                    raise PermanentFetchError(
                        f"{self.SOURCE_NAME} HTTP {response.status_code} from {url}"
                    )
                else:
                    return response

            if attempt < self.MAX_RETRIES:
                time.sleep(self._backoff_delay(attempt, retry_after))

        raise TransientFetchError(
            f"{self.SOURCE_NAME} request to {url} failed after {self.MAX_RETRIES + 1} attempts",
            status_code=last_status,
            last_exception=last_exception,
        )

    def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET a URL and decode its JSON body.

        Raises:
            PermanentFetchError: If the body is not valid JSON.
        """
        response = self._request(url, params)
        try:
            return response.json()
        except ValueError as exc:
            raise PermanentFetchError(f"{self.SOURCE_NAME} returned invalid JSON from {url}") from exc

    def _backoff_delay(self, attempt: int, retry_after: str | None = None) -> float:
        """Seconds to wait before retry number `attempt + 1`."""
        if retry_after:
            try:
                return max(0.0, float(retry_after))
            except ValueError:
                self.logger.debug("Ignoring non-numeric Retry-After: %s", retry_after)
        return self.BACKOFF_BASE * (2**attempt) + random.uniform(0, self.BACKOFF_JITTER)

    def _throttle(self) -> None:
        """Enforce minimum interval between consecutive requests."""
        with self._throttle_lock:
            elapsed = time.monotonic() - self._last_request_time
            if elapsed < self.request_delay:
                time.sleep(self.request_delay - elapsed)
            self._last_request_time = time.monotonic()

    def _build_session(self) -> requests.Session:
        """Build a requests Session sized for a small worker pool.

        Retries are handled by `_request()`, so the adapter does not retry.
        """
        session = requests.Session()
        adapter = HTTPAdapter(pool_connections=4, pool_maxsize=16, max_retries=0)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        session.headers.update({"User-Agent": self.USER_AGENT})
        return session
