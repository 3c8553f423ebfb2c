"""
Jira API Client - HTTP access to the Jira Cloud REST API v3.

Exposes one method per endpoint the ticketing provider needs (issues,
transitions, JQL search, current user). Failures surface as the typed
exceptions from ``taskmaster.core.exceptions``; JiraTicketingProvider turns
them into None/False results.
"""

import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Any

import requests

from taskmaster.core.exceptions import (
    AuthenticationError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    TicketingError,
    TransientError,
)


RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

# Error statuses that are never retried
STATUS_ERRORS: dict[int, type[TicketingError]] = {
    401: AuthenticationError,
    403: PermissionError,
    404: NotFoundError,
}


class RateLimiter:
    """
    Token bucket shared by every request of one client.

    Handlers run on a worker pool, so the bucket is guarded by a lock.
    """

    MIN_RATE = 0.5

    def __init__(self, requests_per_second: float = 5.0, burst_size: int = 10):
        self.requests_per_second = requests_per_second
        self.burst_size = max(1, burst_size)
        self._tokens = float(self.burst_size)
        self._refilled_at = time.monotonic()
        self._lock = threading.Lock()
        self.logger = logging.getLogger("RateLimiter")

    def acquire(self, timeout: float | None = None) -> bool:
        """Take one token, sleeping until one is free or ``timeout`` runs out."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._lock:
                now = time.monotonic()
                self._tokens = min(
                    float(self.burst_size),
                    self._tokens + (now - self._refilled_at) * self.requests_per_second,
                )
                self._refilled_at = now
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return True
                wait = (1.0 - self._tokens) / self.requests_per_second

            if deadline is not None:
                left = deadline - time.monotonic()
                if left <= 0:
                    return False
                wait = min(wait, left)
            time.sleep(wait)

    def slow_down(self) -> None:
        """Halve the rate after the server throttled us."""
        with self._lock:
            self.requests_per_second = max(self.MIN_RATE, self.requests_per_second / 2)
        self.logger.warning(f"Jira throttled requests, rate lowered to {self.requests_per_second:.1f} req/s")


@dataclass
class RetryPolicy:
    """Exponential backoff with jitter for 429/5xx and network failures."""

    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 60.0
    backoff_factor: float = 2.0
    jitter: float = 0.1

    def delay(self, attempt: int, retry_after: int | None = None) -> float:
        if retry_after is not None:
            base = min(float(retry_after), self.max_delay)
        else:
            base = min(self.initial_delay * self.backoff_factor**attempt, self.max_delay)
        spread = base * self.jitter
        return max(0.0, base + random.uniform(-spread, spread))


def retry_after_seconds(response: requests.Response) -> int | None:
    value = response.headers.get("Retry-After")
    if value is None or not str(value).isdigit():
        return None
    return int(value)


class JiraApiClient:
    """
    Jira REST client over a ``requests.Session``.

    Reads always go out. Creates, updates, transitions and deletes are
    logged and skipped in dry-run mode.
    """

    API_VERSION = "3"
    DEFAULT_TIMEOUT = 120.0
    # Jira Cloud allows roughly 100 requests/minute on most endpoints
    DEFAULT_REQUESTS_PER_SECOND = 5.0

    def __init__(
        self,
        base_url: str,
        email: str,
        api_token: str,
        dry_run: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
        retry: RetryPolicy | None = None,
        requests_per_second: float | None = DEFAULT_REQUESTS_PER_SECOND,
    ):
        """
        Initialize the Jira client.

        Args:
            base_url: Jira instance URL (e.g., https://company.atlassian.net)
            email: Account email for basic auth
            api_token: API token for basic auth
            dry_run: If True, skip every mutating request
            timeout: Per-request timeout in seconds
            retry: Backoff settings (defaults to RetryPolicy())
            requests_per_second: Client side rate limit, None to disable
        """
        self.base_url = base_url.rstrip("/")
        self.api_url = f"{self.base_url}/rest/api/{self.API_VERSION}"
        self.dry_run = dry_run
        self.timeout = timeout
        self.retry = retry or RetryPolicy()
        self.rate_limiter = RateLimiter(requests_per_second) if requests_per_second else None
        self.logger = logging.getLogger("JiraApiClient")

        self._session = requests.Session()
        self._session.auth = (email, api_token)
        self._session.headers.update({"Accept": "application/json", "Content-Type": "application/json"})
        self._current_user: dict[str, Any] | None = None

    # -------------------------------------------------------------------------
    # Issues
    # -------------------------------------------------------------------------

    def get_issue(self, key: str, fields: list[str]) -> dict[str, Any]:
        return self._send("GET", f"issue/{key}", params={"fields": ",".join(fields)})

    def create_issue(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Create an issue; returns Jira's ``{"id", "key", "self"}`` (empty in dry-run)."""
        return self._mutate("POST", "issue", json={"fields": fields})

    def update_issue(self, key: str, fields: dict[str, Any]) -> None:
        self._mutate("PUT", f"issue/{key}", json={"fields": fields})

    def delete_issue(self, key: str) -> None:
        self._mutate("DELETE", f"issue/{key}")

    def get_transitions(self, key: str) -> list[dict[str, Any]]:
        return self._send("GET", f"issue/{key}/transitions").get("transitions", [])

    def transition_issue(self, key: str, transition_id: str) -> None:
        self._mutate("POST", f"issue/{key}/transitions", json={"transition": {"id": transition_id}})

    def search_jql(self, jql: str, fields: list[str], max_results: int = 50) -> list[dict[str, Any]]:
        """Issues matching ``jql`` (first page only). Runs in dry-run mode too."""
        data = self._send("POST", "search/jql", json={"jql": jql, "maxResults": max_results, "fields": fields})
        return data.get("issues", [])

    # -------------------------------------------------------------------------
    # Connection
    # -------------------------------------------------------------------------

    def get_myself(self) -> dict[str, Any]:
        if self._current_user is None:
            self._current_user = self._send("GET", "myself")
        return self._current_user

    def test_connection(self) -> bool:
        try:
            self.get_myself()
        except TicketingError as e:
            self.logger.error(f"Cannot connect to Jira at {self.base_url}: {e}")
            return False
        return True

    @property
    def is_connected(self) -> bool:
        return self._current_user is not None

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _mutate(self, method: str, endpoint: str, **kwargs: Any) -> dict[str, Any]:
        if self.dry_run:
            self.logger.info(f"[DRY-RUN] Would {method} {endpoint}")
            return {}
        return self._send(method, endpoint, **kwargs)

    def _send(self, method: str, endpoint: str, **kwargs: Any) -> dict[str, Any]:
        """
        Send one request, retrying throttling, 5xx and network failures.

        Raises:
            AuthenticationError, PermissionError, NotFoundError: On 401/403/404
            RateLimitError: Still throttled after the last retry
            TransientError: Still failing with 5xx or network errors after the last retry
            TicketingError: Any other error status
        """
        url = f"{self.api_url}/{endpoint}"
        kwargs.setdefault("timeout", self.timeout)
        attempts = self.retry.max_retries + 1
        attempt = 0

        while True:
            last_attempt = attempt == attempts - 1
            if self.rate_limiter is not None:
                self.rate_limiter.acquire()

            try:
                response = self._session.request(method, url, **kwargs)
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                kind = "Timeout" if isinstance(e, requests.exceptions.Timeout) else "Connection error"
                if last_attempt:
                    raise TransientError(f"{kind} on {endpoint} after {attempts} attempts: {e}", cause=e) from e
                self._backoff(f"{kind} on {method} {endpoint}", attempt)
                attempt += 1
                continue

            if response.status_code not in RETRYABLE_STATUS_CODES:
                return self._parse(response, endpoint)

            retry_after = retry_after_seconds(response)
            if response.status_code == 429 and self.rate_limiter is not None:
                self.rate_limiter.slow_down()
            if last_attempt:
                if response.status_code == 429:
                    raise RateLimitError(
                        f"Jira rate limit still exceeded for {endpoint}",
                        retry_after=retry_after,
                        ticket_key=endpoint,
                    )
                raise TransientError(f"Server error {response.status_code} for {endpoint}", ticket_key=endpoint)
            self._backoff(f"HTTP {response.status_code} on {method} {endpoint}", attempt, retry_after)
            attempt += 1

    def _backoff(self, reason: str, attempt: int, retry_after: int | None = None) -> None:
        delay = self.retry.delay(attempt, retry_after)
        self.logger.warning(f"{reason}, retry {attempt + 1}/{self.retry.max_retries} in {delay:.2f}s")
        time.sleep(delay)

    @staticmethod
    def _parse(response: requests.Response, endpoint: str) -> dict[str, Any]:
        if response.ok:
            return response.json() if response.text else {}

        error = STATUS_ERRORS.get(response.status_code)
        if error is AuthenticationError:
            raise AuthenticationError("Jira rejected the credentials. Check JIRA_EMAIL and JIRA_API_TOKEN.")
        if error is not None:
            raise error(f"{error.__name__} for {endpoint}", ticket_key=endpoint)
        raise TicketingError(
            f"Jira API error {response.status_code}: {(response.text or '')[:500]}",
            ticket_key=endpoint,
        )
