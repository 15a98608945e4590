"""Shared HTTP client with retry logic and rate limiting."""

import time
from typing import Dict, Optional

import requests

USER_AGENT = "post-ledger-linkcheck/0.1 (+https://pypi.org/project/post-ledger/)"
RETRYABLE_STATUS = (429, 500, 502, 503, 504)


class RetryableHTTPClient:
    """HTTP client with exponential backoff retry logic and rate limiting.

    Handles throttling and transient server failures (429, 500, 502, 503, 504)
    with exponential backoff, respects Retry-After headers, and enforces a
    minimum interval between requests.

    Args:
        rps: Maximum requests per second (default: 1.0)
        max_retries: Maximum number of attempts per request (default: 3)
        timeout: Request timeout in seconds (default: 15)
    """

    def __init__(self, rps: float = 1.0, max_retries: int = 3, timeout: int = 15):
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})
        self.rps = rps
        self.max_retries = max(1, int(max_retries))
        self.timeout = timeout
        self.min_interval = 1.0 / max(rps, 0.01)
        self.last_request_time = 0.0

    def _rate_limit(self):
        """Enforce rate limiting between requests."""
        now = time.time()
        elapsed = now - self.last_request_time
        if elapsed < self.min_interval:
            time.sleep(self.min_interval - elapsed)
        self.last_request_time = time.time()

    def request_with_retry(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> requests.Response:
        """Issue a request, retrying throttled/server errors with backoff.

        The final response is returned even when its status is an error; the
        caller decides what counts as broken.

        Raises:
            requests.RequestException: On network errors after retries exhausted
        """
        timeout = timeout or self.timeout
        response = None

        for attempt in range(self.max_retries):
            try:
                self._rate_limit()
                response = self.session.request(
                    method, url, headers=headers, timeout=timeout, allow_redirects=True, stream=True
                )
            except requests.RequestException:
                if attempt < self.max_retries - 1:
                    time.sleep(min(8.0, 2.0 ** attempt))
                    continue
                raise

            if response.status_code in RETRYABLE_STATUS and attempt < self.max_retries - 1:
                wait = self._calculate_backoff_time(response, attempt)
                response.close()
                time.sleep(wait)
                continue
            return response

        return response

    def status_of(self, url: str) -> int:
        """Return the final HTTP status for *url*.

        Tries HEAD first and falls back to GET for servers that reject HEAD.
        """
        response = self.request_with_retry("HEAD", url)
        if response.status_code in (403, 405, 501):
            response.close()
            response = self.request_with_retry("GET", url)
        response.close()
        return response.status_code

    def _calculate_backoff_time(self, response: requests.Response, attempt: int) -> float:
        """Calculate backoff time, respecting Retry-After header if present."""
        retry_after = response.headers.get("Retry-After")
        if retry_after:
            try:
                return max(float(retry_after), 1.0)
            except (ValueError, TypeError):
                pass
        # Exponential backoff: 1s, 2s, 4s, max 8s
        return min(8.0, 2.0 ** attempt)

    def close(self):
        """Close the underlying session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
