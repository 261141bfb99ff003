"""
Bounded retry with linear backoff.

Best-effort mitigation for transient upstream faults: attempt the call,
and on failure wait `backoff × attempt` seconds (1s, 2s, ...) before the
next attempt. There is no wait after the final attempt, no jitter and
no cap on the backoff.

Whether a non-2xx response counts as a failure depends on the caller:
- Feed lookups return the response as-is so the proxy can report the
  upstream status instead of retrying it
- Weather lookups treat non-2xx as retryable
"""

import logging
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

import requests

from backend.config import config
from backend.exceptions import RetriesExhausted

logger = logging.getLogger(__name__)

T = TypeVar('T')


def call_with_retry(
    func: Callable[[], T],
    max_attempts: int,
    retry_on: Tuple[Type[BaseException], ...] = (requests.RequestException,),
    backoff_seconds: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call `func` until it succeeds or `max_attempts` attempts have failed.

    Only exceptions listed in `retry_on` are retried; anything else
    propagates immediately.

    Raises:
        RetriesExhausted after the last failed attempt, chained to the
        last error.
    """
    if max_attempts < 1:
        raise ValueError('max_attempts must be at least 1')

    if backoff_seconds is None:
        backoff_seconds = config.retry.backoff_seconds

    last_error = None
    for attempt in range(1, max_attempts + 1):
        try:
            return func()
        except retry_on as e:
            last_error = e
            logger.warning(f'Attempt {attempt}/{max_attempts} failed: {e}')
            if attempt < max_attempts:
                sleep(backoff_seconds * attempt)

    raise RetriesExhausted(max_attempts, last_error) from last_error


def fetch_with_retry(
    url: str,
    max_attempts: int,
    session: Optional[requests.Session] = None,
    retry_on_status: bool = False,
    backoff_seconds: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
    **request_kwargs,
) -> requests.Response:
    """
    GET `url` with bounded retries.

    Args:
        url: URL to fetch
        max_attempts: Total attempts before giving up
        session: requests session to use (module-level requests if None)
        retry_on_status: Treat non-2xx responses as retryable failures
        backoff_seconds: Linear backoff unit (from config if None)
        sleep: Sleep function, injectable for tests
        **request_kwargs: Passed through to `get` (params, headers, timeout)

    Returns:
        The first response that counts as a success.

    Raises:
        RetriesExhausted once every attempt has failed.
    """
    http = session or requests
    request_kwargs.setdefault('timeout', config.feed.timeout_seconds)

    def attempt() -> requests.Response:
        response = http.get(url, **request_kwargs)
        if retry_on_status:
            response.raise_for_status()
        return response

    return call_with_retry(
        attempt,
        max_attempts,
        backoff_seconds=backoff_seconds,
        sleep=sleep,
    )
