"""
HTTP session and request helpers shared by the REST and GraphQL transports:
primary/secondary rate limit handling, exponential backoff and polite delays.
"""
from __future__ import annotations

import logging
import os
import time
from typing import Any, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

# Pause before every request
_DEFAULT_DELAY_SEC = float(os.getenv("GH_REPORT_REQ_DELAY", "0.25"))
# Attempts on rate limits, 429/5xx and connection errors
_DEFAULT_MAX_ATTEMPTS = int(os.getenv("GH_REPORT_REQ_MAX_ATTEMPTS", "6"))
# Exponential backoff base, in seconds
_DEFAULT_BACKOFF_BASE = float(os.getenv("GH_REPORT_REQ_BACKOFF_BASE", "1.7"))

_TRANSIENT_STATUS = (429, 500, 502, 503, 504)

DEFAULT_USER_AGENT = "gh-report"


def make_rate_limited_session(token: Optional[str], user_agent: str = DEFAULT_USER_AGENT) -> requests.Session:
    """Create a Session carrying the API headers; its adapter retries dropped connections only.

    Status based retries happen in :func:`request_with_rate_limit`, which knows
    how long a rate-limited response asks us to wait.
    """
    session = requests.Session()
    connection_retries = Retry(
        total=3,
        connect=3,
        read=2,
        backoff_factor=0.5,
        status_forcelist=[],
        allowed_methods=frozenset({"GET", "POST"}),
        raise_on_status=False,
    )
    for prefix in ("https://", "http://"):
        session.mount(prefix, HTTPAdapter(max_retries=connection_retries))
    session.headers["Accept"] = "application/vnd.github+json"
    session.headers["User-Agent"] = user_agent or DEFAULT_USER_AGENT
    if token:
        session.headers["Authorization"] = f"Bearer {token}"
    return session


def rate_limit_sleep_seconds(resp: requests.Response, now: Optional[float] = None) -> Optional[float]:
    """Seconds to wait before retrying ``resp``, or None if it is not rate limited.

    Secondary rate limits answer 403/429 with ``Retry-After``; an exhausted
    primary limit answers 403 with ``X-RateLimit-Remaining: 0`` and a reset epoch.
    """
    if resp.status_code not in (403, 429):
        return None
    retry_after = resp.headers.get("Retry-After")
    if retry_after is not None:
        try:
            return max(0.0, float(retry_after))
        except ValueError:
            return None
    if resp.headers.get("X-RateLimit-Remaining") != "0":
        return None
    try:
        reset_at = int(resp.headers.get("X-RateLimit-Reset", "0"))
    except ValueError:
        return None
    current = time.time() if now is None else now
    # two seconds of slack past the reset
    return max(0.0, reset_at - current + 2.0)


def _retry_wait(resp: requests.Response, attempt: int, backoff_base: float) -> Optional[Tuple[str, float]]:
    """Why and how long to wait before retrying ``resp``; None when it is final."""
    reset_wait = rate_limit_sleep_seconds(resp)
    if reset_wait is not None:
        return "rate limited", reset_wait
    if resp.status_code in _TRANSIENT_STATUS:
        return f"HTTP {resp.status_code}", backoff_base ** (attempt - 1)
    return None


def request_with_rate_limit(
    session: requests.Session,
    method: str,
    url: str,
    *,
    logger: Optional[logging.Logger] = None,
    min_delay_sec: float = _DEFAULT_DELAY_SEC,
    max_attempts: int = _DEFAULT_MAX_ATTEMPTS,
    backoff_base: float = _DEFAULT_BACKOFF_BASE,
    **kwargs: Any,
) -> requests.Response:
    """Send one API request, waiting out rate limits and backing off on transient failures.

    The last response is returned as-is once it is final or ``max_attempts``
    is reached; callers decide whether to ``raise_for_status()``. Connection
    errors are re-raised after the last attempt.
    """
    log = logger or logging.getLogger("ghreport.rate_limit")
    if min_delay_sec > 0:
        time.sleep(min_delay_sec)

    for attempt in range(1, max_attempts + 1):
        last_attempt = attempt == max_attempts
        try:
            resp = session.request(method, url, **kwargs)
        except requests.RequestException as e:
            if last_attempt:
                raise
            wait = backoff_base ** (attempt - 1)
            log.warning("%s %s failed (%s), attempt %d/%d; retrying in %.1fs",
                        method, url, e, attempt, max_attempts, wait)
            time.sleep(wait)
            continue

        retry = None if last_attempt else _retry_wait(resp, attempt, backoff_base)
        if retry is None:
            return resp
        reason, wait = retry
        log.warning("%s %s %s, attempt %d/%d; retrying in %.1fs",
                    method, url, reason, attempt, max_attempts, wait)
        time.sleep(wait)

    raise ValueError("max_attempts must be at least 1")
