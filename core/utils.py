"""
Small helpers shared by the fetcher, the notifier and the formatters.
"""
import math
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from core import constants


def add_cache_buster(url: str, clock: Callable[[], float] = time.time) -> str:
    """
    Returns url with `_=<epoch ms>` set, replacing any existing `_` param.
    Every other query parameter is kept in its original order.

    Example:
        >>> add_cache_buster("https://x.org/works?tag=a", clock=lambda: 1.5)
        'https://x.org/works?tag=a&_=1500'
    """
    parts = urlsplit(url)
    query = [
        (k, v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
        if k != constants.CACHE_BUSTER_PARAM
    ]
    query.append((constants.CACHE_BUSTER_PARAM, str(int(clock() * 1000))))
    return urlunsplit(parts._replace(query=urlencode(query)))


def parse_retry_after(value: Optional[str], now: Optional[datetime] = None) -> Optional[float]:
    """
    Parses a Retry-After header (delta-seconds or HTTP-date) into seconds.
    Returns None when the value is missing, unparseable or not finite.
    """
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None

    try:
        seconds = float(value)
    except ValueError:
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        seconds = (when - (now or datetime.now(timezone.utc))).total_seconds()

    if not math.isfinite(seconds):
        return None
    return max(seconds, 0.0)


def item_url(base_url: str, entry_id: str) -> str:
    """Canonical item URL for an entry id."""
    return f"{base_url.rstrip('/')}/{entry_id}"
