import aiohttp
import asyncio
import random
import time
from enum import Enum
from typing import Awaitable, Callable, Optional

from core import constants
from core.config import Settings
from core.exceptions import FatalSourceError, FetchError, TransientSourceError
from core.logger import get_logger
from core.utils import add_cache_buster, parse_retry_after

logger = get_logger(__name__)


class FetchState(Enum):
    ATTEMPTING = "attempting"
    RETRY_SCHEDULED = "retry_scheduled"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FetchProgress:
    """
    Explicit retry state for one fetch call:
    ATTEMPTING(n) -> SUCCEEDED | RETRY_SCHEDULED(delay) -> ATTEMPTING(n+1) | FAILED
    """

    def __init__(self, url: str, max_attempts: int):
        self.url = url
        self.max_attempts = max_attempts
        self.attempt = 0
        self.state = FetchState.ATTEMPTING
        self.delay = 0.0
        self.last_error: Optional[FetchError] = None

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts

    def begin_attempt(self) -> int:
        self.attempt += 1
        self.state = FetchState.ATTEMPTING
        self.delay = 0.0
        return self.attempt

    def succeed(self) -> None:
        self.state = FetchState.SUCCEEDED

    def schedule_retry(self, error: TransientSourceError, delay: float) -> None:
        self.last_error = error
        self.delay = delay
        self.state = FetchState.RETRY_SCHEDULED

    def fail(self, error: FetchError) -> None:
        self.last_error = error
        self.state = FetchState.FAILED


class ResilientFetcher:
    """
    GETs source pages with a cache-busting query, escalating per-attempt
    timeouts and backoff with jitter. Retryable statuses and timeouts are
    retried until the attempt budget runs out; anything else fails at once.
    """

    def __init__(
        self,
        settings: Settings,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        jitter: Optional[Callable[[], float]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.max_attempts = settings.FETCH_MAX_ATTEMPTS
        self.timeout_base = settings.FETCH_TIMEOUT_BASE
        self.timeout_cap = settings.FETCH_TIMEOUT_CAP
        self.backoff_base = settings.FETCH_BACKOFF_BASE
        self.jitter_max = settings.FETCH_JITTER_MAX
        self.sleep = sleep
        self.jitter = jitter or (lambda: random.uniform(0, self.jitter_max))
        self.clock = clock
        self.headers = {
            "User-Agent": settings.USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
            "Cache-Control": "no-cache",
        }

    async def create_session(self) -> aiohttp.ClientSession:
        """Creates and returns a new aiohttp session."""
        connector = aiohttp.TCPConnector(limit=10, limit_per_host=5)
        return aiohttp.ClientSession(connector=connector, headers=self.headers)

    def attempt_timeout(self, attempt: int) -> float:
        return min(self.timeout_base * attempt, self.timeout_cap)

    def retry_delay(self, attempt: int, retry_after: Optional[float] = None) -> float:
        delay = self.backoff_base * attempt + self.jitter()
        if retry_after is not None and retry_after > delay:
            delay = retry_after
        return delay

    async def fetch(self, session: aiohttp.ClientSession, url: str) -> str:
        """
        Fetches url and returns the body text.
        Raises FatalSourceError on a non-retryable status or once the attempt
        budget is spent; the last observed failure is carried in details.
        """
        progress = FetchProgress(url, self.max_attempts)

        while True:
            attempt = progress.begin_attempt()
            try:
                body = await self._attempt(session, url, attempt)
            except TransientSourceError as e:
                if progress.exhausted:
                    progress.fail(e)
                    break
                delay = self.retry_delay(attempt, e.retry_after)
                progress.schedule_retry(e, delay)
                logger.warning(
                    f"[FETCHER] Attempt {attempt}/{self.max_attempts} failed: {e.message}. "
                    f"Retrying in {delay:.1f}s",
                    context={"url": url, "status": e.status},
                )
                await self.sleep(progress.delay)
                continue
            except FatalSourceError as e:
                progress.fail(e)
                break

            progress.succeed()
            if attempt > 1:
                logger.info(f"[FETCHER] Succeeded on attempt {attempt}", context={"url": url})
            return body

        last = progress.last_error
        if isinstance(last, FatalSourceError):
            raise last
        raise FatalSourceError(
            f"Giving up on {url} after {progress.attempt} attempts: {last.message}",
            {"url": url, "attempts": progress.attempt, "last_error": last.message},
            status=last.status,
        ) from last

    async def _attempt(self, session: aiohttp.ClientSession, url: str, attempt: int) -> str:
        """One GET. Classifies every outcome as a body, transient or fatal."""
        request_url = add_cache_buster(url, self.clock)
        timeout = self.attempt_timeout(attempt)

        try:
            async with session.get(
                request_url, timeout=aiohttp.ClientTimeout(total=timeout)
            ) as resp:
                if 200 <= resp.status < 300:
                    try:
                        return await resp.text()
                    except (UnicodeDecodeError, LookupError) as e:
                        # Bad or unknown charset: the same bytes will not decode on retry
                        raise FatalSourceError(
                            f"Undecodable body: {type(e).__name__}",
                            {"url": url, "error": str(e)},
                            status=resp.status,
                        ) from e

                if resp.status in constants.RETRYABLE_STATUS_CODES:
                    raise TransientSourceError(
                        f"HTTP {resp.status}",
                        {"url": url},
                        status=resp.status,
                        retry_after=parse_retry_after(resp.headers.get("Retry-After")),
                    )

                raise FatalSourceError(
                    f"Request failed: {resp.status}", {"url": url}, status=resp.status
                )
        except asyncio.TimeoutError:
            raise TransientSourceError(f"Timed out after {timeout:.0f}s", {"url": url})
        except aiohttp.ClientError as e:
            raise TransientSourceError(f"{type(e).__name__}: {e}", {"url": url})
