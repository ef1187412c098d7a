"""
Protocol-based interfaces for Dependency Injection.
The runner depends on these contracts so tests can hand in fakes.
"""
from typing import Protocol, List, Optional, runtime_checkable
import aiohttp

from models.entry import EnrichmentMap, Entry, ListingSnapshot
from models.state import Watermark


@runtime_checkable
class IFetcher(Protocol):
    """Interface for the resilient source fetcher."""

    async def create_session(self) -> aiohttp.ClientSession:
        """Opens the HTTP session used for the whole run."""
        ...

    async def fetch(self, session: aiohttp.ClientSession, url: str) -> str:
        """Returns the body or raises FatalSourceError."""
        ...


@runtime_checkable
class IListingExtractor(Protocol):
    """Interface for turning listing markup into entries."""

    def extract(self, html: str) -> ListingSnapshot:
        ...


@runtime_checkable
class IDetailEnricher(Protocol):
    """Interface for per-entry supplemental fetches."""

    async def enrich(
        self,
        session: aiohttp.ClientSession,
        entries: List[Entry],
        concurrency_limit: int,
    ) -> EnrichmentMap:
        ...


@runtime_checkable
class IWatermarkStore(Protocol):
    """Interface for the persisted watermark."""

    def load(self) -> Watermark:
        ...

    def save(self, watermark: Watermark) -> None:
        ...


@runtime_checkable
class IDispatcher(Protocol):
    """Interface for ordered notification delivery."""

    def build_messages(
        self, entries: List[Entry], details: Optional[EnrichmentMap] = None
    ) -> List[str]:
        ...

    async def dispatch(
        self,
        session: aiohttp.ClientSession,
        entries: List[Entry],
        details: Optional[EnrichmentMap] = None,
    ) -> int:
        ...

    async def send_empty_listing_alert(self, session: aiohttp.ClientSession) -> None:
        ...
