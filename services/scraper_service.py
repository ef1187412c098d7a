import aiohttp
from typing import List, Optional

from core.config import Settings
from core.interfaces import (
    IDetailEnricher,
    IDispatcher,
    IFetcher,
    IListingExtractor,
    IWatermarkStore,
)
from core.logger import get_logger
from core.performance import PerformanceMonitor
from models.entry import EnrichmentMap, Entry
from models.state import RunOutcome, RunReport, Watermark
from repositories.state_repo import WatermarkStore
from services.components.delta_engine import compute_delta
from services.notification_service import NotificationDispatcher
from services.scraper.enricher import DetailEnricher
from services.scraper.fetcher import ResilientFetcher
from services.scraper.parser import ListingExtractor

logger = get_logger(__name__)


class ScraperService:
    """
    One polling run: fetch listing -> extract -> delta against watermark
    -> enrich (small deltas only) -> dispatch -> commit watermark.

    The watermark is written only after everything before it succeeded, so
    a failed run is re-evaluated in full by the next one.
    """

    def __init__(
        self,
        settings: Settings,
        fetcher: Optional[IFetcher] = None,
        extractor: Optional[IListingExtractor] = None,
        enricher: Optional[IDetailEnricher] = None,
        dispatcher: Optional[IDispatcher] = None,
        store: Optional[IWatermarkStore] = None,
        init_mode: bool = False,
        dry_run: bool = False,
    ):
        self.settings = settings
        self.fetcher = fetcher or ResilientFetcher(settings)
        self.extractor = extractor or ListingExtractor()
        self.enricher = enricher or DetailEnricher(settings, self.fetcher)
        self.dispatcher = dispatcher or NotificationDispatcher(settings)
        self.store = store or WatermarkStore(settings.STATE_FILE)
        self.init_mode = init_mode
        self.dry_run = dry_run
        self.monitor = PerformanceMonitor()

    async def run(self) -> RunReport:
        watermark = self.store.load()

        session = await self.fetcher.create_session()
        async with session:
            try:
                return await self._run(session, watermark)
            finally:
                self.monitor.log_summary()

    async def _run(self, session: aiohttp.ClientSession, watermark: Watermark) -> RunReport:
        url = self.settings.AO3_SEARCH_URL
        with self.monitor.measure("listing_fetch"):
            html = await self.fetcher.fetch(session, url)

        snapshot = self.extractor.extract(html)

        if snapshot.is_empty():
            # Zero works is a format-health signal, not "nothing new"
            if self.dry_run:
                logger.warning("[RUNNER] Dry run: listing parsed to zero works, alert not sent")
            else:
                await self.dispatcher.send_empty_listing_alert(session)
            return RunReport(
                outcome=RunOutcome.PARSE_EMPTY, watermark=watermark.last_seen_id
            )

        head_id = snapshot.head.id

        if self.init_mode or not watermark.is_initialized:
            logger.info(f"[RUNNER] Seeding watermark at {head_id} without notifying")
            self._commit(head_id)
            return RunReport(outcome=RunOutcome.INITIALIZED, watermark=head_id)

        delta = compute_delta(snapshot, watermark)
        new_entries = delta.new_entries

        if not new_entries:
            logger.info("[RUNNER] No new works")
            self._commit(delta.next_watermark)
            return RunReport(outcome=RunOutcome.NO_CHANGES, watermark=delta.next_watermark)

        logger.info(f"[RUNNER] {len(new_entries)} new works since {watermark.last_seen_id}")
        details = await self._enrich(session, new_entries)

        if self.dry_run:
            for message in self.dispatcher.build_messages(new_entries, details):
                logger.info(f"[RUNNER] Dry run message:\n{message}")
            return RunReport(
                outcome=RunOutcome.DRY_RUN,
                new_entries=len(new_entries),
                watermark=watermark.last_seen_id,
            )

        with self.monitor.measure("dispatch", {"works": len(new_entries)}):
            sent = await self.dispatcher.dispatch(session, new_entries, details)

        self._commit(delta.next_watermark)
        return RunReport(
            outcome=RunOutcome.NOTIFIED,
            new_entries=len(new_entries),
            messages_sent=sent,
            watermark=delta.next_watermark,
        )

    async def _enrich(
        self, session: aiohttp.ClientSession, new_entries: List[Entry]
    ) -> EnrichmentMap:
        if len(new_entries) >= self.settings.ENRICH_MAX_ENTRIES:
            logger.info(
                f"[RUNNER] Skipping item pages for {len(new_entries)} works "
                f"(limit {self.settings.ENRICH_MAX_ENTRIES})"
            )
            return {}

        with self.monitor.measure("enrichment", {"works": len(new_entries)}):
            return await self.enricher.enrich(
                session, new_entries, self.settings.ENRICH_CONCURRENCY
            )

    def _commit(self, head_id: Optional[str]) -> None:
        if self.dry_run:
            logger.info(f"[RUNNER] Dry run: watermark would be {head_id}")
            return
        self.store.save(Watermark(last_seen_id=head_id))
