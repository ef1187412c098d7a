import aiohttp
import asyncio
from typing import Awaitable, Callable, List, Optional

from core.config import Settings
from core.exceptions import FetchError
from core.logger import get_logger
from core.utils import item_url
from models.entry import EnrichmentMap, Entry
from parsers.html_parser import AO3Parser, BaseParser
from services.scraper.fetcher import ResilientFetcher

logger = get_logger(__name__)


class DetailEnricher:
    """
    Fetches the item page of each new entry with a fixed pool of workers
    pulling from one queue. A failed entry just gets no details.
    """

    def __init__(
        self,
        settings: Settings,
        fetcher: ResilientFetcher,
        parser: Optional[BaseParser] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.fetcher = fetcher
        self.parser = parser or AO3Parser()
        self.item_base_url = settings.ITEM_BASE_URL
        self.delay = settings.ENRICH_DELAY
        self.sleep = sleep

    async def enrich(
        self,
        session: aiohttp.ClientSession,
        entries: List[Entry],
        concurrency_limit: int,
    ) -> EnrichmentMap:
        """
        Returns {entry id: EntryDetails} for every entry whose page could be
        fetched and parsed. At most concurrency_limit fetches are in flight.
        """
        queue: asyncio.Queue = asyncio.Queue()
        for entry in entries:
            queue.put_nowait(entry)

        results: EnrichmentMap = {}
        worker_count = max(1, min(concurrency_limit, len(entries)))
        workers = [
            asyncio.create_task(self._worker(session, queue, results))
            for _ in range(worker_count)
        ]
        await asyncio.gather(*workers)

        logger.info(
            f"[ENRICHER] Enriched {len(results)}/{len(entries)} works",
            context={"workers": worker_count},
        )
        return results

    async def _worker(
        self,
        session: aiohttp.ClientSession,
        queue: asyncio.Queue,
        results: EnrichmentMap,
    ) -> None:
        while True:
            try:
                entry = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            url = item_url(self.item_base_url, entry.id)
            try:
                html = await self.fetcher.fetch(session, url)
                results[entry.id] = self.parser.parse_detail(html)
            except FetchError as e:
                logger.warning(
                    f"[ENRICHER] Keeping listing fields for {entry.id}: {e}",
                    context={"url": url},
                )
            except Exception as e:
                logger.error(
                    f"[ENRICHER] Unexpected error for {entry.id}, keeping listing fields: {e}",
                    context={"url": url},
                    exc_info=True,
                )
            finally:
                queue.task_done()

            await self.sleep(self.delay)
