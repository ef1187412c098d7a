from typing import Optional
from models.entry import ListingSnapshot
from parsers.html_parser import AO3Parser, BaseParser
from core.logger import get_logger

logger = get_logger(__name__)


class ListingExtractor:
    """
    Turns fetched listing markup into a ListingSnapshot.
    Pure: no I/O, and an empty snapshot is a valid result, not an error.
    """

    def __init__(self, parser: Optional[BaseParser] = None):
        self.parser = parser or AO3Parser()

    def extract(self, html: str) -> ListingSnapshot:
        """
        Parses the listing and drops repeated ids, keeping the first
        occurrence so the source's newest-first order is preserved.
        """
        seen = set()
        entries = []
        for entry in self.parser.parse_list(html):
            if entry.id in seen:
                logger.debug(f"[PARSER] Dropping duplicate work {entry.id}")
                continue
            seen.add(entry.id)
            entries.append(entry)

        logger.info(f"[PARSER] Extracted {len(entries)} works")
        return ListingSnapshot(entries=entries)
