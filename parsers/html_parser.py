from abc import ABC, abstractmethod
from typing import List, Optional
from bs4 import BeautifulSoup, Tag
import re
from models.entry import Entry, EntryDetails
from core import constants
from core.logger import get_logger

logger = get_logger(__name__)

WORK_ID_PATTERN = re.compile(r"/works/(\d+)")


class BaseParser(ABC):
    @abstractmethod
    def parse_list(self, html: str) -> List[Entry]:
        pass

    @abstractmethod
    def parse_detail(self, html: str) -> EntryDetails:
        pass


def chapter_label(raw: str) -> Optional[str]:
    """'12/20' or '3/?' -> 'Chapter 12'. Anything without a slash has no label."""
    raw = (raw or "").strip()
    if "/" not in raw:
        return None
    current = raw.split("/")[0].strip()
    return f"Chapter {current}" if current else None


class AO3Parser(BaseParser):
    """
    Parses AO3 listing (search, tag, bookmark) pages and work pages.
    Selectors default to AO3's blurb markup.
    """

    def __init__(
        self,
        list_selector: str = "li.work",
        link_selector: str = "h4.heading a[href^='/works/']",
        author_selector: str = "a[rel='author']",
        chapters_selector: str = "dd.chapters",
    ):
        self.list_selector = list_selector
        self.link_selector = link_selector
        self.author_selector = author_selector
        self.chapters_selector = chapters_selector

    def parse_list(self, html: str) -> List[Entry]:
        """
        Returns every recognisable work block in page order.
        Duplicates are kept here; the extractor drops them.
        """
        soup = BeautifulSoup(html or "", "html.parser")
        items = []
        rows = soup.select(self.list_selector)

        if not rows:
            logger.warning(f"[PARSER] No items found with selector '{self.list_selector}'")

        for row in rows:
            link_el = row.select_one(self.link_selector)
            if not link_el:
                continue

            match = WORK_ID_PATTERN.search(link_el.get("href") or "")
            if not match:
                logger.debug(f"[PARSER] Skipping link without work id: {link_el.get('href')}")
                continue

            items.append(
                Entry(
                    id=match.group(1),
                    title=link_el.get_text(strip=True),
                    author=self._author(row),
                    progress_label=self._chapters(row),
                )
            )

        logger.debug(f"[PARSER] Found {len(items)} work blocks")
        return items

    def parse_detail(self, html: str) -> EntryDetails:
        soup = BeautifulSoup(html or "", "html.parser")
        return EntryDetails(author=self._author(soup), progress_label=self._chapters(soup))

    def _author(self, node: Tag) -> str:
        author_el = node.select_one(self.author_selector)
        author = author_el.get_text(strip=True) if author_el else ""
        return author or constants.UNKNOWN_AUTHOR

    def _chapters(self, node: Tag) -> Optional[str]:
        chapters_el = node.select_one(self.chapters_selector)
        return chapter_label(chapters_el.get_text(strip=True)) if chapters_el else None
