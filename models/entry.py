from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from core import constants


class Entry(BaseModel):
    id: str
    title: str
    author: str = constants.UNKNOWN_AUTHOR  # Sentinel, never None
    progress_label: Optional[str] = None  # e.g. "Chapter 3"


class EntryDetails(BaseModel):
    """Supplemental fields read from an item page."""

    author: str = constants.UNKNOWN_AUTHOR
    progress_label: Optional[str] = None


class ListingSnapshot(BaseModel):
    """Entries newest-first, exactly as the source lists them."""

    entries: List[Entry] = Field(default_factory=list)

    @property
    def head(self) -> Optional[Entry]:
        return self.entries[0] if self.entries else None

    @property
    def ids(self) -> List[str]:
        return [entry.id for entry in self.entries]

    def is_empty(self) -> bool:
        return not self.entries

    def __len__(self) -> int:
        return len(self.entries)


# id -> details, written once per id by the enricher
EnrichmentMap = Dict[str, EntryDetails]
