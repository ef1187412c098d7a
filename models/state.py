from enum import Enum
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional

from models.entry import Entry


class Watermark(BaseModel):
    """The single persisted value: id of the newest entry already relayed."""

    model_config = ConfigDict(populate_by_name=True)

    last_seen_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("lastSeenId", "lastWorkId", "last_seen_id"),
        serialization_alias="lastSeenId",
    )

    @field_validator("last_seen_id", mode="before")
    @classmethod
    def blank_id_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_initialized(self) -> bool:
        return self.last_seen_id is not None


class DeltaResult(BaseModel):
    new_entries: List[Entry] = Field(default_factory=list)  # Oldest-first
    next_watermark: Optional[str] = None  # Current head id
    watermark_found: bool = True


class RunOutcome(str, Enum):
    INITIALIZED = "initialized"  # First snapshot seeded, nothing sent
    NO_CHANGES = "no_changes"
    NOTIFIED = "notified"
    PARSE_EMPTY = "parse_empty"  # Zero works parsed, alert posted
    DRY_RUN = "dry_run"


class RunReport(BaseModel):
    outcome: RunOutcome
    new_entries: int = 0
    messages_sent: int = 0
    watermark: Optional[str] = None
