"""
Delta computation between the current listing and the stored watermark.
"""
from models.entry import ListingSnapshot
from models.state import DeltaResult, Watermark
from core.logger import get_logger

logger = get_logger(__name__)


def compute_delta(snapshot: ListingSnapshot, watermark: Watermark) -> DeltaResult:
    """
    Collects entries from the head of the snapshot up to (not including)
    the watermark id, then returns them oldest-first.

    When the watermark id is absent from the snapshot the whole snapshot is
    new (full-prefix fallback). The next watermark is always the current
    head, even when nothing is new.

    Example:
        watermark "100", snapshot ["103", "102", "101", "100"]
        -> new_entries ["101", "102", "103"], next_watermark "103"
    """
    newest_first = []
    found = False
    for entry in snapshot.entries:
        if entry.id == watermark.last_seen_id:
            found = True
            break
        newest_first.append(entry)

    if watermark.is_initialized and not found and snapshot.entries:
        logger.warning(
            f"[DELTA] Watermark {watermark.last_seen_id} not in listing, treating all "
            f"{len(snapshot)} works as new"
        )

    newest_first.reverse()
    head = snapshot.head
    return DeltaResult(
        new_entries=newest_first,
        next_watermark=head.id if head else watermark.last_seen_id,
        watermark_found=found,
    )
