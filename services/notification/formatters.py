"""
Message formatting utilities for notifications.
Builds entry lines, batched messages and the zero-works alert.
"""

from typing import List, Optional

from core import constants
from core.utils import item_url
from models.entry import Entry, EntryDetails


def format_entry_line(
    entry: Entry,
    base_url: str,
    details: Optional[EntryDetails] = None,
    max_length: int = constants.DISCORD_MAX_MESSAGE_LENGTH,
) -> str:
    """
    One line per work: glyph, title, chapter (if known), author, URL.
    Item-page details win over the fields read from the listing.
    An over-long title is shortened so the line fits in max_length.

    Example:
        📚 Some Fic - Chapter 4 - someone - https://archiveofourown.org/works/1
    """
    progress = entry.progress_label
    author = entry.author
    if details is not None:
        progress = details.progress_label or progress
        if details.author != constants.UNKNOWN_AUTHOR:
            author = details.author

    tail = []
    if progress:
        tail.append(progress)
    tail.append(author or constants.UNKNOWN_AUTHOR)
    tail.append(item_url(base_url, entry.id))

    title = entry.title
    overflow = len(_join_line(title, tail)) - max_length
    if overflow > 0:
        title = truncate_text(title, max(len(title) - overflow, 3))
    return truncate_text(_join_line(title, tail), max_length)


def _join_line(title: str, tail: List[str]) -> str:
    return " - ".join([f"{constants.ENTRY_GLYPH} {title}"] + tail)


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate text to max length with suffix."""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(suffix)] + suffix


def chunk_lines(
    lines: List[str], max_lines: int, max_chars: Optional[int] = None
) -> List[List[str]]:
    """
    Splits lines into consecutive chunks of at most max_lines. With
    max_chars, a chunk also closes before its newline-joined text would
    grow past max_chars.
    """
    if max_lines < 1:
        raise ValueError("max_lines must be at least 1")
    chunks: List[List[str]] = []
    current: List[str] = []
    size = 0
    for line in lines:
        added = len(line) + (1 if current else 0)
        too_long = max_chars is not None and bool(current) and size + added > max_chars
        if len(current) >= max_lines or too_long:
            chunks.append(current)
            current, size, added = [], 0, len(line)
        current.append(line)
        size += added
    if current:
        chunks.append(current)
    return chunks


def format_batch_messages(
    lines: List[str],
    max_lines: int,
    max_length: int = constants.DISCORD_MAX_MESSAGE_LENGTH,
) -> List[str]:
    """
    Merges lines into as few messages as possible, each at most max_length
    characters including the header. Split batches get a running "(i/k)"
    counter in the header.
    """
    # Room for the widest possible counter, since k is not known yet
    widest = f" ({len(lines)}/{len(lines)})" if len(lines) > 1 else ""
    budget = max_length - len(constants.BATCH_HEADER) - len(widest) - len(":\n")
    bullets = [truncate_text(f"- {line}", budget) for line in lines]

    chunks = chunk_lines(bullets, max_lines, budget)
    messages = []
    for idx, chunk in enumerate(chunks):
        header = constants.BATCH_HEADER
        if len(chunks) > 1:
            header += f" ({idx + 1}/{len(chunks)})"
        body = "\n".join(chunk)
        messages.append(f"{header}:\n{body}")
    return messages


def format_empty_listing_alert(admin_role_id: Optional[str] = None) -> str:
    """Operational alert for a listing that parsed to zero works."""
    ping = f"<@&{admin_role_id}> " if admin_role_id else ""
    return f"{ping}{constants.EMPTY_LISTING_ALERT}"
