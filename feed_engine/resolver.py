import logging
import re
import sys
from typing import Optional, Sequence

from .errors import EmptyFeed, NegativeIndex
from .feed_store import FeedEntry

log = logging.getLogger("resolver")

INDEX_RE = re.compile(r"[+-]?[0-9]+")


def parse_index(raw_index: Optional[str]) -> Optional[int]:
    """Page id as an int, or None when it is not an integer."""
    if raw_index is None or not INDEX_RE.fullmatch(raw_index):
        return None
    try:
        return int(raw_index)
    except ValueError:
        # Too many digits to convert; only the sign matters for resolution.
        return -1 if raw_index.startswith("-") else sys.maxsize


def resolve(raw_index: Optional[str], entries: Sequence[FeedEntry]) -> FeedEntry:
    """
    Map a requested page id to a feed entry.

    Index 0 is the oldest entry. Non-numeric ids and ids past the end
    resolve to the most recent entry; negative ids raise NegativeIndex.
    """
    last = len(entries) - 1
    idx = parse_index(raw_index)
    if idx is None:
        log.debug(f"non-numeric page id {raw_index!r}, using latest entry")
        idx = last
    elif idx < 0:
        raise NegativeIndex(f"negative page id received in request: {raw_index!r}")

    if last < 0:
        raise EmptyFeed("feed has no entries")
    if idx > last:
        idx = last
    return entries[idx]
