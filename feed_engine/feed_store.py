"""
Feed Store — in-memory, time-sorted list of the source blog's RSS items.

Populated once at startup via refresh(). Readers take snapshot(), an
immutable tuple; refresh() builds a new tuple and swaps the reference, so a
reader never sees a half-updated sequence.
"""

import functools
import logging
import threading
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Iterable, List, Optional, Tuple

from .errors import ParseError
from .fetcher import fetch

log = logging.getLogger("feed")

FEED_PATH = "/feed"


def parse_pub_date(value: str) -> Optional[datetime]:
    """Parse an RFC 1123 pubDate. Returns None when it does not parse."""
    if not value:
        return None
    try:
        dt = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError, IndexError):
        return None
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class FeedEntry:
    title: str
    link: str
    published_at: str

    @property
    def published(self) -> Optional[datetime]:
        return parse_pub_date(self.published_at)


def compare_entries(a: FeedEntry, b: FeedEntry) -> int:
    # Unparseable dates on either side leave the pair unordered.
    ta, tb = a.published, b.published
    if ta is None or tb is None:
        return 0
    if ta < tb:
        return -1
    if ta > tb:
        return 1
    return 0


def sort_entries(entries: Iterable[FeedEntry]) -> Tuple[FeedEntry, ...]:
    return tuple(sorted(entries, key=functools.cmp_to_key(compare_entries)))


def parse_feed(raw_xml: bytes) -> List[FeedEntry]:
    """Parse RSS 2.0 XML into FeedEntry objects, in document order."""
    try:
        root = ET.fromstring(raw_xml)
    except ET.ParseError as e:
        raise ParseError(f"failure in parsing XML body: {e}") from e

    channel = root if root.tag == "channel" else root.find("channel")
    if channel is None:
        raise ParseError("feed document has no <channel> element")

    entries = []
    for item_el in channel.findall("item"):
        entries.append(FeedEntry(
            title=(item_el.findtext("title") or "").strip(),
            link=(item_el.findtext("link") or "").strip(),
            published_at=(item_el.findtext("pubDate") or "").strip(),
        ))
    return entries


class FeedStore:
    """Owns the sorted feed entries for one process."""

    def __init__(self, base_url: str = "", session=None) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session
        self._entries: Tuple[FeedEntry, ...] = ()
        self._lock = threading.Lock()

    @classmethod
    def from_entries(cls, entries: Iterable[FeedEntry]) -> "FeedStore":
        store = cls()
        store._entries = sort_entries(entries)
        return store

    @property
    def feed_url(self) -> str:
        return f"{self.base_url}{FEED_PATH}"

    def refresh(self) -> Tuple[FeedEntry, ...]:
        """
        Fetch, parse and sort the feed, then replace the stored entries.

        Raises FetchError or ParseError; the previous snapshot is kept when
        either happens.
        """
        body = fetch(self.feed_url, session=self.session)
        entries = sort_entries(parse_feed(body))

        unparsed = [e.title for e in entries if e.published is None]
        if unparsed:
            log.warning(f"{len(unparsed)} feed entries have unparseable pubDate: {unparsed}")

        with self._lock:
            self._entries = entries
        log.info(f"feed refreshed: {len(entries)} entries from {self.feed_url}")
        return entries

    def snapshot(self) -> Tuple[FeedEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)
