from .errors import (
    FeedEngineError,
    NegativeIndex,
    EmptyFeed,
    FetchError,
    ParseError,
    TransformError,
)
from .feed_store import FeedEntry, FeedStore, parse_feed, sort_entries
from .fetcher import fetch
from .resolver import resolve
from .transformer import transform, inject_banner
from .renderer import TerminalRenderer, DEFAULT_WRAP, PAGE_WRAP, UNSPECIFIED_WRAP

# Blog index + request pipeline
from .page_list import build_page_list
from .pipeline import PagePipeline
