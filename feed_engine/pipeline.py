"""
PagePipeline — wires the feed store to the per-request page chain:

    resolve(id) -> fetch(link) -> transform(html) -> render(markup)
"""

import logging
from typing import Callable, Optional

from opentelemetry import trace

from .feed_store import FeedStore
from .fetcher import fetch
from .page_list import build_page_list
from .renderer import PAGE_WRAP, TerminalRenderer
from .resolver import resolve
from .transformer import transform

log = logging.getLogger("pipeline")
tracer = trace.get_tracer("terminal-blog.pipeline")


class PagePipeline:
    def __init__(
        self,
        store: FeedStore,
        base_url: str,
        news_url: str,
        renderer: Optional[TerminalRenderer] = None,
        fetch_fn: Callable[[str], bytes] = fetch,
    ) -> None:
        self.store = store
        self.base_url = base_url
        self.news_url = news_url
        self.renderer = renderer or TerminalRenderer()
        self.fetch_fn = fetch_fn

    def page(self, raw_id: Optional[str], theme: Optional[str] = None) -> str:
        """Rendered post for a page id. Raises FeedEngineError subclasses."""
        entry = resolve(raw_id, self.store.snapshot())
        log.info(f"page {raw_id!r} -> {entry.title} ({entry.link})")
        with tracer.start_as_current_span("page.fetch") as span:
            span.set_attribute("url", entry.link)
            body = self.fetch_fn(entry.link)
        with tracer.start_as_current_span("page.transform"):
            markup = transform(body, self.base_url, self.news_url)
        with tracer.start_as_current_span("page.render"):
            return self.renderer.render(markup, PAGE_WRAP, theme)

    def blog(self, theme: Optional[str] = None) -> str:
        """Rendered index of all posts. Raises ParseError on a bad pubDate."""
        return self.renderer.render(build_page_list(self.store.snapshot()), PAGE_WRAP, theme)

    def text(self, markup: str, theme: Optional[str] = None) -> str:
        return self.renderer.render(markup, PAGE_WRAP, theme)
