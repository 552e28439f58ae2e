"""
Content Transformer — blog post HTML to markdown-ish markup text.

Every page gets a one-line usage banner on top before conversion, so a
reader who lands on a post with curl learns where the help page lives.
"""

import logging

import html2text
from bs4 import BeautifulSoup, Tag

from .errors import TransformError

log = logging.getLogger("transformer")


def banner_text(news_url: str) -> str:
    return f"👉 Run curl {news_url.rstrip('/')}/help for usage"


def build_banner(soup: BeautifulSoup, text: str) -> Tag:
    p = soup.new_tag("p")
    strong = soup.new_tag("strong")
    strong.string = text
    p.append(strong)
    return p


def _root_element(soup: BeautifulSoup):
    for node in soup.contents:
        if isinstance(node, Tag):
            return node
    return None


def inject_banner(soup: BeautifulSoup, text: str) -> BeautifulSoup:
    """
    Insert the banner as the first child of <body>.

    Without a <body>, it goes first inside the document's root element.
    A document with no element at all gets the banner as its only top-level
    element.
    """
    banner = build_banner(soup, text)
    target = soup.body
    if target is None:
        target = _root_element(soup)
    if target is None:
        soup.insert(0, banner)
    else:
        target.insert(0, banner)
    return soup


def to_markdown(html: str, base_domain: str) -> str:
    h = html2text.HTML2Text(baseurl=base_domain)
    h.ignore_links = False
    h.ignore_images = False
    h.body_width = 0  # renderer wraps
    h.unicode_snob = True
    return h.handle(html)


def transform(html_bytes: bytes, base_domain: str, news_url: str) -> str:
    try:
        soup = BeautifulSoup(html_bytes, "html.parser")
    except Exception as e:
        raise TransformError(f"error in parsing the html content: {e}") from e

    try:
        html = str(inject_banner(soup, banner_text(news_url)))
    except Exception as e:
        raise TransformError(f"error in building string from parsed HTML: {e}") from e

    try:
        return to_markdown(html, base_domain)
    except Exception as e:
        log.warning(f"markdown conversion failed: {e}")
        raise TransformError(f"markdown conversion failed: {e}") from e
