import logging

import requests

from .errors import FetchError

log = logging.getLogger("fetcher")

USER_AGENT = "terminal-blog-gateway/1.0 (+curl friendly blog mirror)"


def fetch(url: str, session=None) -> bytes:
    """
    Single synchronous GET of `url`, returning the raw body.

    No timeout is passed, so the call waits as long as the requests default
    allows (indefinitely). No retries.
    """
    http = session or requests
    try:
        resp = http.get(url, headers={"User-Agent": USER_AGENT})
        resp.raise_for_status()
        return resp.content
    except requests.RequestException as e:
        log.warning(f"fetch failed for {url}: {e}")
        raise FetchError(f"network request failed on get {url}: {e}") from e
