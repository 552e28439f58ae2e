from typing import Sequence

from .errors import ParseError
from .feed_store import FeedEntry

HEADER = "# The Blog\n"
LINE = "- **_Week {index}_** {title} {date} \n"
DATE_FORMAT = "%a %d %b %Y"


def build_page_list(entries: Sequence[FeedEntry]) -> str:
    """Markdown list of every post with the page id used to request it."""
    parts = [HEADER]
    for i, entry in enumerate(entries):
        published = entry.published
        if published is None:
            raise ParseError(f"parsing of time failed for pubDate {entry.published_at!r} ({entry.title})")
        parts.append(LINE.format(index=i, title=entry.title, date=published.strftime(DATE_FORMAT)))
    return "".join(parts)
