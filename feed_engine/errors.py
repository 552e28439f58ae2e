"""
Error taxonomy for the feed-to-page pipeline.

Routes map NegativeIndex to 400 and every other FeedEngineError to 500.
"""


class FeedEngineError(Exception):
    """Base class for pipeline failures."""


class NegativeIndex(FeedEngineError):
    """Requested page index is below zero."""


class EmptyFeed(FeedEngineError):
    """The feed store holds no entries to resolve against."""


class FetchError(FeedEngineError):
    """Transport or read failure while retrieving a remote document."""


class ParseError(FeedEngineError):
    """Feed XML or a feed field could not be parsed."""


class TransformError(FeedEngineError):
    """HTML parsing, serialization or markdown conversion failed."""
