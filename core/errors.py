"""
Error taxonomy for the feed mirror.

Recovered locally (never reach a client):
  FetchError      upstream network/auth/API failure during a refresh
  PartialResult   upstream returned fewer items than are already cached
  NotAvailable    requested position is outside the cached snapshot

Surfaced to the client as a specific response:
  InputParseError offset in /select_tweet is not a non-negative integer
  RouteNotFound   no route matches the request path

Fatal at startup:
  ConfigError     malformed/unreadable configuration or missing files
"""

from __future__ import annotations


class FeedMirrorError(Exception):
    """Base class for all errors raised by this package."""


class FetchError(FeedMirrorError):
    """The upstream feed could not be retrieved."""


class PartialResult(FeedMirrorError):
    """A fetch succeeded but would shrink the cached item count."""

    def __init__(self, fetched: int, cached: int) -> None:
        super().__init__(f"fetched {fetched} items, {cached} already cached")
        self.fetched = fetched
        self.cached = cached


class NotAvailable(FeedMirrorError, LookupError):
    """No item at the requested position."""

    def __init__(self, pos: int) -> None:
        super().__init__(f"item {pos} not available")
        self.pos = pos


class InputParseError(FeedMirrorError, ValueError):
    """Client-supplied offset is not a non-negative integer."""


class RouteNotFound(FeedMirrorError, LookupError):
    """No route is registered for the request path."""


class ConfigError(FeedMirrorError, ValueError):
    """Configuration is missing, malformed or points at missing files."""
