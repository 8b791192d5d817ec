"""Upstream feed retrieval.

``FeedFetcher`` is the interface the cache refresher depends on;
``TwitterFetcher`` implements it against the Twitter v1.1
``statuses/user_timeline`` endpoint with OAuth 1.0a user credentials.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

import requests
from requests_oauthlib import OAuth1

from core.errors import FetchError
from core.models import Item

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

USER_TIMELINE_URL = "https://api.twitter.com/1.1/statuses/user_timeline.json"


class FeedFetcher(Protocol):
    """Anything that can return the account's most recent items, newest first."""

    def fetch_recent(self, count: int = 100, exclude_replies: bool = True) -> list[Item]:
        """Raise ``FetchError`` on any upstream failure."""
        ...


def item_from_status(status: dict[str, Any]) -> Item:
    """Map a v1.1 status object onto an ``Item``.

    Extended-mode statuses carry ``full_text``; compat-mode ones ``text``.
    """
    text = status.get("full_text") or status.get("text") or ""
    user = status.get("user") or {}
    return Item(text=text, author_name=user.get("name") or "")


class TwitterFetcher:
    """Fetches the configured account's timeline from the Twitter API."""

    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        self._settings = settings
        self._session = session or requests.Session()
        self._auth = OAuth1(
            settings.consumer_key,
            client_secret=settings.consumer_secret,
            resource_owner_key=settings.access_token,
            resource_owner_secret=settings.access_secret,
        )

    def _params(self, count: int, exclude_replies: bool) -> dict[str, Any]:
        params: dict[str, Any] = {
            "count": count,
            "exclude_replies": "true" if exclude_replies else "false",
            "tweet_mode": "extended",
        }
        params.update(self._settings.account_ref)
        return params

    def fetch_recent(self, count: int = 100, exclude_replies: bool = True) -> list[Item]:
        """Return up to *count* most recent items, newest first.

        Raises:
            FetchError: On network errors, non-2xx responses, or a payload
                that is not a list of statuses.
        """
        params = self._params(count, exclude_replies)
        logger.debug("Fetching user timeline with %s", params)

        try:
            resp = self._session.get(
                USER_TIMELINE_URL,
                params=params,
                auth=self._auth,
                timeout=self._settings.fetch_timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as exc:
            raise FetchError(f"Timeline request failed: {exc}") from exc
        except ValueError as exc:
            raise FetchError(f"Timeline response is not JSON: {exc}") from exc

        if not isinstance(payload, list):
            raise FetchError(f"Unexpected timeline payload: {type(payload).__name__}")

        return [item_from_status(status) for status in payload if isinstance(status, dict)]
