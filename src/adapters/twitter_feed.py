"""Twitter-to-core timeline adapter.

This keeps tweepy-specific details out of the core coordinator.
"""

from __future__ import annotations

import logging
from typing import Any

import tweepy

from core.errors import FeedError
from core.models import Author, Tweet

LOGGER = logging.getLogger(__name__)


def tweet_from_status(status: Any, nested: bool = False) -> Tweet:
    """Build a core Tweet from a tweepy Status fetched in extended mode."""

    user = status.user
    retweeted = None if nested else getattr(status, "retweeted_status", None)
    return Tweet(
        id=int(status.id),
        author=Author(
            screen_name=user.screen_name,
            name=user.name,
            profile_image_url=getattr(user, "profile_image_url_https", "") or "",
        ),
        # Extended mode exposes full_text; fall back for compact payloads.
        full_text=getattr(status, "full_text", None) or getattr(status, "text", "") or "",
        retweeted_status=tweet_from_status(retweeted, nested=True) if retweeted is not None else None,
    )


class TwitterHomeTimelineFeed:
    """FeedPort adapter reading the authenticated user's home timeline."""

    def __init__(self, api: tweepy.API, page_size: int) -> None:
        self._api = api
        self._page_size = page_size

    def fetch_since(self, mark: int) -> list[Tweet]:
        """Return up to page_size tweets newer than mark."""

        params: dict[str, Any] = {"count": self._page_size, "tweet_mode": "extended"}
        # since_id=0 is rejected by the API; omit it to get the latest page.
        if mark > 0:
            params["since_id"] = mark
        try:
            statuses = self._api.home_timeline(**params)
        except tweepy.TweepyException as exc:
            raise FeedError(f"Home timeline fetch failed: {exc}") from exc
        LOGGER.debug("Home timeline returned %s statuses", len(statuses))
        return [tweet_from_status(status) for status in statuses]
