"""Core run coordinator.

This module is integration-agnostic. It only relies on ports for storage, the
timeline feed, and notifications. One call to ``RunCoordinator.run`` is one
scheduled invocation:

1) Read the bucket for the current window
2) On a missing bucket, roll over: mail the previous window's digest and seed
   the new bucket with the newest tweet seen so far
3) Fetch tweets newer than the high-water mark
4) Persist new tweets ahead of the stored ones

No state survives between runs except what the store holds.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from core.bucket_keys import current_key, previous_key
from core.config import DigestConfig
from core.errors import StoreError
from core.models import BucketRead, ReadStatus, RunResult, Tweet
from core.ports import FeedPort, NotifierPort, StoragePort

LOGGER = logging.getLogger(__name__)

DigestFormatter = Callable[[Sequence[Tweet]], str]


def high_water_mark(tweets: Sequence[Tweet]) -> int:
    """Return the largest tweet id, or 0 for an empty bucket."""

    return max((tweet.id for tweet in tweets), default=0)


class RunCoordinator:
    """Orchestrates bucket rollover, digest delivery, fetching, and persistence."""

    def __init__(
        self,
        config: DigestConfig,
        storage: StoragePort,
        feed: FeedPort,
        notifier: NotifierPort,
        formatter: DigestFormatter,
    ) -> None:
        self._config = config
        self._storage = storage
        self._feed = feed
        self._notifier = notifier
        self._formatter = formatter

    def _keys(self, now: datetime) -> tuple[str, str]:
        cfg = self._config
        args = (cfg.window_hours, cfg.key_prefix, cfg.key_filename)
        return current_key(now, *args), previous_key(now, *args)

    def _read(self, key: str) -> BucketRead:
        result = self._storage.read(key)
        if result.status is ReadStatus.FAILED:
            raise StoreError(f"Failed to read {key}: {result.error}") from result.error
        return result

    def run(self, now: Optional[datetime] = None) -> RunResult:
        """Run one invocation and return a summary of what happened."""

        if now is None:
            now = datetime.now(timezone.utc)
        today, yesterday = self._keys(now)

        current = self._read(today)
        rolled_over = False
        digest_size = 0
        if current.status is ReadStatus.FOUND:
            carry = list(current.items)
            mark = high_water_mark(carry)
            LOGGER.info("%s older tweets found in %s", len(carry), today)
        else:
            # A missing bucket is the rollover signal, not an error.
            LOGGER.info("%s not found, rolling over from %s", today, yesterday)
            rolled_over = True
            mark, carry, digest_size = self._roll_over(today, yesterday)

        LOGGER.info("Getting new tweets since %s", mark)
        fetched = self._feed.fetch_since(mark)
        # Feed contract says strictly newer, but a stale page must never
        # re-enter the bucket.
        new_tweets = [tweet for tweet in fetched if tweet.id > mark]
        if len(new_tweets) != len(fetched):
            LOGGER.warning("Dropped %s tweets at or below mark %s", len(fetched) - len(new_tweets), mark)
        LOGGER.info("%s new tweets found", len(new_tweets))

        if not new_tweets:
            # The bucket already reflects the correct state.
            return RunResult(today, rolled_over, digest_size, mark, 0, len(carry))

        merged = new_tweets + carry
        self._storage.write(today, merged)
        return RunResult(today, rolled_over, digest_size, mark, len(new_tweets), len(merged))

    def _roll_over(self, today: str, yesterday: str) -> tuple[int, list[Tweet], int]:
        """Mail the previous window and seed today's bucket.

        Returns (mark, carry, digest_size). Delivery happens before the write
        so a failed send leaves today's bucket missing and the next run retries
        the whole rollover against the untouched previous bucket.
        """

        previous = self._read(yesterday)
        if previous.status is ReadStatus.NOT_FOUND:
            LOGGER.info("%s not found", yesterday)
        prior = list(previous.items)

        if prior:
            LOGGER.info("Emailing %s tweets from %s", len(prior), yesterday)
            self._notifier.deliver(self._formatter(prior), self._config.subject)
            last = max(prior, key=lambda tweet: tweet.id)
            mark, carry = last.id, [last]
            LOGGER.info("Uploading last tweet from %s for tracking", yesterday)
        else:
            mark, carry = 0, []
            LOGGER.info("Uploading an empty list to %s", today)

        self._storage.write(today, carry)
        return mark, carry, len(prior)
