"""Error types shared by the core and adapters.

Adapters translate library exceptions into these at the boundary so the core
never has to know about boto3 or tweepy.
"""

from __future__ import annotations


class TweetmailError(RuntimeError):
    """Base class for every failure that should abort a run."""


class StoreError(TweetmailError):
    """Bucket storage failed for a reason other than a missing bucket."""


class FeedError(TweetmailError):
    """The timeline fetch failed (auth, rate limit, transport)."""


class DeliveryError(TweetmailError):
    """The digest could not be delivered."""


class ConfigError(TweetmailError):
    """Settings are missing or invalid."""
