"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to tweepy's Status objects. The dict helpers define the record shape
persisted in each bucket, a subset of the Twitter v1.1 status payload so that
buckets holding full status JSON remain readable.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional


@dataclass(frozen=True)
class Author:
    """The account that posted a tweet."""

    screen_name: str
    name: str
    profile_image_url: str


@dataclass(frozen=True)
class Tweet:
    """A single timeline entry, optionally wrapping the tweet it retweets."""

    id: int
    author: Author
    full_text: str
    retweeted_status: Optional["Tweet"] = None

    def __post_init__(self) -> None:
        # Retweets of retweets are flattened by Twitter, so one level is all we keep.
        if self.retweeted_status is not None and self.retweeted_status.retweeted_status is not None:
            raise ValueError(f"Tweet {self.id} nests retweets more than one level deep")

    @property
    def is_retweet(self) -> bool:
        return self.retweeted_status is not None


def tweet_to_record(tweet: Tweet) -> dict[str, Any]:
    """Return the JSON-ready record persisted for a tweet."""

    record: dict[str, Any] = {
        "id": tweet.id,
        "full_text": tweet.full_text,
        "user": {
            "screen_name": tweet.author.screen_name,
            "name": tweet.author.name,
            "profile_image_url_https": tweet.author.profile_image_url,
        },
    }
    if tweet.retweeted_status is not None:
        record["retweeted_status"] = tweet_to_record(tweet.retweeted_status)
    return record


def tweet_from_record(record: dict[str, Any]) -> Tweet:
    """Build a Tweet from a stored record; unknown keys are ignored."""

    user = record.get("user") or {}
    retweeted = record.get("retweeted_status")
    return Tweet(
        id=int(record["id"]),
        author=Author(
            screen_name=user.get("screen_name", ""),
            name=user.get("name", ""),
            profile_image_url=user.get("profile_image_url_https", ""),
        ),
        full_text=record.get("full_text") or record.get("text") or "",
        retweeted_status=tweet_from_record(retweeted) if retweeted else None,
    )


def tweets_to_records(tweets: Iterable[Tweet]) -> list[dict[str, Any]]:
    return [tweet_to_record(tweet) for tweet in tweets]


def tweets_from_records(records: Optional[list[dict[str, Any]]]) -> list[Tweet]:
    # A bucket body of `null` means "checked, nothing new".
    if records is None:
        return []
    if not isinstance(records, list):
        raise ValueError("Bucket payload must be a JSON array")
    return [tweet_from_record(record) for record in records]


class ReadStatus(Enum):
    """Outcome of a single bucket read."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class BucketRead:
    """Flattened result of StoragePort.read.

    ``items`` is only meaningful for FOUND; ``error`` is only set for FAILED.
    """

    status: ReadStatus
    items: tuple[Tweet, ...] = ()
    error: Optional[BaseException] = None

    @classmethod
    def found(cls, items: Iterable[Tweet]) -> "BucketRead":
        return cls(ReadStatus.FOUND, tuple(items))

    @classmethod
    def not_found(cls) -> "BucketRead":
        return cls(ReadStatus.NOT_FOUND)

    @classmethod
    def failed(cls, error: BaseException) -> "BucketRead":
        return cls(ReadStatus.FAILED, error=error)


@dataclass(frozen=True)
class RunResult:
    """Summary of one coordinator run, logged by the CLI and returned by Lambda."""

    key: str
    rolled_over: bool
    digest_size: int
    mark: int
    fetched: int
    stored: int
