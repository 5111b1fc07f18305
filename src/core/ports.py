"""Ports (interfaces) used by the run coordinator.

Ports define the minimal contracts for storage, feed, and notification
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Protocol, Sequence

from core.models import BucketRead, Tweet


class StoragePort(Protocol):
    """Bucket storage operations required by the coordinator."""

    def read(self, key: str) -> BucketRead:
        ...

    def write(self, key: str, items: Sequence[Tweet]) -> None:
        ...


class FeedPort(Protocol):
    """Timeline access required by the coordinator."""

    def fetch_since(self, mark: int) -> list[Tweet]:
        ...


class NotifierPort(Protocol):
    """Digest delivery required by the coordinator."""

    def deliver(self, document: str, subject: str) -> None:
        ...
