"""SQLite storage adapter.

Implements the core StoragePort using a local SQLite database, handy for
development runs without an S3 bucket.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Sequence

from core.errors import StoreError
from core.models import BucketRead, Tweet, tweets_from_records, tweets_to_records

LOGGER = logging.getLogger(__name__)


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the StoragePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create the buckets table if it does not exist."""

        with self._connect() as conn:
            # One row per bucket key, mirroring one S3 object per key.
            # Fields:
            # - key: bucket key such as tweets/2024-01-01-0/tweets.json
            # - payload: JSON array of tweet records
            # - updated_at: timestamp of the last overwrite
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS buckets (
                    key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )

    def read(self, key: str) -> BucketRead:
        """Return the tweets stored at key, or NOT_FOUND if never written."""

        LOGGER.info("Getting tweets from: sqlite://%s/%s", self._db_path, key)
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT payload FROM buckets WHERE key = ?",
                    (key,),
                ).fetchone()
        except sqlite3.Error as exc:
            return BucketRead.failed(exc)
        if row is None:
            return BucketRead.not_found()
        try:
            return BucketRead.found(tweets_from_records(json.loads(row["payload"])))
        except (ValueError, KeyError, TypeError) as exc:
            return BucketRead.failed(exc)

    def write(self, key: str, items: Sequence[Tweet]) -> None:
        """Upsert the whole bucket at key."""

        payload = json.dumps(tweets_to_records(items))
        now = datetime.now(timezone.utc)
        LOGGER.info("Uploading %s tweets to sqlite://%s/%s", len(items), self._db_path, key)
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO buckets (key, payload, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        payload = excluded.payload,
                        updated_at = excluded.updated_at
                    """,
                    (key, payload, now.isoformat()),
                )
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to write {key}: {exc}") from exc
