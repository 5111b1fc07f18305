"""S3 storage adapter.

Implements the core StoragePort with one JSON object per bucket key.
"""

from __future__ import annotations

import json
import logging
from typing import Sequence

from botocore.exceptions import BotoCoreError, ClientError

from core.errors import StoreError
from core.models import BucketRead, Tweet, tweets_from_records, tweets_to_records

LOGGER = logging.getLogger(__name__)

# S3 reports a missing object as NoSuchKey on GetObject, bare 404 elsewhere.
NOT_FOUND_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class S3Storage:
    """Thin boto3 wrapper that satisfies the StoragePort contract."""

    def __init__(self, client, bucket: str) -> None:
        self._client = client
        self._bucket = bucket

    def _uri(self, key: str) -> str:
        return f"s3://{self._bucket}/{key}"

    def read(self, key: str) -> BucketRead:
        """Return the tweets stored at key, or NOT_FOUND if never written."""

        LOGGER.info("Getting tweets from: %s", self._uri(key))
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
            payload = response["Body"].read()
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code in NOT_FOUND_CODES:
                return BucketRead.not_found()
            return BucketRead.failed(exc)
        except BotoCoreError as exc:
            return BucketRead.failed(exc)

        try:
            return BucketRead.found(tweets_from_records(json.loads(payload)))
        except (ValueError, KeyError, TypeError) as exc:
            return BucketRead.failed(exc)

    def write(self, key: str, items: Sequence[Tweet]) -> None:
        """Replace the object at key with items (an empty list is persisted too)."""

        body = json.dumps(tweets_to_records(items)).encode("utf-8")
        LOGGER.info("Uploading %s tweets to %s", len(items), self._uri(key))
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=body,
                ContentType="application/json",
            )
        except (BotoCoreError, ClientError) as exc:
            raise StoreError(f"Failed to upload {self._uri(key)}: {exc}") from exc
