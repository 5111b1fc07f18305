"""Amazon SES notification adapter.

Sends the formatted digest to a single fixed recipient.
"""

from __future__ import annotations

import logging
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from core.errors import DeliveryError

LOGGER = logging.getLogger(__name__)

# SES is only available in a few regions, so the default is pinned.
DEFAULT_SES_REGION = "us-west-2"
CHARSET = "UTF-8"


class SESNotifier:
    """Notifier adapter that mails the digest through SES."""

    def __init__(
        self,
        client,
        recipient: str,
        sender: Optional[str] = None,
        body_format: str = "html",
    ) -> None:
        if body_format not in {"html", "text"}:
            raise ValueError(f"Unsupported body format: {body_format}")
        self._client = client
        self._recipient = recipient
        self._sender = sender or recipient
        self._body_key = "Html" if body_format == "html" else "Text"

    def deliver(self, document: str, subject: str) -> None:
        """Send document to the configured recipient."""

        try:
            response = self._client.send_email(
                Source=self._sender,
                Destination={"ToAddresses": [self._recipient], "CcAddresses": []},
                Message={
                    "Subject": {"Charset": CHARSET, "Data": subject},
                    "Body": {self._body_key: {"Charset": CHARSET, "Data": document}},
                },
            )
        except (BotoCoreError, ClientError) as exc:
            raise DeliveryError(f"SES send to {self._recipient} failed: {exc}") from exc
        LOGGER.info("Digest sent to %s (message id %s)", self._recipient, response.get("MessageId"))
