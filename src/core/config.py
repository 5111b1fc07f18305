"""Core configuration dataclasses.

We keep config parsing outside the core (see settings.py), but this dataclass
defines the shape the core expects so adapters and the app layer can build it
safely.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.bucket_keys import (
    DEFAULT_KEY_FILENAME,
    DEFAULT_KEY_PREFIX,
    DEFAULT_WINDOW_HOURS,
    validate_window_hours,
)

DEFAULT_PAGE_SIZE = 200
# The v1.1 home timeline rejects larger counts.
MAX_PAGE_SIZE = 200
DEFAULT_SUBJECT = "Tweets from the past {window_hours}h"


@dataclass(frozen=True)
class DigestConfig:
    """Bucketing and digest settings for the run coordinator."""

    window_hours: int = DEFAULT_WINDOW_HOURS
    key_prefix: str = DEFAULT_KEY_PREFIX
    key_filename: str = DEFAULT_KEY_FILENAME
    page_size: int = DEFAULT_PAGE_SIZE
    subject_template: str = DEFAULT_SUBJECT

    def __post_init__(self) -> None:
        validate_window_hours(self.window_hours)
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {self.page_size}")
        # Render once so a bad placeholder fails at load time, not mid-rollover.
        try:
            self.subject_template.format(window_hours=self.window_hours)
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(f"Invalid subject template {self.subject_template!r}: {exc!r}") from exc

    @property
    def subject(self) -> str:
        return self.subject_template.format(window_hours=self.window_hours)
