"""Settings for tweetmail.

Values come from, in order of precedence: command-line flags, environment
variables (a local .env file is loaded first), and config.json. Everything is
resolved once at startup into an immutable Settings value; nothing here is
module-level state.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from core.config import DigestConfig
from core.errors import ConfigError

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")

# Flag name -> environment variable. Flag names double as config.json keys so
# the config file matches the command line one to one.
ENV_VARS = {
    "bucket": "TWEETMAIL_BUCKET",
    "consumer-api-key": "CONSUMER_API_KEY",
    "consumer-api-secret-key": "CONSUMER_API_SECRET_KEY",
    "access-token": "ACCESS_TOKEN",
    "access-token-secret": "ACCESS_TOKEN_SECRET",
    "email": "TWEETMAIL_EMAIL",
}

STORAGE_BACKENDS = ("s3", "sqlite")
DIGEST_FORMATS = ("html", "text")


@dataclass(frozen=True)
class TwitterCredentials:
    """OAuth1 user-context credentials for the home timeline."""

    consumer_key: str
    consumer_secret: str
    access_token: str
    access_token_secret: str

    def secrets(self) -> list[str]:
        return [self.consumer_key, self.consumer_secret, self.access_token, self.access_token_secret]


@dataclass(frozen=True)
class Settings:
    """Fully resolved runtime settings."""

    email: str
    twitter: TwitterCredentials
    digest: DigestConfig
    bucket: Optional[str] = None
    storage_backend: str = "s3"
    sqlite_path: str = os.path.join(PROJECT_ROOT, "tweetmail.db")
    digest_format: str = "html"
    ses_region: str = "us-west-2"
    sender: Optional[str] = None
    logging: dict = field(default_factory=dict)


def load_json_config(path: str) -> dict:
    """Load config.json; a missing file is allowed, a broken one is not."""

    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    return data


def _resolve(name: str, overrides: Mapping[str, Any], config: Mapping[str, Any]) -> Optional[str]:
    value = overrides.get(name)
    if value:
        return str(value)
    value = os.getenv(ENV_VARS[name])
    if value:
        return value
    value = config.get(name)
    return str(value) if value else None


def _build_digest_config(raw: Mapping[str, Any]) -> DigestConfig:
    kwargs: dict[str, Any] = {}
    for key in ("window_hours", "page_size"):
        if key in raw:
            try:
                kwargs[key] = int(raw[key])
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"digest.{key} must be an integer") from exc
    for key, target in (
        ("key_prefix", "key_prefix"),
        ("key_filename", "key_filename"),
        ("subject", "subject_template"),
    ):
        if raw.get(key):
            kwargs[target] = str(raw[key])
    try:
        return DigestConfig(**kwargs)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def load_settings(
    config_path: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Settings:
    """Resolve settings from flags, environment, and config.json."""

    load_dotenv()
    overrides = overrides or {}
    config = load_json_config(config_path or CONFIG_PATH)

    values = {name: _resolve(name, overrides, config) for name in ENV_VARS}

    storage = config.get("storage", {})
    backend = str(storage.get("backend", "s3"))
    if backend not in STORAGE_BACKENDS:
        raise ConfigError(f"storage.backend must be one of {', '.join(STORAGE_BACKENDS)}")

    required = [name for name in ENV_VARS if name != "bucket"]
    if backend == "s3":
        required.append("bucket")
    missing = [name for name in required if not values[name]]
    if missing:
        raise ConfigError(f"Missing required settings: {', '.join(sorted(missing))}")

    notifications = config.get("notifications", {})
    digest_format = str(notifications.get("format", "html"))
    if digest_format not in DIGEST_FORMATS:
        raise ConfigError(f"notifications.format must be one of {', '.join(DIGEST_FORMATS)}")

    sqlite_path = storage.get("sqlite_path") or os.path.join(PROJECT_ROOT, "tweetmail.db")
    if not os.path.isabs(sqlite_path):
        sqlite_path = os.path.join(PROJECT_ROOT, sqlite_path)

    return Settings(
        email=values["email"],
        twitter=TwitterCredentials(
            consumer_key=values["consumer-api-key"],
            consumer_secret=values["consumer-api-secret-key"],
            access_token=values["access-token"],
            access_token_secret=values["access-token-secret"],
        ),
        digest=_build_digest_config(config.get("digest", {})),
        bucket=values["bucket"],
        storage_backend=backend,
        sqlite_path=sqlite_path,
        digest_format=digest_format,
        ses_region=str(notifications.get("ses_region", "us-west-2")),
        sender=notifications.get("sender"),
        logging=config.get("logging", {}),
    )


def load_digest_config(config_path: Optional[str] = None) -> DigestConfig:
    """Resolve only the bucketing settings, for commands that need no credentials."""

    return _build_digest_config(load_json_config(config_path or CONFIG_PATH).get("digest", {}))
