"""Application entry point for tweetmail.

Runs one collection pass per invocation, either from the command line (cron,
systemd timers) or as an AWS Lambda handler behind a scheduled rule.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import asdict
from datetime import datetime, timezone
from functools import partial
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

from art import tprint

import settings
from adapters.digest_formatting import format_digest
from adapters.s3_storage import S3Storage
from adapters.ses_notifier import SESNotifier
from adapters.sqlite_storage import SQLiteStorage
from adapters.twitter_feed import TwitterHomeTimelineFeed
from client import build_s3_client, build_ses_client, build_twitter_api
from core.bucket_keys import current_key, previous_key
from core.coordinator import RunCoordinator
from core.errors import ConfigError, TweetmailError
from core.models import RunResult

NAME = "TWEETMAIL"
FONT = "tarty-1"

COMMANDS = ("run", "keys")


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: settings.Settings) -> list[str]:
    # Twitter secrets are always masked; extra env vars can be listed in config.
    values = list(config.twitter.secrets())
    redact_cfg = config.logging.get("redact", {})
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted({value for value in values if value}, key=len, reverse=True)


def _configure_logging(config: settings.Settings) -> None:
    log_cfg = config.logging or {}
    if not log_cfg.get("enabled", True):
        return

    level_name = str(log_cfg.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(_collect_redaction_values(config), fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if log_cfg.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = log_cfg.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/tweetmail.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    # force=True replaces handlers a host runtime (e.g. Lambda) installed.
    logging.basicConfig(level=level, handlers=handlers, force=True)


def build_coordinator(config: settings.Settings) -> RunCoordinator:
    """Wire adapters for the configured backends into a coordinator."""

    if config.storage_backend == "sqlite":
        storage = SQLiteStorage(config.sqlite_path)
        storage.init_db()
    else:
        storage = S3Storage(build_s3_client(), config.bucket)

    feed = TwitterHomeTimelineFeed(build_twitter_api(config.twitter), config.digest.page_size)
    notifier = SESNotifier(
        build_ses_client(config.ses_region),
        recipient=config.email,
        sender=config.sender,
        body_format=config.digest_format,
    )
    return RunCoordinator(
        config=config.digest,
        storage=storage,
        feed=feed,
        notifier=notifier,
        formatter=partial(format_digest, mode=config.digest_format),
    )


def _log_result(result: RunResult) -> None:
    logging.getLogger(__name__).info(
        "Run complete: key=%s, rolled_over=%s, digest=%s, mark=%s, fetched=%s, stored=%s",
        result.key,
        result.rolled_over,
        result.digest_size,
        result.mark,
        result.fetched,
        result.stored,
    )


def _run(args: argparse.Namespace) -> None:
    overrides = {
        "bucket": args.bucket,
        "consumer-api-key": args.consumer_api_key,
        "consumer-api-secret-key": args.consumer_api_secret_key,
        "access-token": args.access_token,
        "access-token-secret": args.access_token_secret,
        "email": args.email,
    }
    try:
        config = settings.load_settings(args.config, overrides)
    except ConfigError as exc:
        raise SystemExit(f"tweetmail: {exc}")
    if not args.no_banner:
        _print_banner()
    _configure_logging(config)
    logger = logging.getLogger(__name__)

    logger.info("Starting tweetmail (%s backend)", config.storage_backend)
    try:
        result = build_coordinator(config).run()
    except TweetmailError:
        # State is exactly what the last successful write left; the next
        # scheduled run retries from there.
        logger.exception("Run failed")
        raise SystemExit(1)
    _log_result(result)


def _parse_instant(value: str) -> datetime:
    # fromisoformat only accepts a trailing Z from Python 3.11 on.
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an ISO 8601 timestamp: {value}") from exc


def _keys(args: argparse.Namespace) -> None:
    try:
        digest = settings.load_digest_config(args.config)
    except ConfigError as exc:
        raise SystemExit(f"tweetmail: {exc}")
    at = args.at or datetime.now(timezone.utc)
    key_args = (digest.window_hours, digest.key_prefix, digest.key_filename)
    print(f"current:  {current_key(at, *key_args)}")
    print(f"previous: {previous_key(at, *key_args)}")


def lambda_handler(event: Any, context: Any) -> dict:
    """AWS Lambda entry point; failures propagate so the invocation is marked failed."""

    config = settings.load_settings(os.getenv("TWEETMAIL_CONFIG"))
    _configure_logging(config)
    result = build_coordinator(config).run()
    _log_result(result)
    return asdict(result)


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="tweetmail")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Collect new tweets and mail finished windows")
    run_parser.add_argument("--config", help="Path to config.json")
    run_parser.add_argument("--bucket", help="S3 bucket")
    run_parser.add_argument("--consumer-api-key", help="Twitter consumer API key")
    run_parser.add_argument("--consumer-api-secret-key", help="Twitter consumer API secret key")
    run_parser.add_argument("--access-token", help="Twitter access token")
    run_parser.add_argument("--access-token-secret", help="Twitter access token secret")
    run_parser.add_argument("--email", help="Digest recipient")
    run_parser.add_argument("--no-banner", action="store_true", help="Skip the startup banner")

    keys_parser = subparsers.add_parser("keys", help="Print the current and previous bucket keys")
    keys_parser.add_argument("--config", help="Path to config.json")
    keys_parser.add_argument("--at", type=_parse_instant, help="ISO 8601 instant (default: now)")

    argv = list(sys.argv[1:] if argv is None else argv)
    # "run" is the default command so a bare scheduler entry needs no subcommand.
    if not argv or argv[0] not in COMMANDS + ("-h", "--help"):
        argv = ["run", *argv]
    args = parser.parse_args(argv)
    if args.command == "keys":
        _keys(args)
        return
    _run(args)


if __name__ == "__main__":
    main()
