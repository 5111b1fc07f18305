from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Sequence

import pytest

import app
import settings
from adapters.digest_formatting import format_digest
from core.config import DigestConfig
from core.coordinator import RunCoordinator
from core.errors import StoreError
from core.models import Author, BucketRead, Tweet

CREDENTIALS = {
    "bucket": "lambda-bucket",
    "consumer-api-key": "ck",
    "consumer-api-secret-key": "cs",
    "access-token": "at",
    "access-token-secret": "ats",
    "email": "me@example.com",
}


def test_keys_command_prints_current_and_previous(capsys: pytest.CaptureFixture[str], tmp_path: Path) -> None:
    app.main(["keys", "--config", str(tmp_path / "none.json"), "--at", "2024-01-01T03:00:00+00:00"])
    out = capsys.readouterr().out
    assert "current:  tweets/2024-01-01-0/tweets.json" in out
    assert "previous: tweets/2023-12-31-2/tweets.json" in out


def test_run_without_settings_exits(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(settings, "load_dotenv", lambda: None)
    for name in settings.ENV_VARS.values():
        monkeypatch.delenv(name, raising=False)
    with pytest.raises(SystemExit, match="Missing required settings"):
        app.main(["--config", str(tmp_path / "none.json"), "--no-banner"])


def test_redacting_formatter_masks_credentials() -> None:
    config = settings.Settings(
        email="me@example.com",
        twitter=settings.TwitterCredentials("key123", "secret456", "token789", "tsecret000"),
        digest=DigestConfig(),
    )
    formatter = app._RedactingFormatter(app._collect_redaction_values(config), fmt="%(message)s")
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "auth with %s/%s", ("key123", "secret456"), None)
    assert formatter.format(record) == "auth with ***/***"


def test_keys_command_accepts_zulu_suffix(capsys: pytest.CaptureFixture[str], tmp_path: Path) -> None:
    app.main(["keys", "--config", str(tmp_path / "none.json"), "--at", "2024-06-01T17:00:00Z"])
    assert "current:  tweets/2024-06-01-2/tweets.json" in capsys.readouterr().out


def test_keys_command_with_bad_window_exits(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"digest": {"window_hours": 5}}), encoding="utf-8")
    with pytest.raises(SystemExit, match="window_hours must divide 24"):
        app.main(["keys", "--config", str(path)])


class MemoryStorage:
    def __init__(self, fail_reads: bool = False) -> None:
        self.buckets: dict[str, list[Tweet]] = {}
        self.fail_reads = fail_reads

    def read(self, key: str) -> BucketRead:
        if self.fail_reads:
            return BucketRead.failed(ConnectionError("s3 unreachable"))
        if key not in self.buckets:
            return BucketRead.not_found()
        return BucketRead.found(self.buckets[key])

    def write(self, key: str, items: Sequence[Tweet]) -> None:
        self.buckets[key] = list(items)


class StaticFeed:
    def __init__(self, tweets: list[Tweet]) -> None:
        self.tweets = tweets

    def fetch_since(self, mark: int) -> list[Tweet]:
        return [tweet for tweet in self.tweets if tweet.id > mark]


class SilentNotifier:
    def deliver(self, document: str, subject: str) -> None:
        pass


def _lambda_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, storage: MemoryStorage) -> list[settings.Settings]:
    monkeypatch.setattr(settings, "load_dotenv", lambda: None)
    for name in settings.ENV_VARS.values():
        monkeypatch.delenv(name, raising=False)
    path = tmp_path / "config.json"
    path.write_text(json.dumps(dict(CREDENTIALS, logging={"enabled": False})), encoding="utf-8")
    monkeypatch.setenv("TWEETMAIL_CONFIG", str(path))

    seen: list[settings.Settings] = []
    tweet = Tweet(id=42, author=Author("dave", "Dave", "https://img/d_normal.png"), full_text="hi")

    def _build(config: settings.Settings) -> RunCoordinator:
        seen.append(config)
        return RunCoordinator(config.digest, storage, StaticFeed([tweet]), SilentNotifier(), format_digest)

    monkeypatch.setattr(app, "build_coordinator", _build)
    return seen


def test_lambda_handler_returns_run_summary(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    storage = MemoryStorage()
    seen = _lambda_env(monkeypatch, tmp_path, storage)

    result = app.lambda_handler({}, None)

    assert seen[0].bucket == "lambda-bucket"
    assert set(result) == {"key", "rolled_over", "digest_size", "mark", "fetched", "stored"}
    assert result["rolled_over"] is True
    assert result["fetched"] == 1
    assert [tweet.id for tweet in storage.buckets[result["key"]]] == [42]


def test_lambda_handler_propagates_store_errors(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _lambda_env(monkeypatch, tmp_path, MemoryStorage(fail_reads=True))
    with pytest.raises(StoreError):
        app.lambda_handler({}, None)
