from __future__ import annotations

import json
from pathlib import Path

import pytest

import settings
from core.config import DigestConfig
from core.errors import ConfigError

CREDENTIALS = {
    "bucket": "file-bucket",
    "consumer-api-key": "ck",
    "consumer-api-secret-key": "cs",
    "access-token": "at",
    "access-token-secret": "ats",
    "email": "file@example.com",
}


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "load_dotenv", lambda: None)
    for name in settings.ENV_VARS.values():
        monkeypatch.delenv(name, raising=False)


def _write_config(tmp_path: Path, data: dict) -> str:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_config_file_values_and_defaults(tmp_path: Path) -> None:
    loaded = settings.load_settings(_write_config(tmp_path, CREDENTIALS))

    assert loaded.bucket == "file-bucket"
    assert loaded.email == "file@example.com"
    assert loaded.twitter.consumer_key == "ck"
    assert loaded.digest.window_hours == 8
    assert loaded.digest.subject == "Tweets from the past 8h"
    assert loaded.storage_backend == "s3"
    assert loaded.ses_region == "us-west-2"


def test_flags_beat_env_beat_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TWEETMAIL_BUCKET", "env-bucket")
    monkeypatch.setenv("TWEETMAIL_EMAIL", "env@example.com")
    path = _write_config(tmp_path, CREDENTIALS)

    loaded = settings.load_settings(path, {"email": "flag@example.com", "bucket": None})

    assert loaded.email == "flag@example.com"
    assert loaded.bucket == "env-bucket"
    assert loaded.twitter.access_token == "at"


def test_missing_required_values(tmp_path: Path) -> None:
    data = dict(CREDENTIALS)
    del data["email"]
    del data["access-token"]
    with pytest.raises(ConfigError, match="access-token, email"):
        settings.load_settings(_write_config(tmp_path, data))


def test_sqlite_backend_does_not_need_bucket(tmp_path: Path) -> None:
    data = {key: value for key, value in CREDENTIALS.items() if key != "bucket"}
    data["storage"] = {"backend": "sqlite", "sqlite_path": str(tmp_path / "t.db")}
    loaded = settings.load_settings(_write_config(tmp_path, data))
    assert loaded.storage_backend == "sqlite"
    assert loaded.sqlite_path == str(tmp_path / "t.db")


def test_digest_section(tmp_path: Path) -> None:
    data = dict(CREDENTIALS, digest={"window_hours": 6, "page_size": 50, "subject": "Last {window_hours} hours"})
    loaded = settings.load_settings(_write_config(tmp_path, data))
    assert loaded.digest.window_hours == 6
    assert loaded.digest.page_size == 50
    assert loaded.digest.subject == "Last 6 hours"


@pytest.mark.parametrize(
    "extra",
    [
        {"digest": {"window_hours": 7}},
        {"digest": {"page_size": "many"}},
        {"digest": {"page_size": 201}},
        {"digest": {"subject": "Tweets for {date}"}},
        {"digest": {"subject": "Tweets {0}"}},
        {"digest": {"subject": "Tweets {window_hours"}},
        {"storage": {"backend": "gcs"}},
        {"notifications": {"format": "markdown"}},
    ],
)
def test_invalid_sections(tmp_path: Path, extra: dict) -> None:
    with pytest.raises(ConfigError):
        settings.load_settings(_write_config(tmp_path, dict(CREDENTIALS, **extra)))


def test_broken_config_file(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{oops", encoding="utf-8")
    with pytest.raises(ConfigError):
        settings.load_settings(str(path))


def test_digest_config_without_credentials(tmp_path: Path) -> None:
    path = _write_config(tmp_path, {"digest": {"window_hours": 12}})
    assert settings.load_digest_config(path).window_hours == 12
    assert settings.load_digest_config(str(tmp_path / "missing.json")).window_hours == 8


def test_subject_template_checked_when_config_is_built() -> None:
    with pytest.raises(ValueError, match="subject template"):
        DigestConfig(subject_template="Tweets for {date}")
    assert DigestConfig(subject_template="Digest ({window_hours}h)").subject == "Digest (8h)"


def test_page_size_capped_at_timeline_limit() -> None:
    assert DigestConfig(page_size=200).page_size == 200
    with pytest.raises(ValueError, match="between 1 and 200"):
        DigestConfig(page_size=201)
