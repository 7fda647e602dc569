"""Tests for configuration validation and structured card logging."""

import json
import logging
from types import SimpleNamespace

import pytest

from socialcard.core.config import validate_config
from socialcard.core.logging import CardLogger, JsonFormatter, PrettyFormatter, request_id_ctx_var


def make_settings(**overrides):
    defaults = dict(
        CONFIG_STRICT=False,
        GITHUB_TOKEN="ghp_test",
        S3_BUCKET="cards",
        S3_ENDPOINT="https://s3.test",
        S3_ACCESS_KEY="key",
        S3_SECRET_KEY="secret",
    )
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def test_complete_config_passes():
    assert validate_config(strict=True, settings_obj=make_settings()) is True


def test_missing_keys_raise_in_strict_mode():
    with pytest.raises(RuntimeError) as exc_info:
        validate_config(strict=True, settings_obj=make_settings(S3_SECRET_KEY=None, GITHUB_TOKEN=None))

    assert "S3_SECRET_KEY" in str(exc_info.value)
    assert "GITHUB_TOKEN" in str(exc_info.value)


def test_missing_keys_warn_without_leaking_secrets(caplog):
    cfg = make_settings(S3_BUCKET=None)
    with caplog.at_level(logging.WARNING, logger="socialcard"):
        validate_config(strict=False, settings_obj=cfg)

    assert "S3_BUCKET" in caplog.text
    assert "secret" not in caplog.text


def test_card_logger_binds_request_and_subject(caplog):
    log = CardLogger("insights", 102, request_id="rid-1")
    with caplog.at_level(logging.DEBUG, logger="socialcard"):
        log.debug("generated", extra={"stage": "upload"})

    record = caplog.records[-1]
    assert record.request_id == "rid-1"
    assert record.card_kind == "insights"
    assert record.subject == "102"
    assert record.stage == "upload"


def test_card_logger_falls_back_to_context_request_id():
    token = request_id_ctx_var.set("ctx-rid")
    try:
        log = CardLogger("users", "bdougie")
    finally:
        request_id_ctx_var.reset(token)

    assert log.extra["request_id"] == "ctx-rid"


def _record(**extra):
    record = logging.LogRecord("socialcard", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_card_fields():
    payload = json.loads(JsonFormatter().format(_record(request_id="r", card_kind="users", subject="bdougie")))

    assert payload["message"] == "hello world"
    assert payload["request_id"] == "r"
    assert payload["card_kind"] == "users"
    assert payload["subject"] == "bdougie"


def test_pretty_formatter_mentions_subject():
    line = PrettyFormatter().format(_record(request_id="r", card_kind="users", subject="bdougie"))

    assert "[rid=r]" in line
    assert "[users=bdougie]" in line
    assert line.endswith("hello world")


def test_settings_read_dotenv_from_working_directory(tmp_path, monkeypatch):
    from socialcard.core.config import Settings

    (tmp_path / ".env").write_text("BATCH_CONCURRENCY=7\nGITHUB_TOKEN=ghp_from_file\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("BATCH_CONCURRENCY", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)

    cfg = Settings()

    assert cfg.BATCH_CONCURRENCY == 7
    assert cfg.GITHUB_TOKEN == "ghp_from_file"
