"""Tests for settings and logging setup."""

from __future__ import annotations

import logging

import pytest

from livepush import call_logging
from livepush.config import Settings
from livepush.logging_setup import build_handlers, setup_logging
from livepush.queries import QueryKind


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.ttl_for(QueryKind.COMPETITIONS) == 6 * 3600
        assert settings.ttl_for(QueryKind.CLASSES) == 15 * 60
        assert settings.ttl_for(QueryKind.CLASS_RESULTS) == 15
        assert settings.ttl_for(QueryKind.LAST_PASSINGS) == 15
        assert settings.sweep_max_age == 15 * 60
        assert settings.before_start.total_seconds() == 30 * 60
        assert settings.after_start.total_seconds() == 180 * 60
        assert settings.recency_window.days == 1
        assert settings.push_webhook_url is None

    def test_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("LIVEPUSH_TTL_CLASS_RESULTS", "30")
        monkeypatch.setenv("LIVEPUSH_SWEEP_CONCURRENCY", "8")
        monkeypatch.setenv("LIVEPUSH_DATABASE", "/tmp/live.db")
        monkeypatch.setenv("LIVEPUSH_PUSH_WEBHOOK_URL", "https://push.example.org/send")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings.from_env()

        assert settings.ttl_class_results == 30
        assert settings.sweep_concurrency == 8
        assert settings.database_path == "/tmp/live.db"
        assert settings.push_webhook_url == "https://push.example.org/send"
        assert settings.log_level == "DEBUG"

    def test_invalid_values_fall_back(self, monkeypatch, caplog) -> None:
        monkeypatch.setenv("LIVEPUSH_SWEEP_INTERVAL", "often")
        monkeypatch.setenv("LIVEPUSH_SWEEP_CONCURRENCY", "0")
        monkeypatch.setenv("LIVEPUSH_PUSH_WEBHOOK_URL", "")

        with caplog.at_level(logging.WARNING, logger="livepush.config"):
            settings = Settings.from_env()

        assert settings.sweep_interval == 60
        assert settings.sweep_concurrency == 4
        assert settings.push_webhook_url is None
        assert "LIVEPUSH_SWEEP_INTERVAL" in caplog.text

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            Settings().sweep_interval = 1  # type: ignore[misc]


class TestLoggingSetup:
    def test_handlers(self, tmp_path) -> None:
        handlers = build_handlers(Settings(log_dir=str(tmp_path / "logs"), log_level="WARNING"))
        console, json_file = handlers
        assert console.level == logging.WARNING
        assert json_file.level == logging.DEBUG

        logger = logging.getLogger("livepush.test.json")
        logger.propagate = False
        logger.addHandler(json_file)
        try:
            logger.warning("sweep slow")
        finally:
            logger.removeHandler(json_file)
            for handler in handlers:
                handler.close()

        content = (tmp_path / "logs" / "livepush.log").read_text(encoding="utf-8")
        assert '"message": "sweep slow"' in content
        assert '"level": "WARNING"' in content
        assert '"name": "livepush.test.json"' in content

    def test_configured_root_left_alone(self, tmp_path) -> None:
        root = logging.getLogger()
        root.addHandler(logging.NullHandler())
        before = root.handlers[:]
        try:
            setup_logging(Settings(log_dir=str(tmp_path)))
            assert root.handlers == before
            assert call_logging._LOG_DIR == str(tmp_path)
        finally:
            root.removeHandler(before[-1])
