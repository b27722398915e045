"""Runtime settings, read from LIVEPUSH_* environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import timedelta

from livepush._http import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from livepush.queries import QueryKind

logger = logging.getLogger(__name__)

MINUTE = 60.0
HOUR = 60 * MINUTE
DAY = 24 * HOUR


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid value %r for %s, using default %s", raw, name, default)
        return default


def _env_int(name: str, default: int) -> int:
    value = _env_float(name, float(default))
    if value < 1:
        logger.warning("%s must be at least 1, using default %s", name, default)
        return default
    return int(value)


@dataclass(frozen=True)
class Settings:
    """Tunable horizons and endpoints. Durations are seconds."""

    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = DEFAULT_TIMEOUT

    ttl_competitions: float = 6 * HOUR
    ttl_classes: float = 15 * MINUTE
    ttl_class_results: float = 15.0
    ttl_last_passings: float = 15.0
    ttl_aggregates: float = 15 * MINUTE

    sweep_interval: float = 60.0
    sweep_max_age: float = 15 * MINUTE
    sweep_concurrency: int = 4
    subscription_recency: float = DAY
    start_window_before: float = 30 * MINUTE
    start_window_after: float = 180 * MINUTE

    cache_retention: float = 7 * DAY
    subscription_retention: float = 30 * DAY

    database_path: str = "livepush.db"
    push_webhook_url: str | None = None
    log_dir: str = "logs"
    log_level: str = "INFO"

    def ttl_for(self, kind: QueryKind) -> float:
        return {
            QueryKind.COMPETITIONS: self.ttl_competitions,
            QueryKind.CLASSES: self.ttl_classes,
            QueryKind.CLASS_RESULTS: self.ttl_class_results,
            QueryKind.LAST_PASSINGS: self.ttl_last_passings,
        }[kind]

    @property
    def recency_window(self) -> timedelta:
        return timedelta(seconds=self.subscription_recency)

    @property
    def before_start(self) -> timedelta:
        return timedelta(seconds=self.start_window_before)

    @property
    def after_start(self) -> timedelta:
        return timedelta(seconds=self.start_window_after)

    @classmethod
    def from_env(cls) -> Settings:
        defaults = cls()
        return cls(
            base_url=os.getenv("LIVEPUSH_BASE_URL", defaults.base_url),
            request_timeout=_env_float("LIVEPUSH_REQUEST_TIMEOUT", defaults.request_timeout),
            ttl_competitions=_env_float("LIVEPUSH_TTL_COMPETITIONS", defaults.ttl_competitions),
            ttl_classes=_env_float("LIVEPUSH_TTL_CLASSES", defaults.ttl_classes),
            ttl_class_results=_env_float("LIVEPUSH_TTL_CLASS_RESULTS", defaults.ttl_class_results),
            ttl_last_passings=_env_float("LIVEPUSH_TTL_LAST_PASSINGS", defaults.ttl_last_passings),
            ttl_aggregates=_env_float("LIVEPUSH_TTL_AGGREGATES", defaults.ttl_aggregates),
            sweep_interval=_env_float("LIVEPUSH_SWEEP_INTERVAL", defaults.sweep_interval),
            sweep_max_age=_env_float("LIVEPUSH_SWEEP_MAX_AGE", defaults.sweep_max_age),
            sweep_concurrency=_env_int("LIVEPUSH_SWEEP_CONCURRENCY", defaults.sweep_concurrency),
            subscription_recency=_env_float("LIVEPUSH_SUBSCRIPTION_RECENCY", defaults.subscription_recency),
            start_window_before=_env_float("LIVEPUSH_START_WINDOW_BEFORE", defaults.start_window_before),
            start_window_after=_env_float("LIVEPUSH_START_WINDOW_AFTER", defaults.start_window_after),
            cache_retention=_env_float("LIVEPUSH_CACHE_RETENTION", defaults.cache_retention),
            subscription_retention=_env_float(
                "LIVEPUSH_SUBSCRIPTION_RETENTION", defaults.subscription_retention,
            ),
            database_path=os.getenv("LIVEPUSH_DATABASE", defaults.database_path),
            push_webhook_url=os.getenv("LIVEPUSH_PUSH_WEBHOOK_URL") or None,
            log_dir=os.getenv("LIVEPUSH_LOG_DIR", defaults.log_dir),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        )
