"""
app/config.py

Environment-backed settings for the event history aggregation batch.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from db.config import load_env_files, project_root

DEFAULT_TIMEZONE = "Asia/Tokyo"
DEFAULT_EXTERNAL_SOURCES: tuple[str, ...] = ("connpass", "doorkeeper")
DEFAULT_INTERNAL_SOURCES: tuple[str, ...] = ("static_json",)


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """
    Read a comma-separated list, lower-cased and de-duplicated in order.

    An unset variable yields *default*; an explicitly empty one yields ``()``.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    items: list[str] = []
    for token in raw_value.split(","):
        item = token.strip().lower()
        if item and item not in items:
            items.append(item)
    return tuple(items)


@dataclass(frozen=True)
class AggregationSettings:
    """
    Settings for one aggregation run and its scheduled trigger.

    ``webhook_url`` is optional: when unset, outcome messages are only
    written to standard output.
    """

    timezone: str = DEFAULT_TIMEZONE
    external_sources: tuple[str, ...] = DEFAULT_EXTERNAL_SOURCES
    internal_sources: tuple[str, ...] = DEFAULT_INTERNAL_SOURCES
    webhook_url: str | None = None
    webhook_timeout_seconds: float = 10.0
    cron_day_of_week: str = "mon"
    cron_hour: int = 4
    cron_minute: int = 0


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for event service connectors.
    """

    timeout_seconds: float = 15.0
    max_retries: int = 3
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 1.0


@dataclass(frozen=True)
class ConnpassSettings:
    base_url: str = "https://connpass.com/api/v2/events/"
    api_key: str | None = None
    page_size: int = 100


@dataclass(frozen=True)
class DoorkeeperSettings:
    base_url: str = "https://api.doorkeeper.jp"
    api_token: str | None = None


@dataclass(frozen=True)
class StaticJSONSettings:
    """
    Location of the hand-maintained JSON file of events held outside any
    event service.
    """

    events_path: str = "data/static_events.json"


@lru_cache(maxsize=1)
def get_aggregation_settings() -> AggregationSettings:
    """
    Return cached aggregation settings from environment variables.
    """

    return AggregationSettings(
        timezone=_get_str_env("AGGREGATION_TIMEZONE", DEFAULT_TIMEZONE),
        external_sources=_get_list_env("AGGREGATION_EXTERNAL_SOURCES", DEFAULT_EXTERNAL_SOURCES),
        internal_sources=_get_list_env("AGGREGATION_INTERNAL_SOURCES", DEFAULT_INTERNAL_SOURCES),
        webhook_url=_get_optional_str_env("AGGREGATION_WEBHOOK_URL"),
        webhook_timeout_seconds=max(1.0, _get_float_env("AGGREGATION_WEBHOOK_TIMEOUT_SECONDS", 10.0)),
        cron_day_of_week=_get_str_env("AGGREGATION_CRON_DAY_OF_WEEK", "mon"),
        cron_hour=min(23, max(0, _get_int_env("AGGREGATION_CRON_HOUR", 4))),
        cron_minute=min(59, max(0, _get_int_env("AGGREGATION_CRON_MINUTE", 0))),
    )


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    """
    Return shared connector HTTP settings from environment variables.
    """

    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("EXTERNAL_HTTP_TIMEOUT_SECONDS", 15.0)),
        max_retries=max(0, _get_int_env("EXTERNAL_HTTP_MAX_RETRIES", 3)),
        backoff_initial_seconds=max(0.1, _get_float_env("EXTERNAL_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("EXTERNAL_HTTP_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(0.1, _get_float_env("EXTERNAL_HTTP_RATE_LIMIT_PER_SECOND", 1.0)),
    )


@lru_cache(maxsize=1)
def get_connpass_settings() -> ConnpassSettings:
    return ConnpassSettings(
        base_url=_get_str_env("CONNPASS_API_BASE_URL", "https://connpass.com/api/v2/events/"),
        api_key=_get_optional_str_env("CONNPASS_API_KEY"),
        page_size=min(100, max(1, _get_int_env("CONNPASS_PAGE_SIZE", 100))),
    )


@lru_cache(maxsize=1)
def get_doorkeeper_settings() -> DoorkeeperSettings:
    return DoorkeeperSettings(
        base_url=_get_str_env("DOORKEEPER_API_BASE_URL", "https://api.doorkeeper.jp"),
        api_token=_get_optional_str_env("DOORKEEPER_API_TOKEN"),
    )


@lru_cache(maxsize=1)
def get_static_json_settings() -> StaticJSONSettings:
    raw_path = _get_str_env("STATIC_EVENTS_PATH", "data/static_events.json")
    candidate = Path(raw_path)
    if not candidate.is_absolute():
        candidate = (project_root() / candidate).resolve()
    return StaticJSONSettings(events_path=str(candidate))
