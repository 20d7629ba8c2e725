"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class CSVNormalizerSettings:
    """
    Runtime settings for CSV normalization.

    ``month_first`` controls how slash-separated dates (``4/9/2024``) are
    read. The upstream exports use the US month/day/year order.
    """

    max_row_issues: int = 500
    log_row_issues: bool = False
    month_first: bool = True


@dataclass(frozen=True)
class AggregationSettings:
    """
    Runtime settings for chart series aggregation.
    """

    top_n: int = 10
    unknown_label: str = "Unknown"


@dataclass(frozen=True)
class LoggingSettings:
    """
    Root logger settings for the dashboard process.
    """

    level: str = "INFO"


@lru_cache(maxsize=1)
def get_csv_normalizer_settings() -> CSVNormalizerSettings:
    """
    Return cached CSV normalization settings from environment variables.
    """

    return CSVNormalizerSettings(
        max_row_issues=max(1, _get_int_env("DASHBOARD_CSV_MAX_ROW_ISSUES", 500)),
        log_row_issues=_get_bool_env("DASHBOARD_CSV_LOG_ROW_ISSUES", False),
        month_first=_get_bool_env("DASHBOARD_CSV_MONTH_FIRST", True),
    )


@lru_cache(maxsize=1)
def get_aggregation_settings() -> AggregationSettings:
    """
    Return cached aggregation settings from environment variables.
    """

    return AggregationSettings(
        top_n=max(1, _get_int_env("DASHBOARD_TOP_N", 10)),
        unknown_label=_get_str_env("DASHBOARD_UNKNOWN_LABEL", "Unknown"),
    )


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    return LoggingSettings(level=_get_str_env("LOG_LEVEL", "INFO").upper())
