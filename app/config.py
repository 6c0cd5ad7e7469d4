"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_FIXTURE_PATH = Path(__file__).resolve().parent / "data" / "product_sales_data.json"


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    for filename in (".env", ".env.local"):
        env_path = _PROJECT_ROOT / filename
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


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
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


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class BaaSSettings:
    """
    Hosted backend (PostgREST-style) connection settings.
    """

    url: str | None = None
    anon_key: str | None = None
    sales_table: str = "sales"
    products_table: str = "products"
    timeout_seconds: float = 10.0
    max_retries: int = 2
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0

    @property
    def enabled(self) -> bool:
        return bool(self.url and self.anon_key)


@dataclass(frozen=True)
class AnalyticsSettings:
    """
    Settings for sales normalization and pricing simulation.
    """

    fallback_year: int = 2023
    fixture_path: Path = DEFAULT_FIXTURE_PATH
    default_elasticity: float = -1.0


@dataclass(frozen=True)
class UploadSettings:
    """
    Limits applied to user-uploaded sales files.
    """

    max_bytes: int = 5 * 1024 * 1024


@lru_cache(maxsize=1)
def get_baas_settings() -> BaaSSettings:
    """
    Return cached backend connection settings from environment variables.
    """

    url = _get_optional_str_env("BAAS_URL")
    return BaaSSettings(
        url=url.rstrip("/") if url else None,
        anon_key=_get_optional_str_env("BAAS_ANON_KEY"),
        sales_table=_get_str_env("BAAS_SALES_TABLE", "sales"),
        products_table=_get_str_env("BAAS_PRODUCTS_TABLE", "products"),
        timeout_seconds=max(1.0, _get_float_env("BAAS_TIMEOUT_SECONDS", 10.0)),
        max_retries=max(0, _get_int_env("BAAS_MAX_RETRIES", 2)),
        backoff_initial_seconds=max(0.1, _get_float_env("BAAS_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("BAAS_BACKOFF_MULTIPLIER", 2.0)),
    )


@lru_cache(maxsize=1)
def get_analytics_settings() -> AnalyticsSettings:
    """
    Return cached analytics settings from environment variables.
    """

    fixture = _get_optional_str_env("SALES_FIXTURE_PATH")
    return AnalyticsSettings(
        fallback_year=_get_int_env("SALES_FALLBACK_YEAR", 2023),
        fixture_path=Path(fixture) if fixture else DEFAULT_FIXTURE_PATH,
        default_elasticity=_get_float_env("ELASTICITY_DEFAULT", -1.0),
    )


@lru_cache(maxsize=1)
def get_upload_settings() -> UploadSettings:
    """
    Return cached upload limits from environment variables.
    """

    return UploadSettings(
        max_bytes=max(1, _get_int_env("SALES_UPLOAD_MAX_BYTES", 5 * 1024 * 1024)),
    )
