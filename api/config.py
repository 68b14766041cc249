"""
Configuration management for the Recipe Finder API.

This module centralizes environment variable loading from the .env file at the
project root. It should be imported early in api/main.py so .env is loaded
before any other code reads the environment.

In production, .env will usually not exist; load_dotenv() then no-ops and the
platform environment is used instead.

Environment Variables:
- MEALDB_BASE_URL: Optional, defaults to https://www.themealdb.com/api/json/v1/1
- MEALDB_TIMEOUT_SECONDS: Optional, per-request timeout (default: 10)
- MEALDB_MAX_ATTEMPTS: Optional, retry budget per call (default: 3)
- MEALDB_BACKOFF_BASE_SECONDS: Optional, first retry delay (default: 1.0)
- MEALDB_CACHE_TTL_SECONDS: Optional, response cache TTL (default: 300)
- MEALDB_MAX_WORKERS: Optional, concurrent lookups per batch (default: 16)
- RECIPES_PAGE_SIZE: Optional, default page size, at least 1 (default: 15)
- LOG_LEVEL: Optional, DEBUG/INFO/WARNING/ERROR (default: INFO)
"""

import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict

from dotenv import load_dotenv

from recipe_finder.connectors.mealdb_connector import MealDBConnector
from recipe_finder.constants import (
    DEFAULT_BACKOFF_BASE_SECONDS,
    DEFAULT_BASE_URL,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_WORKERS,
    DEFAULT_PAGE_SIZE,
    DEFAULT_TIMEOUT_SECONDS,
)
from recipe_finder.utils.cache import ResponseCache

logger = logging.getLogger(__name__)


def load_env_file() -> None:
    """
    Load environment variables from .env file at project root.

    Safe to call multiple times. Existing environment variables take
    precedence over values in .env (override=False).
    """
    # api/config.py -> api/ -> project root
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env", override=False)


# Load .env file on module import
load_env_file()


def _read_number(name: str, default: Any, cast: Callable[[str], Any], minimum: Any = None) -> Any:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Invalid value %r for %s, using default %r", raw, name, default)
        return default
    if minimum is not None and value < minimum:
        logger.warning("Value %r for %s is below %r, using default %r", raw, name, minimum, default)
        return default
    return value


class MealDBConfig:
    """Configuration for the MealDB connector and recipe listing."""

    @staticmethod
    def get_base_url() -> str:
        return os.getenv("MEALDB_BASE_URL", DEFAULT_BASE_URL).rstrip("/")

    @staticmethod
    def get_timeout_seconds() -> float:
        return _read_number("MEALDB_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS, float)

    @staticmethod
    def get_max_attempts() -> int:
        return _read_number("MEALDB_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS, int)

    @staticmethod
    def get_backoff_base_seconds() -> float:
        return _read_number("MEALDB_BACKOFF_BASE_SECONDS", DEFAULT_BACKOFF_BASE_SECONDS, float)

    @staticmethod
    def get_cache_ttl_seconds() -> float:
        return _read_number("MEALDB_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS, float)

    @staticmethod
    def get_max_workers() -> int:
        return _read_number("MEALDB_MAX_WORKERS", DEFAULT_MAX_WORKERS, int, minimum=1)

    @staticmethod
    def get_page_size() -> int:
        return _read_number("RECIPES_PAGE_SIZE", DEFAULT_PAGE_SIZE, int, minimum=1)

    @staticmethod
    def get_log_level() -> str:
        return os.getenv("LOG_LEVEL", "INFO").upper()


def build_connector() -> MealDBConnector:
    """
    Create a MealDBConnector from the current environment.

    Returns:
        Connector with its own ResponseCache using the configured TTL
    """
    return MealDBConnector(
        base_url=MealDBConfig.get_base_url(),
        timeout=MealDBConfig.get_timeout_seconds(),
        max_attempts=MealDBConfig.get_max_attempts(),
        backoff_base=MealDBConfig.get_backoff_base_seconds(),
        cache=ResponseCache(ttl_seconds=MealDBConfig.get_cache_ttl_seconds()),
        max_workers=MealDBConfig.get_max_workers(),
    )


def describe_config() -> Dict[str, Any]:
    """Current effective settings, for the /health endpoint."""
    return {
        "base_url": MealDBConfig.get_base_url(),
        "timeout_seconds": MealDBConfig.get_timeout_seconds(),
        "max_attempts": MealDBConfig.get_max_attempts(),
        "backoff_base_seconds": MealDBConfig.get_backoff_base_seconds(),
        "cache_ttl_seconds": MealDBConfig.get_cache_ttl_seconds(),
        "max_workers": MealDBConfig.get_max_workers(),
        "page_size": MealDBConfig.get_page_size(),
    }
