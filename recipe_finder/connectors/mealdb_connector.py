"""
MealDB connector using TheMealDB public JSON API.

This connector wraps the upstream recipe API in three layers:

- Transport: fetch_once() issues exactly one GET with a bounded wait and maps
  requests exceptions to UpstreamTimeoutError / NetworkError. The raw response
  is returned whatever its status code.
- Retry: fetch_with_retry() retries timeouts, network failures and 5xx
  responses with pure exponential backoff (base * 2**attempt, no jitter).
  Responses with status < 500 are returned immediately.
- Cache: list-style queries go through a ResponseCache keyed by query kind and
  parameter. Random meals and detail lookups bypass the cache.

Every public query method is a terminal error boundary: failures are logged and
degrade to [] or None, never raised. A well-formed "not found" response
({"meals": null}) is not an error either.

The HTTP session, the sleep function and the cache clock are injectable so
tests never touch the network or real timers.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

import requests

from recipe_finder.constants import (
    DEFAULT_BACKOFF_BASE_SECONDS,
    DEFAULT_BASE_URL,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_WORKERS,
    DEFAULT_TIMEOUT_SECONDS,
    FEATURED_MEAL_IDS,
)
from recipe_finder.errors import (
    ClientError,
    MalformedResponseError,
    NetworkError,
    RETRYABLE_ERRORS,
    ServerError,
    UpstreamTimeoutError,
)
from recipe_finder.utils.cache import ResponseCache, make_cache_key

from .base import BaseRecipeSource

logger = logging.getLogger(__name__)


def run_concurrently(
    func: Callable[[Any], Any],
    items: List[Any],
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> List[Any]:
    """
    Call func for every item in parallel and keep the successful results.

    This is a partial-success join: an item whose call raises, or returns None,
    is dropped without failing the batch. Result order follows input order.

    Args:
        func: Single-argument callable (e.g., a lookup by id)
        items: Arguments to fan out
        max_workers: Upper bound on concurrent calls

    Returns:
        List of non-None results, in input order
    """
    if not items:
        return []

    results: List[Any] = []
    with ThreadPoolExecutor(max_workers=min(len(items), max_workers)) as executor:
        futures = [executor.submit(func, item) for item in items]
        for item, future in zip(items, futures):
            try:
                value = future.result()
            except Exception as e:
                logger.warning("Concurrent call for %r failed, dropping it: %s", item, e)
                continue
            if value is not None:
                results.append(value)
    return results


class MealDBConnector(BaseRecipeSource):
    """
    Connector for TheMealDB with timeout, retry and TTL caching.

    Attributes:
        base_url: Upstream base URL without trailing slash
        timeout: Per-request timeout in seconds
        max_attempts: Retry budget per logical call
        backoff_base: Delay before the first retry, in seconds
        cache: ResponseCache shared by all cached query methods
        max_workers: Upper bound on concurrent lookups in batch queries
    """
    source = "mealdb"

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_base: float = DEFAULT_BACKOFF_BASE_SECONDS,
        cache: Optional[ResponseCache] = None,
        session: Optional[requests.Session] = None,
        sleep: Optional[Callable[[float], None]] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.backoff_base = backoff_base
        self.cache = cache if cache is not None else ResponseCache()
        self.session = session or requests.Session()
        self.max_workers = max(1, max_workers)
        self._sleep = sleep or time.sleep

        logger.debug(
            "MealDB connector initialized: base_url=%s timeout=%ss max_attempts=%d backoff_base=%ss ttl=%ss",
            self.base_url, self.timeout, self.max_attempts, self.backoff_base, self.cache.ttl_seconds,
        )

    # ------------------------------------------------------------------
    # Transport and retry
    # ------------------------------------------------------------------

    def fetch_once(
        self,
        url: str,
        params: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> requests.Response:
        """
        Issue a single GET request with a bounded wait.

        Args:
            url: Absolute endpoint URL
            params: Query string parameters (URL-encoded by requests)
            timeout: Override of the connector timeout, in seconds

        Returns:
            The raw response, whatever its status code

        Raises:
            UpstreamTimeoutError: No response within the timeout
            NetworkError: Any other transport-level failure
        """
        wait = self.timeout if timeout is None else timeout
        logger.debug("GET %s params=%r timeout=%ss", url, params, wait)
        try:
            return self.session.get(url, params=params, timeout=wait)
        except requests.exceptions.Timeout as e:
            raise UpstreamTimeoutError(f"Request to {url} timed out after {wait}s", url=url) from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Request to {url} failed: {e}", url=url) from e

    def fetch_with_retry(
        self,
        url: str,
        params: Optional[Dict[str, str]] = None,
        max_attempts: Optional[int] = None,
    ) -> requests.Response:
        """
        Call fetch_once up to max_attempts times with exponential backoff.

        Timeouts, network errors and responses with status >= 500 are retried.
        Anything below 500, 4xx included, is returned as-is after one call.
        Between attempt i and i + 1 the connector sleeps backoff_base * 2**i.

        Raises:
            The last UpstreamTimeoutError, NetworkError or ServerError once the
            budget is exhausted
        """
        attempts = max(1, max_attempts or self.max_attempts)
        last_error: Optional[Exception] = None

        for attempt in range(attempts):
            try:
                response = self.fetch_once(url, params)
            except RETRYABLE_ERRORS as e:
                last_error = e
            else:
                if response.status_code < 500:
                    return response
                last_error = ServerError(response.status_code, url=url)

            if attempt < attempts - 1:
                delay = self.backoff_base * (2 ** attempt)
                logger.warning(
                    "MealDB request failed (%s), retrying in %.1fs (attempt %d/%d)",
                    last_error, delay, attempt + 1, attempts,
                )
                self._sleep(delay)

        logger.warning("MealDB request to %s failed after %d attempts: %s", url, attempts, last_error)
        raise last_error

    def _get_json(self, endpoint: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Fetch an endpoint through the retry layer and decode its JSON object body."""
        url = f"{self.base_url}/{endpoint}"
        response = self.fetch_with_retry(url, params)

        if 400 <= response.status_code < 500:
            raise ClientError(response.status_code, url=url)

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Invalid JSON from {url}: {e}", url=url) from e

        if not isinstance(data, dict):
            raise MalformedResponseError(f"Expected a JSON object from {url}", url=url)
        return data

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------

    def _fetch_list(self, endpoint: str, params: Optional[Dict[str, str]], field: str) -> List[Dict[str, Any]]:
        """
        Fetch an endpoint and return the record list held in field.

        A missing or null field is a normal empty result. Anything else that
        is not a list of objects (e.g., {"meals": "Invalid ID"}) raises
        MalformedResponseError, so it is never cached or handed to callers.
        """
        data = self._get_json(endpoint, params)
        records = data.get(field)
        if records is None:
            return []
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            raise MalformedResponseError(
                f"Expected a list of objects in {field!r} from {endpoint}, got {type(records).__name__}",
                url=f"{self.base_url}/{endpoint}",
            )
        return records

    def _fetch_first(self, endpoint: str, params: Optional[Dict[str, str]] = None) -> Optional[Dict[str, Any]]:
        meals = self._fetch_list(endpoint, params, "meals")
        return meals[0] if meals else None

    def _cached_list(
        self,
        kind: str,
        value: Optional[str],
        endpoint: str,
        params: Optional[Dict[str, str]] = None,
        field: str = "meals",
    ) -> List[Dict[str, Any]]:
        key = make_cache_key(kind, value)
        try:
            return self.cache.get_cached(key, lambda: self._fetch_list(endpoint, params, field))
        except Exception as e:
            logger.warning("MealDB %s query for %r failed, returning no results: %s", kind, value, e)
            return []

    # ------------------------------------------------------------------
    # Public query methods
    # ------------------------------------------------------------------

    def search_meals_by_name(self, name: str) -> List[Dict[str, Any]]:
        """Search full recipe records by name (search.php?s=)."""
        return self._cached_list("search", name, "search.php", {"s": name})

    def search_meals_by_first_letter(self, letter: str) -> List[Dict[str, Any]]:
        """List full recipe records whose name starts with a letter (search.php?f=)."""
        return self._cached_list("letter", letter, "search.php", {"f": letter})

    def get_meals_by_category(self, category: str) -> List[Dict[str, Any]]:
        """
        Summary records in a category (filter.php?c=).

        Args:
            category: Exact category name (e.g., "Seafood")

        Returns:
            List of {idMeal, strMeal, strMealThumb} dicts, [] on failure
        """
        return self._cached_list("category", category, "filter.php", {"c": category})

    def get_meals_by_area(self, area: str) -> List[Dict[str, Any]]:
        """Summary records for a cuisine/area (filter.php?a=), [] on failure."""
        return self._cached_list("area", area, "filter.php", {"a": area})

    def get_meals_by_ingredient(self, ingredient: str) -> List[Dict[str, Any]]:
        """Summary records using a main ingredient (filter.php?i=), [] on failure."""
        return self._cached_list("ingredient", ingredient, "filter.php", {"i": ingredient})

    def get_categories(self) -> List[Dict[str, Any]]:
        """Category records (idCategory, strCategory, strCategoryThumb, ...)."""
        return self._cached_list("categories", None, "categories.php", field="categories")

    def get_areas(self) -> List[Dict[str, Any]]:
        """Area records ({"strArea": ...})."""
        return self._cached_list("areas", None, "list.php", {"a": "list"})

    def get_meal_by_id(self, meal_id: str) -> Optional[Dict[str, Any]]:
        """
        Look up the full recipe record for an identifier.

        Detail pages want the current record, so this bypasses the cache.
        Use get_meal_by_id_cached() where a five-minute-old record is fine.
        """
        try:
            return self._fetch_first("lookup.php", {"i": meal_id})
        except Exception as e:
            logger.warning("MealDB lookup for id %r failed: %s", meal_id, e)
            return None

    def get_meal_by_id_cached(self, meal_id: str) -> Optional[Dict[str, Any]]:
        """Same as get_meal_by_id(), but served from the cache within the TTL."""
        key = make_cache_key("lookup", meal_id)
        try:
            return self.cache.get_cached(key, lambda: self._fetch_first("lookup.php", {"i": meal_id}))
        except Exception as e:
            logger.warning("MealDB cached lookup for id %r failed: %s", meal_id, e)
            return None

    def get_random_meal(self) -> Optional[Dict[str, Any]]:
        """One random full recipe record. Never cached."""
        try:
            return self._fetch_first("random.php")
        except Exception as e:
            logger.warning("MealDB random meal request failed: %s", e)
            return None

    def get_multiple_random_meals(self, count: int = 5) -> List[Dict[str, Any]]:
        """
        Fetch count random meals concurrently.

        Failed or empty draws are dropped, so fewer than count meals may come
        back. Duplicates are kept; callers that need uniqueness dedupe by idMeal.
        """
        if count <= 0:
            return []
        return run_concurrently(lambda _: self.get_random_meal(), list(range(count)), self.max_workers)

    def get_featured_meals(self) -> List[Dict[str, Any]]:
        """Look up the fixed featured ids concurrently, keeping id order and dropping misses."""
        return run_concurrently(self.get_meal_by_id, list(FEATURED_MEAL_IDS), self.max_workers)


# Process-wide connector used by the plain function facade in recipe_finder.mealdb
# and by the aggregation engine when no source is passed explicitly.
_default_connector: Optional[MealDBConnector] = None


def get_default_connector() -> MealDBConnector:
    """Return the process-wide connector, creating one with default settings on first use."""
    global _default_connector
    if _default_connector is None:
        _default_connector = MealDBConnector()
    return _default_connector


def set_default_connector(connector: Optional[MealDBConnector]) -> None:
    """Replace the process-wide connector (None resets to lazily created defaults)."""
    global _default_connector
    _default_connector = connector
