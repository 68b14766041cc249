"""
Recipe aggregation engine combining single-dimension upstream queries.

MealDB can only filter by one dimension per call and has no combined queries.
This module picks one primary fetch strategy for a FilterSelection, then
reconciles the remaining dimensions client-side:

1. Multi-term search ("chicken, garlic"): candidates by ingredient using the
   first term, hydrate up to 100, keep recipes where every term appears in the
   name or in some ingredient slot.
2. Single-term search: name search, no ingredient fallback.
3. Category: filter by category, hydrate up to 50.
4. Cuisine: filter by area, hydrate up to 50.
5. Ingredient: filter by ingredient, hydrate up to 50.
6. Nothing selected: sample random recipes until page_size unique ids are held.

When more than one of category/cuisine/ingredient is set, a post-filter keeps
only recipes that satisfy every selected dimension, whichever strategy ran.
Results are then deduplicated by idMeal and truncated to page_size.

Flow: UI / api.main -> fetch_recipes() -> BaseRecipeSource query methods ->
ResponseCache -> retry -> transport -> TheMealDB
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from recipe_finder.connectors.base import BaseRecipeSource
from recipe_finder.connectors.mealdb_connector import get_default_connector, run_concurrently
from recipe_finder.constants import (
    DEFAULT_MAX_WORKERS,
    DEFAULT_PAGE_SIZE,
    HYDRATION_LIMIT,
    MULTI_TERM_HYDRATION_LIMIT,
)
from recipe_finder.models import FilterSelection, RecipePage
from recipe_finder.utils.ingredients import matches_all_terms, meal_has_ingredient, parse_search_terms

logger = logging.getLogger(__name__)

Recipe = Dict[str, Any]


def _resolve_source(source: Optional[BaseRecipeSource]) -> BaseRecipeSource:
    """Use the given source, or the process-wide MealDB connector (looked up late so tests can patch it)."""
    return source if source is not None else get_default_connector()


def _worker_count(source: BaseRecipeSource) -> int:
    """Concurrency bound for batch lookups: the source's max_workers when it declares one."""
    workers = getattr(source, "max_workers", None)
    if isinstance(workers, int) and workers > 0:
        return workers
    return DEFAULT_MAX_WORKERS


def _clamp_page_size(page_size: int) -> int:
    if page_size < 1:
        logger.warning("Page size %r is below 1, using 1", page_size)
        return 1
    return page_size


def dedupe_by_id(meals: List[Recipe]) -> List[Recipe]:
    """
    Remove duplicate recipes by idMeal.

    The first occurrence fixes the position; identifiers are authoritative, so
    which duplicate's content is kept does not matter. Records without an id,
    and anything that is not a record at all, are dropped.

    Examples:
        >>> [m["idMeal"] for m in dedupe_by_id([{"idMeal": "1"}, {"idMeal": "2"}, {"idMeal": "1"}])]
        ['1', '2']
    """
    unique: Dict[str, Recipe] = {}
    for meal in meals:
        if not meal or not isinstance(meal, dict):
            continue
        meal_id = meal.get("idMeal")
        if meal_id is None:
            logger.debug("Dropping recipe without idMeal: %s", str(meal)[:100])
            continue
        unique[str(meal_id)] = meal
    return list(unique.values())


def hydrate_meals(summaries: List[Recipe], limit: int, source: Optional[BaseRecipeSource] = None) -> List[Recipe]:
    """
    Turn summary records into full detail records.

    Looks up at most limit ids concurrently. Lookups that fail or find nothing
    are dropped silently; the batch as a whole never fails.
    """
    source = _resolve_source(source)
    ids = [str(s["idMeal"]) for s in summaries[:limit] if s.get("idMeal")]
    detailed = run_concurrently(source.get_meal_by_id, ids, _worker_count(source))
    logger.debug("Hydrated %d of %d candidate recipes", len(detailed), len(ids))
    return detailed


def apply_cross_filters(meals: List[Recipe], selection: FilterSelection) -> List[Recipe]:
    """
    Keep only recipes that satisfy every selected structured dimension.

    Category and cuisine use exact equality; ingredient is a case-insensitive
    substring match across all ingredient slots.
    """
    checks: List[Callable[[Recipe], bool]] = []
    if selection.category:
        checks.append(lambda meal: meal.get("strCategory") == selection.category)
    if selection.cuisine:
        checks.append(lambda meal: meal.get("strArea") == selection.cuisine)
    if selection.ingredient:
        checks.append(lambda meal: meal_has_ingredient(meal, selection.ingredient))

    filtered = [meal for meal in meals if all(check(meal) for check in checks)]
    logger.info("Cross filters applied: %d -> %d recipes", len(meals), len(filtered))
    return filtered


def collect_random_meals(page_size: int, source: Optional[BaseRecipeSource] = None) -> List[Recipe]:
    """
    Sample random recipes until page_size distinct ids have been collected.

    Each round asks for exactly the number of recipes still missing. Duplicates
    across or within rounds are absorbed by the id-keyed map. An upstream
    serving a tiny fixed pool can keep this looping; a round in which every
    draw failed ends the loop early instead.
    """
    source = _resolve_source(source)
    unique: Dict[str, Recipe] = {}

    while len(unique) < page_size:
        batch_size = page_size - len(unique)
        meals = run_concurrently(lambda _: source.get_random_meal(), list(range(batch_size)), _worker_count(source))
        if not meals:
            logger.warning("Random sampling returned nothing, stopping at %d recipes", len(unique))
            break
        for meal in meals:
            meal_id = meal.get("idMeal")
            if meal_id is not None and str(meal_id) not in unique:
                unique[str(meal_id)] = meal

    return list(unique.values())


def _search_all_terms(terms: List[str], source: BaseRecipeSource) -> List[Recipe]:
    summaries = source.get_meals_by_ingredient(terms[0])
    detailed = hydrate_meals(summaries, MULTI_TERM_HYDRATION_LIMIT, source)
    return [meal for meal in detailed if matches_all_terms(meal, terms)]


def _fetch_candidates(selection: FilterSelection, page_size: int, source: BaseRecipeSource) -> List[Recipe]:
    terms = parse_search_terms(selection.search_term)

    if len(terms) > 1:
        logger.info("Strategy: multi-term search %r", terms)
        return _search_all_terms(terms, source)
    if terms:
        query = selection.search_term.strip(" ,")
        logger.info("Strategy: name search %r", query)
        return source.search_meals_by_name(query)
    if selection.category:
        logger.info("Strategy: category %r", selection.category)
        return hydrate_meals(source.get_meals_by_category(selection.category), HYDRATION_LIMIT, source)
    if selection.cuisine:
        logger.info("Strategy: cuisine %r", selection.cuisine)
        return hydrate_meals(source.get_meals_by_area(selection.cuisine), HYDRATION_LIMIT, source)
    if selection.ingredient:
        logger.info("Strategy: ingredient %r", selection.ingredient)
        return hydrate_meals(source.get_meals_by_ingredient(selection.ingredient), HYDRATION_LIMIT, source)

    logger.info("Strategy: random sampling for %d recipes", page_size)
    return collect_random_meals(page_size, source)


def fetch_recipes(
    selection: Optional[FilterSelection] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    source: Optional[BaseRecipeSource] = None,
) -> RecipePage:
    """
    Build one page of recipes for a filter selection.

    Args:
        selection: Category/cuisine/ingredient/search selection (None means no filters)
        page_size: Maximum number of recipes on the page (default: 15; values below 1 count as 1)
        source: Recipe source; defaults to the process-wide MealDB connector

    Returns:
        RecipePage with at most page_size recipes with unique ids, and
        has_more set when the unique pre-truncation count reached page_size.
        Unexpected failures yield an empty page with has_more=False.

    Examples:
        >>> page = fetch_recipes(FilterSelection(category="Seafood"))
        >>> len(page.recipes) <= 15
        True
    """
    selection = selection or FilterSelection()
    page_size = _clamp_page_size(page_size)
    source = _resolve_source(source)
    logger.info("Recipe request: selection=%r page_size=%d", selection.model_dump(exclude_none=True), page_size)

    try:
        candidates = _fetch_candidates(selection, page_size, source)
        if selection.dimension_count() > 1:
            candidates = apply_cross_filters(candidates, selection)
        unique = dedupe_by_id(candidates)
    except Exception as e:
        logger.error("Unable to load recipes for %r: %s", selection, e, exc_info=True)
        return RecipePage(recipes=[], has_more=False)

    logger.info("Recipe response: %d unique candidates, returning %d", len(unique), min(len(unique), page_size))
    return RecipePage(recipes=unique[:page_size], has_more=len(unique) >= page_size)


def load_more_recipes(
    existing: List[Recipe],
    page_size: int = DEFAULT_PAGE_SIZE,
    source: Optional[BaseRecipeSource] = None,
) -> RecipePage:
    """
    Append page_size random recipes to an already shown list.

    # NOTE: Active filters are not applied here. Load-more always appends
        unfiltered random recipes, even when the shown list came from a
        category or search. The existing list is kept and re-deduplicated.

    Returns:
        RecipePage holding existing plus new recipes (unique by id), with
        has_more set iff the random batch came back complete.
    """
    page_size = _clamp_page_size(page_size)
    source = _resolve_source(source)
    try:
        meals = run_concurrently(lambda _: source.get_random_meal(), list(range(page_size)), _worker_count(source))
    except Exception as e:
        logger.error("Unable to load more recipes: %s", e, exc_info=True)
        return RecipePage(recipes=dedupe_by_id(list(existing)), has_more=False)

    combined = dedupe_by_id(list(existing) + meals)
    logger.info("Load more: %d random recipes fetched, %d recipes total", len(meals), len(combined))
    return RecipePage(recipes=combined, has_more=len(meals) == page_size)


def find_recipe_by_ingredient(ingredient: str, source: Optional[BaseRecipeSource] = None) -> Optional[Recipe]:
    """
    Return the full record of the first recipe using an ingredient.

    Falls back to the summary record when the detail lookup finds nothing,
    and returns None when no recipe uses the ingredient.
    """
    ingredient = (ingredient or "").strip()
    if not ingredient:
        return None
    source = _resolve_source(source)
    summaries = source.get_meals_by_ingredient(ingredient)
    if not summaries:
        return None
    first = summaries[0]
    return source.get_meal_by_id(str(first.get("idMeal"))) or first


class RequestTracker:
    """
    Monotonic request counter for "most recent request wins" sequencing.

    The engine does not cancel superseded work. A caller issues a token before
    each fetch_recipes() call and drops the result unless the token is still
    the latest one issued.

    Example:
        tracker = RequestTracker()
        token = tracker.issue()
        page = fetch_recipes(selection)
        if tracker.is_latest(token):
            show(page)
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest = 0

    def issue(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def is_latest(self, token: int) -> bool:
        with self._lock:
            return token == self._latest
