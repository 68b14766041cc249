"""
Plain function interface over the process-wide MealDB connector.

UI code (pages, the FastAPI app) calls these functions instead of holding a
connector itself. Every function degrades to [] or None on upstream failure.

    from recipe_finder import mealdb

    meals = mealdb.search_meals_by_name("Arrabiata")
    page = mealdb.fetch_recipes(FilterSelection(category="Seafood"), 15)
"""

from typing import Any, Dict, List, Optional

from recipe_finder.connectors.mealdb_connector import get_default_connector
from recipe_finder.search import fetch_recipes, find_recipe_by_ingredient, load_more_recipes  # noqa: F401
from recipe_finder.utils.ingredients import (  # noqa: F401
    extract_ingredients,
    get_youtube_id,
    meal_has_ingredient,
    parse_tags,
)


def search_meals_by_name(name: str) -> List[Dict[str, Any]]:
    """Full recipe records whose name matches, [] when nothing matches or the upstream fails."""
    return get_default_connector().search_meals_by_name(name)


def get_meal_by_id(meal_id: str) -> Optional[Dict[str, Any]]:
    """
    Look up the current full record for a recipe id.

    Args:
        meal_id: MealDB idMeal (e.g., "52772")

    Returns:
        Recipe dict, or None when the id is unknown or the upstream fails
    """
    return get_default_connector().get_meal_by_id(meal_id)


def get_meal_by_id_cached(meal_id: str) -> Optional[Dict[str, Any]]:
    """Like get_meal_by_id(), but may return a record up to one cache TTL old."""
    return get_default_connector().get_meal_by_id_cached(meal_id)


def get_random_meal() -> Optional[Dict[str, Any]]:
    """One random full recipe record (never cached), or None."""
    return get_default_connector().get_random_meal()


def get_meals_by_category(category: str) -> List[Dict[str, Any]]:
    """Summary records (idMeal, strMeal, strMealThumb) in a category."""
    return get_default_connector().get_meals_by_category(category)


def get_meals_by_area(area: str) -> List[Dict[str, Any]]:
    """Summary records for a cuisine/area."""
    return get_default_connector().get_meals_by_area(area)


def get_meals_by_ingredient(ingredient: str) -> List[Dict[str, Any]]:
    """Summary records whose main ingredients include the given one."""
    return get_default_connector().get_meals_by_ingredient(ingredient)


def get_categories() -> List[Dict[str, Any]]:
    """Category records from the upstream categories list."""
    return get_default_connector().get_categories()


def get_areas() -> List[Dict[str, Any]]:
    """Area records ({"strArea": ...})."""
    return get_default_connector().get_areas()


def search_meals_by_first_letter(letter: str) -> List[Dict[str, Any]]:
    """Full recipe records whose name starts with the given letter."""
    return get_default_connector().search_meals_by_first_letter(letter)


def get_multiple_random_meals(count: int = 5) -> List[Dict[str, Any]]:
    """
    Fetch up to count random recipes concurrently.

    Args:
        count: Number of draws (default: 5)

    Returns:
        Recipes from the draws that succeeded; duplicates are possible
    """
    return get_default_connector().get_multiple_random_meals(count)


def get_featured_meals() -> List[Dict[str, Any]]:
    """Full records for the fixed featured ids, in id order, skipping misses."""
    return get_default_connector().get_featured_meals()
