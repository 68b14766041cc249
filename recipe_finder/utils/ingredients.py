"""
Recipe record helpers.

This module provides pure helper functions for reading MealDB recipe records.
All functions are stateless and have no side effects (no I/O, no network calls).

# NOTE: MealDB stores ingredients in 20 parallel slots (strIngredient1..20 and
    strMeasure1..20). Blank or missing slots are not part of the ingredient list.
"""

import re
from typing import Any, Dict, Iterator, List, Optional

from recipe_finder.constants import INGREDIENT_SLOTS

_YOUTUBE_ID_RE = re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/)([^&\n?#]+)")


def _ingredient_slots(meal: Dict[str, Any]) -> Iterator[str]:
    """Yield the non-blank ingredient names of a recipe, in slot order."""
    for i in range(1, INGREDIENT_SLOTS + 1):
        ingredient = meal.get(f"strIngredient{i}")
        if ingredient and ingredient.strip():
            yield ingredient


def extract_ingredients(meal: Dict[str, Any]) -> List[Dict[str, str]]:
    """
    Extract ingredients and measurements from a recipe record.

    Args:
        meal: Recipe dictionary from the MealDB API

    Returns:
        List of {"name": ..., "measure": ...} dictionaries in slot order.
        A missing measure becomes an empty string.

    Examples:
        >>> extract_ingredients({"strIngredient1": "Eggs", "strMeasure1": "2"})
        [{'name': 'Eggs', 'measure': '2'}]
        >>> extract_ingredients({"strIngredient1": "  ", "strMeasure1": "1 tbs"})
        []
    """
    ingredients: List[Dict[str, str]] = []
    for i in range(1, INGREDIENT_SLOTS + 1):
        ingredient = meal.get(f"strIngredient{i}")
        if ingredient and ingredient.strip():
            ingredients.append({
                "name": ingredient,
                "measure": meal.get(f"strMeasure{i}") or "",
            })
    return ingredients


def meal_has_ingredient(meal: Dict[str, Any], ingredient: str) -> bool:
    """
    Check whether any ingredient slot contains the given substring.

    Matching is case-insensitive, so "tom" matches "Tomatoes".

    Args:
        meal: Recipe dictionary from the MealDB API
        ingredient: Ingredient name or fragment to look for

    Returns:
        True if at least one non-blank slot contains the fragment
    """
    needle = ingredient.lower()
    return any(needle in slot.lower() for slot in _ingredient_slots(meal))


def parse_search_terms(search_term: Optional[str]) -> List[str]:
    """
    Split a comma-separated search string into lowercase terms.

    Empty fragments are dropped, so "chicken, , garlic," yields two terms.
    """
    if not search_term:
        return []
    return [term.strip().lower() for term in search_term.split(",") if term.strip()]


def matches_all_terms(meal: Dict[str, Any], terms: List[str]) -> bool:
    """
    Check that every term appears in the recipe name or in some ingredient slot.

    AND across terms, OR across the searchable text of one recipe. All
    comparisons are case-insensitive substring matches.
    """
    name = (meal.get("strMeal") or "").lower()
    ingredients = [slot.lower() for slot in _ingredient_slots(meal)]
    for term in terms:
        needle = term.lower()
        if needle in name:
            continue
        if not any(needle in slot for slot in ingredients):
            return False
    return True


def get_youtube_id(url: Optional[str]) -> Optional[str]:
    """
    Extract the video id from a YouTube URL.

    Examples:
        >>> get_youtube_id("https://www.youtube.com/watch?v=1IszT_guI08")
        '1IszT_guI08'
        >>> get_youtube_id("https://youtu.be/abc123?t=10")
        'abc123'
        >>> get_youtube_id("https://example.com/video") is None
        True
    """
    if not url:
        return None
    match = _YOUTUBE_ID_RE.search(url)
    return match.group(1) if match else None


def parse_tags(meal: Dict[str, Any]) -> List[str]:
    """Split the comma-separated strTags field into a list of tags."""
    raw = meal.get("strTags") or ""
    return [tag.strip() for tag in raw.split(",") if tag.strip()]
