"""
Base recipe source abstract class.

This module defines the abstract base class that a recipe source connector must
implement. The aggregation engine in recipe_finder.search only talks to this
interface, so tests can hand it a Mock and a different upstream could be added
without touching the filtering logic.

All query methods must:
- Return plain recipe dictionaries in MealDB field naming (idMeal, strMeal, ...)
- Degrade to [] (lists) or None (single records) instead of raising
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class BaseRecipeSource(ABC):
    """
    Abstract base class for recipe source connectors.

    Attributes:
        source: String identifier for the upstream (e.g., "mealdb")
    """
    source: str

    @abstractmethod
    def search_meals_by_name(self, name: str) -> List[Dict[str, Any]]:
        """Full recipe records whose name matches the query."""
        pass

    @abstractmethod
    def get_meal_by_id(self, meal_id: str) -> Optional[Dict[str, Any]]:
        """Full recipe record for an identifier, bypassing any cache."""
        pass

    @abstractmethod
    def get_random_meal(self) -> Optional[Dict[str, Any]]:
        """One random full recipe record, never cached."""
        pass

    @abstractmethod
    def get_meals_by_category(self, category: str) -> List[Dict[str, Any]]:
        """Summary records (idMeal, strMeal, strMealThumb) in a category."""
        pass

    @abstractmethod
    def get_meals_by_area(self, area: str) -> List[Dict[str, Any]]:
        """Summary records for a cuisine/area."""
        pass

    @abstractmethod
    def get_meals_by_ingredient(self, ingredient: str) -> List[Dict[str, Any]]:
        """Summary records whose main ingredients include the given one."""
        pass
