"""
Request and result models for the recipe aggregation engine.

Recipe records themselves stay plain dictionaries in MealDB field naming
(idMeal, strMeal, strCategory, strArea, strIngredient1..20, ...): they are an
opaque pass-through from the upstream and are never reshaped by the core.

# NOTE: FilterSelection is the explicit request object handed to
    recipe_finder.search.fetch_recipes(). RecipePage is what comes back.
    Callers are responsible for sequencing requests and discarding stale pages
    (see recipe_finder.search.RequestTracker).
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FilterSelection(BaseModel):
    """
    Independently optional filter dimensions for a recipe listing.

    Blank strings are normalized to None so "category=''" from a form reads
    the same as no category at all.
    """
    category: Optional[str] = Field(None, description="MealDB category, e.g. 'Dessert'")
    cuisine: Optional[str] = Field(None, description="MealDB area, e.g. 'French'")
    ingredient: Optional[str] = Field(None, description="Ingredient name or fragment")
    search_term: Optional[str] = Field(None, description="Free text; commas separate AND-ed terms")

    model_config = ConfigDict(frozen=True)

    @field_validator("category", "cuisine", "ingredient", "search_term", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    def dimension_count(self) -> int:
        """Number of structured dimensions (category, cuisine, ingredient) that are set."""
        return sum(1 for v in (self.category, self.cuisine, self.ingredient) if v)

    def is_empty(self) -> bool:
        return self.dimension_count() == 0 and not self.search_term


class RecipePage(BaseModel):
    """
    One page of recipes with a "has more" hint.

    has_more is a heuristic: it only says the page was full, not that the
    upstream actually holds more matching recipes.
    """
    recipes: List[Dict[str, Any]] = Field(default_factory=list)
    has_more: bool = False

    def ids(self) -> List[str]:
        return [str(r.get("idMeal")) for r in self.recipes]


class IngredientLine(BaseModel):
    """One non-blank ingredient slot of a recipe."""
    name: str
    measure: str = ""
