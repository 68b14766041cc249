"""
Pydantic schemas for FastAPI response models.

This module defines the models used for response serialization and automatic
API documentation. Recipe records are passed through as plain dictionaries in
MealDB field naming; the schemas only add the envelope around them.

The schemas include:
- RecipeListResponse: A page of recipes with a has_more hint
- MealListResponse: Upstream lists (random, featured, categories, areas)
- RecipeDetailResponse: A full recipe plus derived ingredient lines, video id and tags
- FilterOptionsResponse: Static option lists for filter dropdowns
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from recipe_finder.models import IngredientLine


class RecipeListResponse(BaseModel):
    """Response model for the recipe listing endpoint."""
    recipes: List[Dict[str, Any]] = Field(default_factory=list, description="Recipe records, unique by idMeal")
    count: int = Field(..., ge=0, description="Number of recipes in this page")
    has_more: bool = Field(..., description="True when the page was full (heuristic)")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "recipes": [{"idMeal": "52959", "strMeal": "Baked salmon with fennel & tomatoes"}],
                "count": 1,
                "has_more": False,
            }
        }
    )


class MealListResponse(BaseModel):
    """Response model for plain upstream lists."""
    items: List[Dict[str, Any]] = Field(default_factory=list)
    count: int = Field(..., ge=0)


class RecipeDetailResponse(BaseModel):
    """Response model for a single recipe."""
    recipe: Dict[str, Any] = Field(..., description="Full MealDB record")
    ingredients: List[IngredientLine] = Field(default_factory=list, description="Non-blank ingredient slots")
    youtube_id: Optional[str] = Field(None, description="Video id parsed from strYoutube")
    tags: List[str] = Field(default_factory=list, description="strTags split on commas")


class FilterOptionsResponse(BaseModel):
    """Static option lists for category, cuisine and ingredient filters."""
    categories: List[str]
    areas: List[str]
    ingredients: List[str]
