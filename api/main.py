"""
FastAPI application for the Recipe Finder API.

This module exposes the recipe core over read-only REST endpoints:
- GET /recipes: Filtered, searched or random recipe page
- GET /recipes/random: Random recipes (raw material for "load more")
- GET /recipes/featured: Fixed featured recipes
- GET /recipes/{meal_id}: Recipe detail with ingredient lines
- GET /categories, GET /areas: Upstream option lists
- GET /filters: Static option lists
- GET /ingredients/{ingredient}/first: First recipe using an ingredient
- GET /health: Health check

Upstream failures never surface as 5xx here: the core degrades them to empty
results before they reach this layer.

Run the API with:
    uvicorn api.main:app --reload
"""

# Import config early to load .env file before any other code accesses environment variables
import api.config  # noqa: F401

import logging
import time
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, status

from api.config import MealDBConfig, build_connector, describe_config
from api.schemas import (
    FilterOptionsResponse,
    MealListResponse,
    RecipeDetailResponse,
    RecipeListResponse,
)
from recipe_finder import mealdb
from recipe_finder.connectors.mealdb_connector import get_default_connector, set_default_connector
from recipe_finder.constants import MEAL_AREAS, MEAL_CATEGORIES, MEAL_INGREDIENTS
from recipe_finder.models import FilterSelection, IngredientLine

logging.basicConfig(
    level=getattr(logging, MealDBConfig.get_log_level(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Track app start time for uptime calculation
_APP_START_TIME = time.time()

set_default_connector(build_connector())

app = FastAPI(
    title="Recipe Finder API",
    description="Read-only recipe discovery backed by TheMealDB",
    version="1.0.0",
    tags_metadata=[
        {"name": "recipes", "description": "Recipe listings, search and detail."},
        {"name": "filters", "description": "Option lists for filter controls."},
        {"name": "health", "description": "Health check and monitoring endpoints."},
    ],
)


@app.get(
    "/recipes",
    response_model=RecipeListResponse,
    tags=["recipes"],
    summary="List recipes matching the selected filters",
    description="Category, cuisine and ingredient are AND-ed. A search term takes priority "
                "over the filters as the fetch source; comma-separated terms must all match. "
                "Without any selection, random recipes are returned.",
)
def list_recipes(
    category: Optional[str] = Query(None, description="MealDB category, e.g. Dessert"),
    cuisine: Optional[str] = Query(None, description="MealDB area, e.g. French"),
    ingredient: Optional[str] = Query(None, description="Ingredient name or fragment"),
    search: Optional[str] = Query(None, description="Recipe name, or comma-separated terms"),
    page_size: Optional[int] = Query(None, ge=1, le=50, description="Recipes per page (default: 15)"),
) -> RecipeListResponse:
    selection = FilterSelection(category=category, cuisine=cuisine, ingredient=ingredient, search_term=search)
    page = mealdb.fetch_recipes(selection, page_size or MealDBConfig.get_page_size())
    return RecipeListResponse(recipes=page.recipes, count=len(page.recipes), has_more=page.has_more)


@app.get("/recipes/random", response_model=MealListResponse, tags=["recipes"])
def random_recipes(count: int = Query(5, ge=1, le=50, description="Number of random draws")) -> MealListResponse:
    meals = mealdb.get_multiple_random_meals(count)
    return MealListResponse(items=meals, count=len(meals))


@app.get("/recipes/featured", response_model=MealListResponse, tags=["recipes"])
def featured_recipes() -> MealListResponse:
    meals = mealdb.get_featured_meals()
    return MealListResponse(items=meals, count=len(meals))


@app.get(
    "/recipes/{meal_id}",
    response_model=RecipeDetailResponse,
    tags=["recipes"],
    summary="Get a recipe by id",
)
def recipe_detail(meal_id: str) -> RecipeDetailResponse:
    """
    Get the current record for a recipe.

    Raises:
        HTTPException 404: If the upstream has no recipe with this id (or is unreachable)
    """
    meal = mealdb.get_meal_by_id(meal_id)
    if meal is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Recipe {meal_id} not found",
        )
    return RecipeDetailResponse(
        recipe=meal,
        ingredients=[IngredientLine(**line) for line in mealdb.extract_ingredients(meal)],
        youtube_id=mealdb.get_youtube_id(meal.get("strYoutube")),
        tags=mealdb.parse_tags(meal),
    )


@app.get("/categories", response_model=MealListResponse, tags=["filters"])
def categories() -> MealListResponse:
    items = mealdb.get_categories()
    return MealListResponse(items=items, count=len(items))


@app.get("/areas", response_model=MealListResponse, tags=["filters"])
def areas() -> MealListResponse:
    items = mealdb.get_areas()
    return MealListResponse(items=items, count=len(items))


@app.get("/filters", response_model=FilterOptionsResponse, tags=["filters"])
def filter_options() -> FilterOptionsResponse:
    return FilterOptionsResponse(
        categories=MEAL_CATEGORIES,
        areas=MEAL_AREAS,
        ingredients=MEAL_INGREDIENTS,
    )


@app.get("/ingredients/{ingredient}/first", response_model=RecipeDetailResponse, tags=["recipes"])
def first_recipe_for_ingredient(ingredient: str) -> RecipeDetailResponse:
    meal = mealdb.find_recipe_by_ingredient(ingredient)
    if meal is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No recipes found for ingredient {ingredient!r}",
        )
    return RecipeDetailResponse(
        recipe=meal,
        ingredients=[IngredientLine(**line) for line in mealdb.extract_ingredients(meal)],
        youtube_id=mealdb.get_youtube_id(meal.get("strYoutube")),
        tags=mealdb.parse_tags(meal),
    )


@app.get("/health", tags=["health"])
def health():
    """Health check with uptime, cache size and effective configuration."""
    return {
        "status": "ok",
        "uptime_seconds": round(time.time() - _APP_START_TIME, 1),
        "cache_entries": get_default_connector().cache.size(),
        "config": describe_config(),
    }


@app.get("/")
def root():
    return {"message": "Recipe Finder API", "docs": "/docs"}
