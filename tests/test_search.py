"""
Tests for the recipe aggregation engine.

This module tests fetch_recipes and its helpers against a mocked recipe source
(and, for the end-to-end case, a MealDBConnector over a mocked session).
It covers strategy priority, cross-filtering, multi-term search, dedup,
pagination, random sampling convergence and the load-more behavior.
"""

import threading
from typing import Any, Dict, List
from unittest.mock import Mock, patch

import pytest

from recipe_finder.connectors.base import BaseRecipeSource
from recipe_finder.connectors.mealdb_connector import MealDBConnector
from recipe_finder.models import FilterSelection
from recipe_finder.search import (
    RequestTracker,
    apply_cross_filters,
    collect_random_meals,
    dedupe_by_id,
    fetch_recipes,
    find_recipe_by_ingredient,
    hydrate_meals,
    load_more_recipes,
)


def _meal(meal_id: str, name: str = "", category: str = "", area: str = "", ingredients: List[str] = ()) -> Dict[str, Any]:
    record = {
        "idMeal": meal_id,
        "strMeal": name or f"Meal {meal_id}",
        "strCategory": category,
        "strArea": area,
    }
    for i, ingredient in enumerate(ingredients, start=1):
        record[f"strIngredient{i}"] = ingredient
    return record


def _summary(meal_id: str) -> Dict[str, Any]:
    return {"idMeal": meal_id, "strMeal": f"Meal {meal_id}", "strMealThumb": ""}


def _source(details: Dict[str, Dict[str, Any]] = None) -> Mock:
    """Mock recipe source whose lookups read from a dict of full records."""
    details = details or {}
    source = Mock(spec=BaseRecipeSource)
    source.get_meal_by_id.side_effect = lambda meal_id: details.get(meal_id)
    source.search_meals_by_name.return_value = []
    source.get_meals_by_category.return_value = []
    source.get_meals_by_area.return_value = []
    source.get_meals_by_ingredient.return_value = []
    source.get_random_meal.return_value = None
    return source


class TestDedupe:
    """Test cases for dedupe_by_id."""

    def test_overlapping_batches_merge_to_unique_ids(self):
        """Test that ["1","2"] and ["2","3"] merge to exactly {"1","2","3"}."""
        merged = dedupe_by_id([_meal("1"), _meal("2")] + [_meal("2"), _meal("3")])
        assert [m["idMeal"] for m in merged] == ["1", "2", "3"]

    def test_drops_records_without_id(self):
        assert dedupe_by_id([{"strMeal": "no id"}, None, _meal("1")]) == [_meal("1")]


class TestStrategySelection:
    """Test cases for which upstream query drives the result."""

    def test_single_term_search_uses_name_search_only(self):
        """Test that a single search term delegates to name search with no ingredient fallback."""
        source = _source()
        source.search_meals_by_name.return_value = [_meal("1", "Arrabiata")]

        page = fetch_recipes(FilterSelection(search_term="Arrabiata"), source=source)

        source.search_meals_by_name.assert_called_once_with("Arrabiata")
        source.get_meals_by_ingredient.assert_not_called()
        assert page.ids() == ["1"]

    def test_search_takes_priority_over_category(self):
        """Test that a search term wins over a selected category as the fetch source."""
        source = _source()
        fetch_recipes(FilterSelection(search_term="pie", category="Dessert"), source=source)

        source.search_meals_by_name.assert_called_once_with("pie")
        source.get_meals_by_category.assert_not_called()

    def test_category_hydrates_at_most_fifty(self):
        """Test that category candidates are hydrated up to 50 lookups."""
        summaries = [_summary(str(i)) for i in range(80)]
        details = {str(i): _meal(str(i), category="Beef") for i in range(80)}
        source = _source(details)
        source.get_meals_by_category.return_value = summaries

        page = fetch_recipes(FilterSelection(category="Beef"), page_size=100, source=source)

        assert source.get_meal_by_id.call_count == 50
        assert len(page.recipes) == 50
        assert page.has_more is False

    def test_category_before_cuisine_before_ingredient(self):
        """Test the priority order of the structured dimensions."""
        source = _source()
        fetch_recipes(FilterSelection(cuisine="French", ingredient="egg"), source=source)

        source.get_meals_by_area.assert_called_once_with("French")
        source.get_meals_by_ingredient.assert_not_called()

    def test_ingredient_strategy(self):
        source = _source({"9": _meal("9", ingredients=["Eggs"])})
        source.get_meals_by_ingredient.return_value = [_summary("9")]

        page = fetch_recipes(FilterSelection(ingredient="Eggs"), source=source)
        assert page.ids() == ["9"]

    def test_blank_fields_count_as_unset(self):
        """Test that empty strings from a form do not select a strategy."""
        selection = FilterSelection(category="", cuisine="  ", ingredient=None, search_term=" ")
        assert selection.is_empty()

    def test_failed_hydration_lookups_are_dropped(self):
        """Test that lookups returning None are dropped without failing the batch."""
        source = _source({"1": _meal("1"), "3": _meal("3")})
        source.get_meals_by_area.return_value = [_summary("1"), _summary("2"), _summary("3")]

        page = fetch_recipes(FilterSelection(cuisine="Thai"), source=source)
        assert sorted(page.ids()) == ["1", "3"]


class TestCrossFilters:
    """Test cases for AND-ing multiple selected dimensions."""

    def test_category_and_cuisine_both_enforced(self):
        """Test that every result is a French dessert when both are selected."""
        details = {
            "1": _meal("1", category="Dessert", area="French"),
            "2": _meal("2", category="Dessert", area="British"),
            "3": _meal("3", category="Dessert", area="French"),
        }
        source = _source(details)
        source.get_meals_by_category.return_value = [_summary(i) for i in details]

        page = fetch_recipes(FilterSelection(category="Dessert", cuisine="French"), source=source)

        assert sorted(page.ids()) == ["1", "3"]
        assert all(r["strCategory"] == "Dessert" and r["strArea"] == "French" for r in page.recipes)

    def test_ingredient_cross_filter_is_substring(self):
        """Test that the ingredient dimension matches any slot by substring."""
        meals = [
            _meal("1", category="Beef", ingredients=["Beef", "Red Onions"]),
            _meal("2", category="Beef", ingredients=["Beef", "Carrots"]),
        ]
        selection = FilterSelection(category="Beef", ingredient="onion")
        assert [m["idMeal"] for m in apply_cross_filters(meals, selection)] == ["1"]

    def test_single_dimension_is_not_post_filtered(self):
        """Test that a single selected dimension trusts the upstream filter."""
        source = _source({"1": _meal("1", category="Something else")})
        source.get_meals_by_category.return_value = [_summary("1")]

        page = fetch_recipes(FilterSelection(category="Seafood"), source=source)
        assert page.ids() == ["1"]

    def test_post_filter_applies_to_search_strategy(self):
        """Test that cross filters run even when search chose the candidates."""
        source = _source()
        source.search_meals_by_name.return_value = [
            _meal("1", category="Dessert", area="French"),
            _meal("2", category="Dessert", area="Italian"),
        ]
        selection = FilterSelection(search_term="tart", category="Dessert", cuisine="French")

        assert fetch_recipes(selection, source=source).ids() == ["1"]


class TestMultiTermSearch:
    """Test cases for comma-separated search terms."""

    def test_all_terms_must_appear(self):
        """Test that 'chicken, garlic' keeps only recipes containing both terms."""
        details = {
            "1": _meal("1", "Garlic Chicken", ingredients=["Chicken"]),
            "2": _meal("2", "Chicken Curry", ingredients=["Chicken", "Garlic Clove"]),
            "3": _meal("3", "Chicken Salad", ingredients=["Chicken", "Lettuce"]),
        }
        source = _source(details)
        source.get_meals_by_ingredient.return_value = [_summary(i) for i in details]

        page = fetch_recipes(FilterSelection(search_term="chicken, garlic"), source=source)

        source.get_meals_by_ingredient.assert_called_once_with("chicken")
        source.search_meals_by_name.assert_not_called()
        assert sorted(page.ids()) == ["1", "2"]
        for recipe in page.recipes:
            text = " ".join(str(v) for v in recipe.values()).lower()
            assert "chicken" in text and "garlic" in text

    def test_hydrates_up_to_one_hundred(self):
        """Test the larger hydration bound for multi-term search."""
        source = _source()
        source.get_meals_by_ingredient.return_value = [_summary(str(i)) for i in range(150)]

        fetch_recipes(FilterSelection(search_term="rice, egg"), source=source)
        assert source.get_meal_by_id.call_count == 100

    def test_trailing_comma_is_single_term(self):
        """Test that 'chicken,' is treated as a single-term name search."""
        source = _source()
        fetch_recipes(FilterSelection(search_term="chicken,"), source=source)

        source.search_meals_by_name.assert_called_once_with("chicken")


class TestPagination:
    """Test cases for truncation and the has_more heuristic."""

    def test_truncates_and_flags_full_page(self):
        source = _source()
        source.search_meals_by_name.return_value = [_meal(str(i)) for i in range(20)]

        page = fetch_recipes(FilterSelection(search_term="a"), page_size=15, source=source)
        assert len(page.recipes) == 15
        assert page.has_more is True

    def test_exactly_page_size_counts_as_full(self):
        source = _source()
        source.search_meals_by_name.return_value = [_meal(str(i)) for i in range(15)]

        assert fetch_recipes(FilterSelection(search_term="a"), source=source).has_more is True

    def test_short_page_has_no_more(self):
        source = _source()
        source.search_meals_by_name.return_value = [_meal("1"), _meal("1"), _meal("2")]

        page = fetch_recipes(FilterSelection(search_term="a"), source=source)
        assert page.ids() == ["1", "2"]
        assert page.has_more is False

    def test_unexpected_error_yields_empty_page(self):
        """Test that an exception inside the engine degrades to an empty page."""
        source = _source()
        source.search_meals_by_name.side_effect = RuntimeError("boom")

        page = fetch_recipes(FilterSelection(search_term="a"), source=source)
        assert page.recipes == []
        assert page.has_more is False

    @pytest.mark.parametrize("page_size", [0, -5])
    def test_page_size_below_one_counts_as_one(self, page_size):
        """Test that a non-positive page size yields one recipe, not an empty or tail slice."""
        source = _source()
        source.search_meals_by_name.return_value = [_meal(str(i)) for i in range(10)]

        page = fetch_recipes(FilterSelection(search_term="a"), page_size=page_size, source=source)
        assert page.ids() == ["0"]
        assert page.has_more is True


class TestRandomSampling:
    """Test cases for the no-selection random strategy."""

    def test_terminates_with_page_size_unique_despite_duplicates(self):
        """Test that sampling converges even when every id is drawn twice."""
        lock = threading.Lock()
        counter = {"n": 0}

        def draw():
            with lock:
                n = counter["n"]
                counter["n"] += 1
            return _meal(str(n // 2))

        source = _source()
        source.get_random_meal.side_effect = draw

        page = fetch_recipes(FilterSelection(), page_size=15, source=source)

        assert len(page.recipes) == 15
        assert len(set(page.ids())) == 15
        assert page.has_more is True
        assert source.get_random_meal.call_count > 15

    def test_stops_when_all_draws_fail(self):
        """Test that a round with no successful draws ends sampling."""
        source = _source()
        source.get_random_meal.return_value = None

        assert collect_random_meals(15, source) == []
        assert source.get_random_meal.call_count == 15

    def test_uses_default_connector_when_no_source(self):
        """Test that the process-wide connector is used when none is passed."""
        source = _source()
        source.get_random_meal.return_value = None
        with patch("recipe_finder.search.get_default_connector", return_value=source):
            page = fetch_recipes()
        assert page.recipes == []
        assert source.get_random_meal.called


class TestLoadMore:
    """Test cases for load_more_recipes."""

    def test_appends_and_dedupes(self):
        source = _source()
        draws = iter([_meal("2"), _meal("3"), _meal("4")])
        lock = threading.Lock()

        def draw():
            with lock:
                return next(draws)

        source.get_random_meal.side_effect = draw

        page = load_more_recipes([_meal("1"), _meal("2")], page_size=3, source=source)

        assert sorted(page.ids()) == ["1", "2", "3", "4"]
        assert page.ids()[:2] == ["1", "2"]
        assert page.has_more is True

    def test_incomplete_batch_has_no_more(self):
        source = _source()
        source.get_random_meal.return_value = None

        page = load_more_recipes([_meal("1")], page_size=3, source=source)
        assert page.ids() == ["1"]
        assert page.has_more is False

    def test_ignores_active_filters(self):
        """Document current behavior: load-more appends unfiltered random recipes."""
        details = {"1": _meal("1", category="Seafood")}
        source = _source(details)
        source.get_meals_by_category.return_value = [_summary("1")]
        source.get_random_meal.return_value = _meal("99", category="Dessert")

        first = fetch_recipes(FilterSelection(category="Seafood"), source=source)
        more = load_more_recipes(first.recipes, page_size=1, source=source)

        assert {r["strCategory"] for r in more.recipes} == {"Seafood", "Dessert"}


class TestHelpers:
    """Test cases for hydration, ingredient finder and request sequencing."""

    def test_hydrate_uses_source_worker_count(self):
        """Test that batch lookups honor the connector's max_workers."""
        connector = MealDBConnector(session=Mock(), sleep=Mock(), max_workers=4)
        with patch("recipe_finder.search.run_concurrently", return_value=[]) as mock_run:
            hydrate_meals([_summary("1"), _summary("2")], 50, connector)
            load_more_recipes([], 3, source=connector)

        assert [c.args[2] for c in mock_run.call_args_list] == [4, 4]

    def test_hydrate_default_worker_count_for_plain_source(self):
        with patch("recipe_finder.search.run_concurrently", return_value=[]) as mock_run:
            hydrate_meals([_summary("1")], 50, _source())
        assert mock_run.call_args.args[2] == 16

    def test_dedupe_drops_non_records(self):
        assert dedupe_by_id(["I", _meal("1"), 7]) == [_meal("1")]

    def test_hydrate_skips_summaries_without_id(self):
        source = _source({"1": _meal("1")})
        assert hydrate_meals([{"strMeal": "x"}, _summary("1")], 50, source) == [_meal("1")]

    def test_find_recipe_by_ingredient_prefers_full_record(self):
        source = _source({"5": _meal("5", "Full")})
        source.get_meals_by_ingredient.return_value = [_summary("5"), _summary("6")]

        assert find_recipe_by_ingredient(" salmon ", source)["strMeal"] == "Full"
        source.get_meals_by_ingredient.assert_called_once_with("salmon")

    def test_find_recipe_by_ingredient_falls_back_to_summary(self):
        source = _source()
        source.get_meals_by_ingredient.return_value = [_summary("5")]

        assert find_recipe_by_ingredient("salmon", source) == _summary("5")

    def test_find_recipe_by_ingredient_none(self):
        source = _source()
        assert find_recipe_by_ingredient("unobtainium", source) is None
        assert find_recipe_by_ingredient("   ", source) is None

    def test_request_tracker_latest_wins(self):
        """Test that only the most recently issued token is current."""
        tracker = RequestTracker()
        first = tracker.issue()
        second = tracker.issue()

        assert tracker.is_latest(second) is True
        assert tracker.is_latest(first) is False


class TestEndToEnd:
    """Test cases running the engine over a MealDBConnector with a mocked session."""

    def test_seafood_category_returns_full_page(self):
        """Test that 20 distinct seafood recipes upstream yield 15 results and has_more."""
        seafood = {str(100 + i): _meal(str(100 + i), category="Seafood") for i in range(20)}

        def get(url, params=None, timeout=None):
            response = Mock()
            response.status_code = 200
            if url.endswith("filter.php") and params == {"c": "Seafood"}:
                response.json.return_value = {"meals": [_summary(i) for i in seafood]}
            elif url.endswith("lookup.php"):
                record = seafood.get(params["i"])
                response.json.return_value = {"meals": [record] if record else None}
            else:
                response.json.return_value = {"meals": None}
            return response

        session = Mock()
        session.get.side_effect = get
        connector = MealDBConnector(base_url="https://mealdb.test/api", session=session, sleep=Mock())

        page = fetch_recipes(FilterSelection(category="Seafood"), 15, source=connector)

        assert len(page.recipes) == 15
        assert page.has_more is True
        assert len(set(page.ids())) == 15

    def test_malformed_lookup_is_dropped_from_full_page(self):
        """Test that one lookup answering {"meals": "Invalid ID"} costs one recipe, not the page."""
        seafood = {str(100 + i): _meal(str(100 + i), category="Seafood") for i in range(20)}

        def get(url, params=None, timeout=None):
            response = Mock()
            response.status_code = 200
            if url.endswith("filter.php"):
                response.json.return_value = {"meals": [_summary(i) for i in seafood]}
            elif params["i"] == "107":
                response.json.return_value = {"meals": "Invalid ID"}
            else:
                response.json.return_value = {"meals": [seafood[params["i"]]]}
            return response

        session = Mock()
        session.get.side_effect = get
        connector = MealDBConnector(base_url="https://mealdb.test/api", session=session, sleep=Mock())

        page = fetch_recipes(FilterSelection(category="Seafood"), 15, source=connector)

        assert len(page.recipes) == 15
        assert page.has_more is True
        assert "107" not in page.ids()
