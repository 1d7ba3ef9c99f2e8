"""
Unit tests for recommend.py - pantry match scoring.
"""

import pytest

from youtrition.data.models import Ingredient
from youtrition.recommend import score_recipe


class TestScoreRecipe:
    """Tests for score_recipe()."""

    def test_prefix_match_counts(self):
        """'egg' in the pantry covers 'eggs' in the recipe."""
        assert score_recipe(["egg"], ["eggs"]) == 100

    def test_all_matched_is_100(self):
        assert score_recipe(["rice", "chicken"], ["rice", "chicken breast"]) == 100

    def test_partial_match(self):
        """1 of 3 ingredients owned -> 33.3."""
        score = score_recipe(
            ["banana", "milk"],
            ["banana", "protein powder", "almond milk"],
        )
        assert score == pytest.approx(100 / 3)

    def test_prefix_only_not_substring(self):
        """'milk' does not match 'almond milk' (not a prefix)."""
        assert score_recipe(["milk"], ["almond milk"]) == 0

    def test_case_insensitive(self):
        assert score_recipe(["BANANA"], ["Banana"]) == 100
        assert score_recipe(["banana"], ["BANANAS"]) == 100

    def test_empty_pantry_scores_zero(self):
        assert score_recipe([], ["spinach", "curry paste"]) == 0

    def test_no_ingredients_scores_zero(self):
        """A recipe with no ingredients scores 0 instead of raising."""
        assert score_recipe(["banana"], []) == 0
        assert score_recipe([], []) == 0

    def test_accepts_ingredient_records(self):
        pantry = [Ingredient(name="Spinach")]
        recipe = [Ingredient(name="spinach leaves", recipe_id=1), Ingredient(name="tofu", recipe_id=1)]
        assert score_recipe(pantry, recipe) == 50

    def test_duplicate_pantry_items_count_once(self):
        """Matching is per recipe ingredient, not per pantry item."""
        assert score_recipe(["egg", "egg", "eggs"], ["eggs", "flour"]) == 50

    def test_accepts_generators(self):
        assert score_recipe((n for n in ["egg"]), (n for n in ["eggs"])) == 100

    @pytest.mark.parametrize("pantry,recipe", [
        (["a"], ["apple", "banana", "avocado"]),
        (["x", "y", "z"], ["apple"]),
        ([""], ["anything", "else"]),
        (["tomato", "tom"], ["tomatoes", "tom yum paste", "basil"]),
    ])
    def test_score_within_bounds(self, pantry, recipe):
        assert 0 <= score_recipe(pantry, recipe) <= 100
