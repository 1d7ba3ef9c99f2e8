"""
Unit tests for database operations.

Tests CRUD operations with a temporary test database.
"""

import sqlite3
from datetime import datetime

import pytest

from youtrition.data.models import Ingredient, Nutrition, Profile


class TestDatabaseInitialization:
    """Test database initialization."""

    def test_database_creates_tables(self, db):
        with sqlite3.connect(db.db_path) as conn:
            cursor = conn.cursor()
            for table in ("profiles", "recipes", "ingredients"):
                cursor.execute(
                    "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,)
                )
                assert cursor.fetchone() is not None

    def test_init_is_idempotent(self, db):
        """Re-opening an existing database keeps its data."""
        profile_id = db.create_profile(Profile(name="Pablo"))

        reopened = type(db)(db_path=str(db.db_path))

        assert reopened.get_profile(profile_id).name == "Pablo"


class TestProfileOperations:
    """Test profile CRUD operations."""

    def test_create_and_get_profile(self, db, sample_profile):
        profile_id = db.create_profile(sample_profile)

        assert isinstance(profile_id, int)
        loaded = db.get_profile(profile_id)
        assert loaded.name == "Pablo"
        assert loaded.persona == "Athlete"
        assert loaded.dietary_restrictions == ["gluten-free"]
        assert loaded.allergies == ["peanuts"]
        assert loaded.cuisine_preferences == ["Mexican", "Italian"]
        assert loaded.workout_frequency == 5
        assert loaded.workout_intensity == 7

    def test_create_with_explicit_id(self, db):
        profile_id = db.create_profile(Profile(id=42, name="Divjot"))

        assert profile_id == 42
        assert db.get_profile(42).name == "Divjot"

    def test_get_missing_profile(self, db):
        assert db.get_profile(999) is None

    def test_update_profile(self, db, saved_profile):
        saved_profile.allergies = ["shellfish"]
        saved_profile.workout_intensity = 9

        assert db.update_profile(saved_profile) is True

        loaded = db.get_profile(saved_profile.id)
        assert loaded.allergies == ["shellfish"]
        assert loaded.workout_intensity == 9

    def test_update_missing_profile(self, db):
        assert db.update_profile(Profile(id=123, name="Ghost")) is False


class TestPantryOperations:
    """Test pantry item operations."""

    def test_add_and_list_pantry(self, db, saved_profile):
        expires = datetime(2026, 11, 1, 12, 0, 0)
        db.add_pantry_item(saved_profile.id, Ingredient(name="Banana", quantity=2, unit="pieces", expires_at=expires))
        db.add_pantry_item(saved_profile.id, Ingredient(name="milk", condition="fresh"))

        items = db.get_pantry_items(saved_profile.id)

        assert [i.name for i in items] == ["Banana", "milk"]
        assert items[0].quantity == 2
        assert items[0].unit == "pieces"
        assert items[0].expires_at == expires
        assert items[1].condition == "fresh"
        assert all(i.recipe_id is None for i in items)
        assert db.get_pantry_names(saved_profile.id) == ["Banana", "milk"]

    def test_pantry_item_never_linked_to_recipe(self, db, saved_profile):
        """A recipe_id on the input is ignored for pantry items."""
        item = Ingredient(name="rice", recipe_id=77)

        db.add_pantry_item(saved_profile.id, item)

        assert item.recipe_id is None
        assert db.get_pantry_items(saved_profile.id)[0].is_pantry_item

    def test_recipe_ingredients_excluded_from_pantry(self, db, saved_profile, smoothie_recipe):
        db.save_recipe(smoothie_recipe)

        assert db.get_pantry_items(saved_profile.id) == []

    def test_pantry_is_per_profile(self, db, saved_profile):
        other_id = db.create_profile(Profile(name="Divjot"))
        db.add_pantry_item(other_id, Ingredient(name="tofu"))

        assert db.get_pantry_names(saved_profile.id) == []
        assert db.get_pantry_names(other_id) == ["tofu"]

    def test_remove_pantry_item(self, db, saved_profile):
        item_id = db.add_pantry_item(saved_profile.id, Ingredient(name="kale"))

        assert db.remove_pantry_item(saved_profile.id, item_id) is True
        assert db.get_pantry_items(saved_profile.id) == []
        assert db.remove_pantry_item(saved_profile.id, item_id) is False

    def test_remove_does_not_touch_recipe_ingredients(self, db, saved_profile, smoothie_recipe):
        db.save_recipe(smoothie_recipe)
        ingredient_id = smoothie_recipe.ingredients[0].id

        assert db.remove_pantry_item(saved_profile.id, ingredient_id) is False
        assert len(db.get_recipe(smoothie_recipe.id).ingredients) == 3


class TestRecipeOperations:
    """Test recipe operations."""

    def test_save_and_get_recipe(self, db, saved_profile, smoothie_recipe):
        recipe_id = db.save_recipe(smoothie_recipe)

        loaded = db.get_recipe(recipe_id)
        assert loaded.title == "Banana Protein Smoothie"
        assert loaded.profile_id == saved_profile.id
        assert loaded.source == "seed"
        assert loaded.steps == ["Prepare.", "Serve."]
        assert loaded.nutrition == Nutrition(calories=250, protein=20)
        assert loaded.favorite is False

    def test_ingredients_linked_and_ordered(self, db, saved_profile, smoothie_recipe):
        recipe_id = db.save_recipe(smoothie_recipe)

        loaded = db.get_recipe(recipe_id)
        assert loaded.ingredient_names == ["banana", "protein powder", "almond milk"]
        for ing in loaded.ingredients:
            assert ing.recipe_id == recipe_id
            assert ing.profile_id == saved_profile.id

    def test_get_missing_recipe(self, db):
        assert db.get_recipe(999) is None

    def test_recipe_without_nutrition(self, db, curry_recipe):
        recipe_id = db.save_recipe(curry_recipe)

        assert db.get_recipe(recipe_id).nutrition is None

    def test_get_recipes_in_insertion_order(self, db, smoothie_recipe, curry_recipe):
        db.save_recipe(curry_recipe)
        db.save_recipe(smoothie_recipe)

        assert [r.title for r in db.get_recipes()] == ["Spinach Curry", "Banana Protein Smoothie"]

    def test_favorites(self, db, saved_profile, smoothie_recipe, curry_recipe):
        db.save_recipe(smoothie_recipe)
        db.save_recipe(curry_recipe)

        assert db.set_favorite(curry_recipe.id, True) is True
        assert db.get_recipe(curry_recipe.id).favorite is True
        assert [r.title for r in db.get_favorite_recipes(saved_profile.id)] == ["Spinach Curry"]

        db.set_favorite(curry_recipe.id, False)
        assert db.get_favorite_recipes(saved_profile.id) == []

    def test_set_favorite_missing_recipe(self, db):
        assert db.set_favorite(999, True) is False

    def test_clear_all(self, db, saved_profile, smoothie_recipe):
        db.save_recipe(smoothie_recipe)
        db.add_pantry_item(saved_profile.id, Ingredient(name="banana"))

        db.clear_all()

        assert db.get_profile(saved_profile.id) is None
        assert db.get_recipes() == []
        assert db.get_pantry_items(saved_profile.id) == []

    def test_find_recipes_ignores_blank_tags(self, db, curry_recipe):
        db.save_recipe(curry_recipe)

        assert len(db.find_recipes(diet=["  "], allergies=[""])) == 1

    @pytest.mark.parametrize("limit,expected", [(None, 3), (2, 2), (0, 0)])
    def test_find_recipes_limit(self, db, make_recipe, limit, expected):
        for i in range(3):
            db.save_recipe(make_recipe(f"R{i}", ["rice"]))

        assert len(db.find_recipes(limit=limit)) == expected
