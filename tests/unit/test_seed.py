"""
Unit tests for the demo seed data.
"""

import pytest

from youtrition.data.models import Filter, Ingredient
from youtrition.recipes import recommend_recipes
from youtrition.seed import seed_demo


class TestSeedDemo:

    def test_creates_demo_profiles(self, db):
        ids = seed_demo(db)

        pablo = db.get_profile(ids["Pablo"])
        divjot = db.get_profile(ids["Divjot"])
        assert pablo.persona == "Athlete"
        assert pablo.cuisine_preferences == ["Mexican", "Italian"]
        assert divjot.persona == "Vegetarian"
        assert divjot.allergies == ["peanuts"]

    def test_pantry_and_recipe(self, db):
        ids = seed_demo(db)

        pantry = db.get_pantry_items(ids["Pablo"])
        assert [i.name for i in pantry] == ["Banana"]
        assert pantry[0].expires_at is not None

        recipes = db.get_recipes()
        assert [r.title for r in recipes] == ["Banana Protein Smoothie"]
        assert recipes[0].source == "seed"

    def test_reseeding_replaces_data(self, db, saved_profile):
        db.add_pantry_item(saved_profile.id, Ingredient(name="kale"))

        seed_demo(db)
        ids = seed_demo(db)

        assert len(db.get_recipes()) == 1
        assert db.get_profile(saved_profile.id) is None
        assert db.get_pantry_names(ids["Pablo"]) == ["Banana"]

    def test_banana_scores_one_third(self, db):
        ids = seed_demo(db)

        ranked = recommend_recipes(db, ids["Pablo"], Filter(diet=["gluten-free"]))

        assert len(ranked) == 1
        assert ranked[0].match == pytest.approx(100 / 3)
        assert ranked[0].to_dict()["match"] == 33.3

    def test_empty_pantry_scores_zero(self, db):
        ids = seed_demo(db)

        ranked = recommend_recipes(db, ids["Divjot"], Filter())

        assert [s.match for s in ranked] == [0.0]
