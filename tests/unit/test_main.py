"""
Unit tests for the YoutritionAssistant orchestrator and CLI.
"""

import os
import sys

import pytest
from unittest.mock import patch

from youtrition.config import Settings
from youtrition.data.models import Filter, MealPlan
from youtrition.errors import ProfileNotFoundError
from youtrition.llm_provider import NullLLMProvider
from youtrition.main import YoutritionAssistant, main


@pytest.fixture
def assistant(db):
    return YoutritionAssistant(settings=Settings(db_path=db.db_path), db=db, provider=NullLLMProvider())


class TestYoutritionAssistant:

    def test_create_and_get_profile(self, assistant):
        profile = assistant.create_profile({"name": "Sam", "dietaryRestrictions": ["vegan"]})

        assert assistant.get_profile(profile.id).dietary_restrictions == ["vegan"]

    def test_missing_profile_raises(self, assistant):
        with pytest.raises(ProfileNotFoundError):
            assistant.get_profile(404)

    def test_update_profile(self, assistant, saved_profile):
        profile = assistant.update_profile(saved_profile.id, {"name": "Pablo", "allergies": ["shellfish"]})

        assert profile.allergies == ["shellfish"]
        assert profile.created_at == saved_profile.created_at

    def test_update_missing_profile(self, assistant):
        with pytest.raises(ProfileNotFoundError):
            assistant.update_profile(404, {"name": "Ghost"})

    def test_add_to_pantry_skips_nameless_items(self, assistant, saved_profile):
        added = assistant.add_to_pantry(saved_profile.id, [{"name": "milk"}, {"quantity": 2}])

        assert [i.name for i in added] == ["milk"]
        assert [i.name for i in assistant.get_pantry(saved_profile.id)] == ["milk"]

    def test_add_to_pantry_unknown_profile(self, assistant):
        with pytest.raises(ProfileNotFoundError):
            assistant.add_to_pantry(404, [{"name": "milk"}])

    def test_recommend_limit(self, assistant, db, saved_profile, make_recipe):
        for i in range(4):
            db.save_recipe(make_recipe(f"R{i}", ["rice"]))

        assert len(assistant.recommend(saved_profile.id, Filter(), limit=2)) == 2
        assert len(assistant.recommend(saved_profile.id, Filter())) == 4

    def test_profile_filter(self, assistant, saved_profile):
        recipe_filter = assistant.profile_filter(saved_profile.id, Filter(allergies=["shellfish"]))

        assert recipe_filter.diet == ["gluten-free"]
        assert recipe_filter.allergies == ["peanuts", "shellfish"]

    def test_favorite_recipes(self, assistant, db, saved_profile, smoothie_recipe):
        db.save_recipe(smoothie_recipe)
        assistant.set_favorite(smoothie_recipe.id, True)

        assert [r.title for r in assistant.favorite_recipes(saved_profile.id)] == ["Banana Protein Smoothie"]
        with pytest.raises(ProfileNotFoundError):
            assistant.favorite_recipes(404)

    def test_generate_prefers_stored_profile(self, assistant, saved_profile):
        with patch.object(assistant.generator, "generate", return_value=([], None)) as generate:
            assistant.generate_recipes({"id": saved_profile.id, "name": "Someone else"}, MealPlan.from_dict({}))

        profile = generate.call_args.args[0]
        assert profile.name == "Pablo"
        assert profile.allergies == ["peanuts"]

    def test_generate_with_unsaved_profile(self, assistant):
        recipes, note = assistant.generate_recipes({"name": "Guest", "persona": "Regular"}, MealPlan.from_dict({}))

        assert len(recipes) == 3
        assert note is not None


class TestCLI:

    def run_cli(self, *args):
        with patch.object(sys, "argv", ["youtrition", *args]):
            main()

    def test_seed_then_recommend(self, temp_db_dir, capsys, monkeypatch):
        monkeypatch.setenv("USE_NULL_LLM", "true")
        db_path = os.path.join(temp_db_dir, "cli.db")

        self.run_cli("seed", "--db-path", db_path)
        assert "Seeded profiles" in capsys.readouterr().out

        self.run_cli("recommend", "--profile-id", "1", "--diet", "gluten-free", "--db-path", db_path)
        out = capsys.readouterr().out
        assert "Banana Protein Smoothie" in out
        assert "33.3%" in out

    def test_recommend_with_profile_filter(self, temp_db_dir, capsys, monkeypatch):
        monkeypatch.setenv("USE_NULL_LLM", "true")
        db_path = os.path.join(temp_db_dir, "cli.db")
        self.run_cli("seed", "--db-path", db_path)
        capsys.readouterr()

        # Divjot (ID 2) is vegetarian; the seeded smoothie is only tagged gluten-free
        self.run_cli("recommend", "--profile-id", "2", "--use-profile", "--db-path", db_path)

        assert "No recipes found." in capsys.readouterr().out

    def test_recommend_requires_profile(self, temp_db_dir, capsys):
        self.run_cli("recommend", "--db-path", os.path.join(temp_db_dir, "cli.db"))

        assert "--profile-id required" in capsys.readouterr().out

    def test_matches_with_no_recipes(self, db, saved_profile, capsys, monkeypatch):
        monkeypatch.setenv("USE_NULL_LLM", "true")

        self.run_cli("matches", "--profile-id", str(saved_profile.id), "--db-path", str(db.db_path))

        assert "No recipes found." in capsys.readouterr().out
