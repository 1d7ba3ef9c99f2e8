"""
Pytest configuration and shared fixtures.

Fixtures are reusable test setup that can be injected into tests.
"""

import os
import pytest
import tempfile
import shutil

from youtrition.data.database import DatabaseInterface
from youtrition.data.models import Profile, Recipe, Ingredient, Nutrition
from youtrition.llm_provider import LLMProvider


def _make_recipe(title, ingredients, dietary_info="", profile_id=None, cuisine="American"):
    """Build an unsaved recipe from plain ingredient names."""
    return Recipe(
        title=title,
        cuisine=cuisine,
        instructions="Prepare.\nServe.",
        cook_time=10,
        dietary_info=dietary_info,
        profile_id=profile_id,
        source="seed",
        ingredients=[Ingredient(name=name) for name in ingredients],
    )


@pytest.fixture
def make_recipe():
    """
    Factory for unsaved recipes.

    Usage in tests:
        def test_something(db, make_recipe):
            db.save_recipe(make_recipe("Soba", ["buckwheat noodles"]))
    """
    return _make_recipe


@pytest.fixture
def temp_db_dir():
    """
    Create a temporary database directory for testing.

    This fixture is automatically cleaned up after each test.
    """
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def db(temp_db_dir):
    """
    Create a fresh DatabaseInterface for each test.

    Usage in tests:
        def test_something(db):
            db.create_profile(...)
    """
    return DatabaseInterface(db_path=os.path.join(temp_db_dir, "youtrition.db"))


@pytest.fixture
def sample_profile():
    """Sample athlete profile for testing."""
    return Profile(
        name="Pablo",
        persona="Athlete",
        dietary_restrictions=["gluten-free"],
        allergies=["peanuts"],
        cuisine_preferences=["Mexican", "Italian"],
        workout_frequency=5,
        workout_intensity=7,
    )


@pytest.fixture
def saved_profile(db, sample_profile):
    """Sample profile persisted to the test database."""
    db.create_profile(sample_profile)
    return sample_profile


@pytest.fixture
def smoothie_recipe(saved_profile):
    """Recipe A from the banana/milk pantry scenario."""
    recipe = _make_recipe(
        "Banana Protein Smoothie",
        ["banana", "protein powder", "almond milk"],
        dietary_info="Gluten-free, vegetarian",
        profile_id=saved_profile.id,
    )
    recipe.nutrition = Nutrition(calories=250, protein=20)
    return recipe


@pytest.fixture
def curry_recipe(saved_profile):
    """Recipe B from the banana/milk pantry scenario."""
    return _make_recipe(
        "Spinach Curry",
        ["spinach", "curry paste"],
        dietary_info="Vegan, gluten-free",
        profile_id=saved_profile.id,
        cuisine="Thai",
    )


class ScriptedProvider(LLMProvider):
    """
    Provider that answers with canned replies, in order.

    An exception in ``replies`` is raised instead of returned. Every
    request is kept in ``requests`` for assertions.
    """

    def __init__(self, replies):
        self.replies = list(replies)
        self.requests = []

    @property
    def is_null(self) -> bool:
        return False

    def send(self, request):
        self.requests.append(request)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def scripted_provider():
    """
    Factory for providers with canned replies.

    Usage in tests:
        def test_something(scripted_provider):
            provider = scripted_provider('{"title": ...}')
    """
    return lambda *replies: ScriptedProvider(replies)
