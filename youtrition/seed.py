"""
Demo seed data.

Resets the database and inserts two demo profiles, a pantry item and a
seeded recipe so the recommendation page has something to show.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict

from youtrition.data.database import DatabaseInterface
from youtrition.data.models import Ingredient, Nutrition, Profile, Recipe

logger = logging.getLogger(__name__)


def seed_demo(db: DatabaseInterface) -> Dict[str, int]:
    """
    Clear existing data and insert the demo profiles.

    Returns:
        Mapping of profile name to profile ID
    """
    db.clear_all()

    pablo = Profile(
        name="Pablo",
        persona="Athlete",
        dietary_restrictions=["gluten-free"],
        allergies=[],
        cuisine_preferences=["Mexican", "Italian"],
        workout_frequency=5,
        workout_intensity=7,
    )
    divjot = Profile(
        name="Divjot",
        persona="Vegetarian",
        dietary_restrictions=["vegetarian"],
        allergies=["peanuts"],
        cuisine_preferences=["Indian", "Thai"],
        workout_frequency=3,
        workout_intensity=4,
    )
    db.create_profile(pablo)
    db.create_profile(divjot)

    db.add_pantry_item(pablo.id, Ingredient(
        name="Banana",
        quantity=2,
        unit="pieces",
        expires_at=datetime.now() + timedelta(days=5),
    ))

    db.save_recipe(Recipe(
        title="Banana Protein Smoothie",
        cuisine="American",
        source="seed",
        instructions="Blend banana, protein powder, and almond milk until smooth.",
        cook_time=5,
        dietary_info="Gluten-free",
        nutrition=Nutrition(calories=250, protein=20),
        profile_id=pablo.id,
        ingredients=[
            Ingredient(name="Banana", quantity=1, unit="piece"),
            Ingredient(name="Protein powder", quantity=30, unit="g"),
            Ingredient(name="Almond milk", quantity=250, unit="ml"),
        ],
    ))

    logger.info(f"Seed data created: Pablo (ID {pablo.id}) and Divjot (ID {divjot.id})")
    return {"Pablo": pablo.id, "Divjot": divjot.id}
