#!/usr/bin/env python3
"""
Main orchestrator for Youtrition.

Coordinates persistence, the recommendation pipeline, recipe generation
and fridge scanning behind one object used by the web app and the CLI.
"""

import argparse
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from youtrition.config import Settings
from youtrition.data.database import DatabaseInterface
from youtrition.data.models import Filter, Ingredient, MealPlan, Profile, Recipe, ScoredRecipe
from youtrition.errors import ProfileNotFoundError
from youtrition.fridge_scanner import FridgeItem, ImageInput, scan_fridge
from youtrition.llm_provider import LLMProvider, get_llm_provider
from youtrition.recipe_generator import RecipeGenerator
from youtrition.recipes import get_matching_recipes, recommend_recipes

logger = logging.getLogger(__name__)


class YoutritionAssistant:
    """Main entry point for profile, pantry and recipe operations."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        db: Optional[DatabaseInterface] = None,
        provider: Optional[LLMProvider] = None,
    ):
        """
        Initialize the assistant.

        Args:
            settings: Runtime settings (read from the environment if omitted)
            db: Database interface (built from ``settings.db_path`` if omitted)
            provider: LLM provider (chosen from settings if omitted)
        """
        self.settings = settings or Settings.from_env()
        self.db = db or DatabaseInterface(db_path=self.settings.db_path)
        self.provider = provider or get_llm_provider(
            api_key=self.settings.anthropic_api_key,
            use_null=self.settings.use_null_llm,
        )
        self.generator = RecipeGenerator(
            self.db,
            self.provider,
            model=self.settings.model,
            debug_dir=self.settings.llm_debug_dir,
        )

        logger.info(f"Youtrition assistant initialized (llm={'null' if self.provider.is_null else 'anthropic'})")

    # ==================== Profiles ====================

    def create_profile(self, data: Dict[str, Any]) -> Profile:
        profile = Profile.from_dict(data)
        self.db.create_profile(profile)
        return profile

    def get_profile(self, profile_id: int) -> Profile:
        """Get a profile or raise ProfileNotFoundError."""
        profile = self.db.get_profile(profile_id)
        if profile is None:
            raise ProfileNotFoundError(f"Profile {profile_id} not found")
        return profile

    def update_profile(self, profile_id: int, data: Dict[str, Any]) -> Profile:
        """Replace a profile's settings (setup wizard re-run)."""
        profile = Profile.from_dict({**data, "id": profile_id})
        if not self.db.update_profile(profile):
            raise ProfileNotFoundError(f"Profile {profile_id} not found")
        return self.get_profile(profile_id)

    # ==================== Pantry ====================

    def get_pantry(self, profile_id: int) -> List[Ingredient]:
        return self.db.get_pantry_items(profile_id)

    def add_to_pantry(self, profile_id: int, items: Sequence[Dict[str, Any]]) -> List[Ingredient]:
        """Add items (dicts with at least a name) to a profile's pantry."""
        self.get_profile(profile_id)
        ingredients = [Ingredient.from_dict(item) for item in items if item.get("name")]
        self.db.add_pantry_items(profile_id, ingredients)
        return ingredients

    def scan_fridge(self, images: Sequence[ImageInput]) -> List[FridgeItem]:
        return scan_fridge(self.provider, images, model=self.settings.model)

    # ==================== Recipes ====================

    def recommend(self, profile_id: int, recipe_filter: Filter, limit: Optional[int] = None) -> List[ScoredRecipe]:
        """Ranked recommendations, truncated to ``limit`` when given."""
        ranked = recommend_recipes(self.db, profile_id, recipe_filter)
        return ranked[:limit] if limit is not None else ranked

    def profile_filter(self, profile_id: int, extra: Optional[Filter] = None) -> Filter:
        """Filter from the profile's saved restrictions and allergies plus ``extra``."""
        return Filter.for_profile(self.get_profile(profile_id), extra)

    def matching_recipes(self, profile_id: int) -> List[ScoredRecipe]:
        return get_matching_recipes(self.db, profile_id)

    def generate_recipes(self, profile_data: Dict[str, Any], plan: MealPlan) -> Tuple[List[Recipe], Optional[str]]:
        """
        Generate three recipes for a meal request.

        A stored profile is preferred over the request body so that
        restrictions saved at setup are always applied.
        """
        profile = None
        if profile_data.get("id") is not None:
            profile = self.db.get_profile(int(profile_data["id"]))
        if profile is None:
            profile = Profile.from_dict(profile_data)

        logger.info(f"[PLAN] Generating recipes for {profile.name} (ID: {profile.id}): {plan}")
        return self.generator.generate(profile, plan)

    def generate_single_recipe(self, cuisine: str, profile_id: Optional[int] = None) -> Recipe:
        return self.generator.generate_single(cuisine, profile_id=profile_id)

    def get_recipe(self, recipe_id: int) -> Optional[Recipe]:
        return self.db.get_recipe(recipe_id)

    def set_favorite(self, recipe_id: int, favorite: bool) -> bool:
        return self.db.set_favorite(recipe_id, favorite)

    def favorite_recipes(self, profile_id: int) -> List[Recipe]:
        self.get_profile(profile_id)
        return self.db.get_favorite_recipes(profile_id)


def _print_ranked(ranked: List[ScoredRecipe]):
    if not ranked:
        print("No recipes found.")
        return
    for position, scored in enumerate(ranked, 1):
        print(f"{position:>2}. {scored.recipe.title:<40} {scored.match:5.1f}%  ({scored.recipe.dietary_info})")


def main():
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Youtrition meal planner")
    parser.add_argument(
        "command",
        choices=["seed", "recommend", "matches"],
        help="Command to run",
    )
    parser.add_argument(
        "--profile-id",
        type=int,
        help="Profile ID for recommendations",
    )
    parser.add_argument(
        "--diet",
        action="append",
        default=[],
        help="Required diet tag (repeatable)",
    )
    parser.add_argument(
        "--allergy",
        action="append",
        default=[],
        help="Excluded allergen (repeatable)",
    )
    parser.add_argument(
        "--use-profile",
        action="store_true",
        help="Also apply the profile's saved restrictions and allergies",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=5,
        help="Number of recommendations to show (default: 5)",
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="Database file (default: $YOUTRITION_DB_PATH or data/youtrition.db)",
    )

    args = parser.parse_args()

    settings = Settings.from_env()
    db = DatabaseInterface(db_path=args.db_path or settings.db_path)

    if args.command == "seed":
        from youtrition.seed import seed_demo
        ids = seed_demo(db)
        print(f"Seeded profiles: {ids}")
        return

    if args.profile_id is None:
        print(f"Error: --profile-id required for '{args.command}' command")
        return

    assistant = YoutritionAssistant(settings=settings, db=db)

    if args.command == "recommend":
        recipe_filter = Filter(diet=args.diet, allergies=args.allergy)
        if args.use_profile:
            recipe_filter = assistant.profile_filter(args.profile_id, recipe_filter)
        _print_ranked(assistant.recommend(args.profile_id, recipe_filter, limit=args.limit))

    elif args.command == "matches":
        _print_ranked(assistant.matching_recipes(args.profile_id))


if __name__ == "__main__":
    main()
