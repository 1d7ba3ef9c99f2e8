"""
Recipe filtering and pantry-based recommendation.

Pipeline: pantry names -> filtered candidates -> match score -> sort.
Persistence errors propagate to the caller unchanged.
"""

import logging
from typing import List

from youtrition.data.database import DatabaseInterface, FILTER_LIMIT
from youtrition.data.models import Filter, Recipe, ScoredRecipe
from youtrition.recommend import score_recipe

logger = logging.getLogger(__name__)

# Default number of results for the unfiltered "what can I make" list
MATCHING_LIMIT = 10


def get_filtered_recipes(db: DatabaseInterface, profile_id: int, recipe_filter: Filter) -> List[Recipe]:
    """
    Get up to 50 recipes satisfying a diet/allergy filter.

    ``profile_id`` is accepted for future per-user filtering; candidates
    are currently drawn from every profile's recipes.
    """
    return db.find_recipes(
        diet=recipe_filter.diet,
        allergies=recipe_filter.allergies,
        limit=FILTER_LIMIT,
    )


def _rank(pantry_names: List[str], recipes: List[Recipe]) -> List[ScoredRecipe]:
    scored = [
        ScoredRecipe(recipe=recipe, match=score_recipe(pantry_names, recipe.ingredients))
        for recipe in recipes
    ]
    # sorted() is stable: ties keep the query order
    return sorted(scored, key=lambda s: s.match, reverse=True)


def recommend_recipes(db: DatabaseInterface, profile_id: int, recipe_filter: Filter) -> List[ScoredRecipe]:
    """
    Rank filtered recipes by how much of each the user already owns.

    Args:
        db: Database interface
        profile_id: Profile whose pantry is used for scoring
        recipe_filter: Diet/allergy constraints

    Returns:
        Full ranked list, best match first. Callers truncate.
    """
    pantry_names = db.get_pantry_names(profile_id)
    candidates = get_filtered_recipes(db, profile_id, recipe_filter)

    ranked = _rank(pantry_names, candidates)

    top = ranked[0].match if ranked else 0.0
    logger.info(
        f"[RECOMMEND] profile={profile_id} pantry={len(pantry_names)} "
        f"candidates={len(candidates)} top={top:.1f}"
    )
    return ranked


def get_matching_recipes(db: DatabaseInterface, profile_id: int, limit: int = MATCHING_LIMIT) -> List[ScoredRecipe]:
    """Score every stored recipe against the pantry and return the best ``limit``."""
    pantry_names = db.get_pantry_names(profile_id)
    ranked = _rank(pantry_names, db.get_recipes())
    return ranked[:limit]
