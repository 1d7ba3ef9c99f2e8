"""
Pantry match scoring.

A recipe ingredient is "owned" when its case-folded name starts with the
case-folded name of some pantry item ("egg" covers "eggs"). The match is a
literal string prefix, not token-aware and not fuzzy.
"""

from typing import Iterable, List, Union

from youtrition.data.models import Ingredient


def _names(items: Iterable[Union[str, Ingredient]]) -> List[str]:
    return [
        (item.name if isinstance(item, Ingredient) else item).casefold()
        for item in items
    ]


def score_recipe(
    pantry: Iterable[Union[str, Ingredient]],
    recipe_ingredients: Iterable[Union[str, Ingredient]],
) -> float:
    """
    Percentage of a recipe's ingredients already in the pantry.

    Args:
        pantry: Pantry item names (or Ingredient records), e.g. ["eggs", "spinach"]
        recipe_ingredients: Recipe ingredient names or Ingredient records

    Returns:
        Score in [0, 100]. A recipe with no ingredients scores 0.
    """
    owned = _names(pantry)
    recipe_names = _names(recipe_ingredients)

    if not recipe_names:
        return 0.0

    matches = [
        name for name in recipe_names
        if any(name.startswith(own) for own in owned)
    ]

    return len(matches) / len(recipe_names) * 100
