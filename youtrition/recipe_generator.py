"""
LLM recipe generation.

Turns a profile and a meal request into three recipe variations:
- Quick & Easy: under 30 minutes
- Nutritionally Balanced: standard preparation
- Gourmet: more elaborate

Replies are cleaned, validated with pydantic and persisted. Any reply that
cannot be parsed is replaced by a deterministic mock for that variation, so
the caller always gets three recipes.
"""

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError

from youtrition.config import DEFAULT_MODEL
from youtrition.data.database import DatabaseInterface
from youtrition.data.models import Ingredient, MealPlan, Nutrition, Profile, Recipe
from youtrition.errors import RecipeParseError
from youtrition.llm_provider import LLMProvider

logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models
# =============================================================================

class GeneratedIngredient(BaseModel):
    """Ingredient as returned by the LLM."""
    name: str
    quantity: Optional[float] = None
    unit: Optional[str] = None


class GeneratedNutrition(BaseModel):
    calories: float
    protein: float
    carbs: float
    fat: float


class GeneratedRecipe(BaseModel):
    """Full recipe reply for a meal plan request."""
    title: str
    cuisine: str
    instructions: List[str]
    cook_time: int
    dietary_info: str
    ingredients: List[GeneratedIngredient]
    nutrition: Optional[GeneratedNutrition] = None


class SimpleRecipe(BaseModel):
    """Single student-friendly recipe with plain ingredient names."""
    title: str
    cuisine: str
    ingredients: List[str]
    instructions: List[str]
    cook_time: int
    dietary_info: str = ""


@dataclass(frozen=True)
class RecipeVariation:
    focus: str
    time: str


RECIPE_VARIATIONS = (
    RecipeVariation(focus="Quick & Easy", time="under 30 minutes"),
    RecipeVariation(focus="Nutritionally Balanced", time="standard preparation"),
    RecipeVariation(focus="Gourmet", time="more elaborate"),
)

MOCK_NOTE = "Using mock data (no LLM configured or generation failed)"


# =============================================================================
# Prompt Construction
# =============================================================================

FORMATTING_RULES = """
IMPORTANT FORMATTING INSTRUCTIONS:
1. Respond ONLY with valid JSON.
2. Do not include any text, explanations, or markdown outside the JSON.
3. Make sure all property names and string values use DOUBLE QUOTES, not single quotes.
4. Do not include any trailing commas in objects or arrays.
5. All numbers should be numeric values without quotes.
6. Do not include undefined, NaN, or Infinity values.
"""


def build_prompt(profile: Profile, plan: MealPlan, variation: RecipeVariation) -> str:
    """
    Build the recipe request for one variation.

    Workout details are only included for the "Athlete" persona.
    """
    lines = [
        f"Create a {plan.meal_type} recipe that matches these requirements:",
        "",
        "USER PROFILE:",
        f"- Name: {profile.name}",
        f"- Persona: {profile.persona or 'Regular'}",
    ]
    if profile.dietary_restrictions:
        lines.append(f"- Dietary Restrictions: {', '.join(profile.dietary_restrictions)}")
    if profile.allergies:
        lines.append(f"- Allergies: {', '.join(profile.allergies)}")
    if profile.persona == "Athlete":
        frequency = profile.workout_frequency if profile.workout_frequency is not None else "N/A"
        intensity = plan.today_workout if plan.today_workout is not None else "N/A"
        lines.append(f"- Workout Frequency: {frequency} times per week")
        lines.append(f"- Today's Workout Intensity: {intensity}/10")

    lines += [
        "",
        "RECIPE REQUIREMENTS:",
        f"- Cuisine: {plan.cuisine}",
        f"- Meal Type: {plan.meal_type}",
        f"- Target Calories: {plan.calories} kcal",
        f"- Macro Focus: {plan.macro_type}",
        "",
        "RECIPE VARIATION:",
        f"- Style: {variation.focus}",
        f"- Preparation Time: {variation.time}",
        f"- Make this recipe {variation.focus.lower()} while maintaining the core requirements.",
    ]

    if plan.meal_type == "Pre-Workout":
        lines += [
            "",
            "This is a pre-workout meal, so optimize for quick energy and proper digestion before exercise.",
        ]

    example = {
        "title": "Recipe Title",
        "cuisine": plan.cuisine,
        "instructions": ["Step 1 instruction", "Step 2 instruction", "Step 3 instruction"],
        "cook_time": 30,
        "dietary_info": "Brief dietary information",
        "ingredients": [
            {"name": "Ingredient 1", "quantity": 100, "unit": "g"},
            {"name": "Ingredient 2", "quantity": 1, "unit": "cup"},
        ],
        "nutrition": {"calories": plan.calories, "protein": 30, "carbs": 40, "fat": 15},
    }

    lines += [
        "",
        "RESPONSE FORMAT:",
        "You must respond ONLY with a single valid JSON object exactly as shown below:",
        "",
        json.dumps(example, indent=2),
        FORMATTING_RULES,
    ]
    return "\n".join(lines)


# =============================================================================
# Reply Parsing
# =============================================================================

_FENCE_RE = re.compile(r"```(?:json)?")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers from an LLM reply."""
    return _FENCE_RE.sub("", text).strip()


def extract_json_object(text: str) -> dict:
    """
    Pull a JSON object out of an LLM reply.

    Strips code fences, keeps the span from the first ``{`` to the last
    ``}`` and removes trailing commas before parsing.

    Raises:
        RecipeParseError: If no object can be found or parsed
    """
    cleaned = strip_code_fences(text)

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start < 0 or end <= start:
        raise RecipeParseError("Cannot find valid JSON object markers in response")

    cleaned = _TRAILING_COMMA_RE.sub(r"\1", cleaned[start:end + 1])

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        context = cleaned[max(0, e.pos - 30):e.pos + 30]
        logger.error(f"[PLAN] JSON parse error at {e.pos}: ...{context}...")
        raise RecipeParseError(f"Invalid JSON in response: {e.msg}") from e

    if not isinstance(data, dict):
        raise RecipeParseError("Response JSON is not an object")
    return data


def parse_recipe_reply(text: str) -> GeneratedRecipe:
    """Parse and validate a full recipe reply."""
    data = extract_json_object(text)
    try:
        return GeneratedRecipe.model_validate(data)
    except ValidationError as e:
        raise RecipeParseError(f"Recipe failed validation: {e.error_count()} errors") from e


# =============================================================================
# Mock Fallback
# =============================================================================

def mock_recipe(plan: MealPlan, variation: RecipeVariation) -> GeneratedRecipe:
    """Deterministic recipe used when the LLM is unavailable or unusable."""
    if variation.focus == "Quick & Easy":
        title = f"Quick {plan.cuisine} {plan.meal_type}"
        cook_time = 20
        instructions = [
            "Prepare all ingredients by chopping into small pieces for quick cooking.",
            "Heat pan over medium-high heat to reduce cooking time.",
            "Cook ingredients in order of longest cooking time first.",
            "Combine and serve immediately.",
        ]
        ingredients = [
            ("Pre-cut protein", 100, "g"),
            ("Quick-cooking grain", 100, "g"),
            ("Pre-washed vegetables", 150, "g"),
            ("Sauce/seasoning", 30, "ml"),
        ]
    elif variation.focus == "Nutritionally Balanced":
        title = f"Balanced {plan.cuisine} {plan.meal_type}"
        cook_time = 35
        instructions = [
            "Prepare ingredients with focus on preserving nutrients.",
            "Cook protein to appropriate internal temperature.",
            "Steam vegetables to maintain nutritional value.",
            "Combine all components in balanced portions.",
        ]
        ingredients = [
            ("Lean protein", 120, "g"),
            ("Complex carbohydrates", 100, "g"),
            ("Mixed vegetables", 200, "g"),
            ("Healthy fats", 15, "g"),
            ("Herbs and spices", 5, "g"),
        ]
    else:
        title = f"Gourmet {plan.cuisine} {plan.meal_type}"
        cook_time = 50
        instructions = [
            "Prepare mise en place with all ingredients properly measured and prepared.",
            "Focus on layering flavors throughout the cooking process.",
            "Use proper cooking techniques to enhance texture and taste.",
            "Plate with attention to presentation and garnish appropriately.",
        ]
        ingredients = [
            ("Premium protein", 150, "g"),
            ("Specialty grain/starch", 100, "g"),
            ("Seasonal vegetables", 150, "g"),
            ("Gourmet sauce components", 50, "ml"),
            ("Garnishes", 10, "g"),
        ]

    return GeneratedRecipe(
        title=title,
        cuisine=plan.cuisine,
        instructions=instructions,
        cook_time=cook_time,
        dietary_info=f"{plan.macro_type} meal designed for {variation.focus.lower()} preparation",
        ingredients=[
            GeneratedIngredient(name=name, quantity=quantity, unit=unit)
            for name, quantity, unit in ingredients
        ],
        nutrition=GeneratedNutrition(
            calories=plan.calories,
            protein=35 if plan.macro_type == "Protein-Intensive" else 20,
            carbs=70 if plan.macro_type == "Carb-Intensive" else 50,
            fat=15,
        ),
    )


def to_recipe(draft: GeneratedRecipe, profile_id: Optional[int], source: str) -> Recipe:
    """Convert a validated reply into a storable Recipe."""
    nutrition = None
    if draft.nutrition:
        nutrition = Nutrition(**draft.nutrition.model_dump())

    return Recipe(
        title=draft.title,
        cuisine=draft.cuisine,
        instructions="\n".join(draft.instructions),
        cook_time=draft.cook_time,
        dietary_info=draft.dietary_info,
        profile_id=profile_id,
        nutrition=nutrition,
        source=source,
        ingredients=[
            Ingredient(name=ing.name, quantity=ing.quantity, unit=ing.unit)
            for ing in draft.ingredients
        ],
    )


# =============================================================================
# Generator
# =============================================================================

class RecipeGenerator:
    """Generates recipes with an LLM and stores them."""

    def __init__(
        self,
        db: DatabaseInterface,
        provider: LLMProvider,
        model: str = DEFAULT_MODEL,
        debug_dir: Optional[str] = None,
    ):
        self.db = db
        self.provider = provider
        self.model = model
        self.debug_dir = Path(debug_dir) if debug_dir else None

    def generate(self, profile: Profile, plan: MealPlan) -> Tuple[List[Recipe], Optional[str]]:
        """
        Generate and save three recipe variations for a meal request.

        Returns:
            (saved recipes, note). The note is set when mock data was used.
        """
        if self.provider.is_null:
            logger.warning("[PLAN] No LLM configured, serving mock recipes")
            drafts = [(mock_recipe(plan, v), "mock") for v in RECIPE_VARIATIONS]
            return self._save_all(drafts, profile.id), MOCK_NOTE

        drafts = []
        used_mock = False
        for variation in RECIPE_VARIATIONS:
            try:
                drafts.append((self.generate_recipe(profile, plan, variation), "llm"))
            except RecipeParseError as e:
                logger.error(f"[PLAN] {variation.focus} reply unusable, using mock: {e}")
                drafts.append((mock_recipe(plan, variation), "mock"))
                used_mock = True
            except Exception as e:
                logger.error(f"[PLAN] Recipe generation failed: {e}", exc_info=True)
                drafts = [(mock_recipe(plan, v), "mock") for v in RECIPE_VARIATIONS]
                return self._save_all(drafts, profile.id), MOCK_NOTE

        return self._save_all(drafts, profile.id), MOCK_NOTE if used_mock else None

    def generate_recipe(self, profile: Profile, plan: MealPlan, variation: RecipeVariation) -> GeneratedRecipe:
        """
        Ask the LLM for one variation.

        Raises:
            RecipeParseError: If the reply cannot be parsed or validated
        """
        prompt = build_prompt(profile, plan, variation)
        logger.info(f"[PLAN] Calling LLM for {variation.focus} recipe...")

        text = self.provider.ask(
            prompt,
            model=self.model,
            max_tokens=2048,
            temperature=0.3,
            top_k=40,
        )
        logger.debug(f"[PLAN] Raw reply: {text[:150]}...")

        self._dump_debug(variation.focus, prompt, text)
        return parse_recipe_reply(text)

    def generate_single(self, cuisine: str, profile_id: Optional[int] = None) -> Recipe:
        """
        Generate and save one easy, student-friendly recipe for a cuisine.

        Raises:
            RecipeParseError: If the reply is not a valid recipe
        """
        schema = json.dumps(SimpleRecipe.model_json_schema())
        text = self.provider.ask(
            f"Cuisine: {cuisine}",
            model=self.model,
            max_tokens=1500,
            system=(
                "Return ONE easy, student-friendly recipe as pure JSON "
                f"following this exact schema: {schema}"
            ),
            temperature=0.7,
        )
        self._dump_debug(f"single {cuisine}", cuisine, text)

        data = extract_json_object(text)
        try:
            parsed = SimpleRecipe.model_validate(data)
        except ValidationError as e:
            raise RecipeParseError(f"Recipe failed validation: {e.error_count()} errors") from e

        recipe = Recipe(
            title=parsed.title,
            cuisine=parsed.cuisine,
            instructions="\n".join(parsed.instructions),
            cook_time=parsed.cook_time,
            dietary_info=parsed.dietary_info,
            profile_id=profile_id,
            source="llm",
            ingredients=[Ingredient(name=name) for name in parsed.ingredients],
        )
        self.db.save_recipe(recipe)
        return recipe

    def _save_all(self, drafts: List[Tuple[GeneratedRecipe, str]], profile_id: Optional[int]) -> List[Recipe]:
        recipes = []
        for draft, source in drafts:
            recipe = to_recipe(draft, profile_id, source)
            self.db.save_recipe(recipe)
            recipes.append(recipe)
        return recipes

    def _dump_debug(self, label: str, prompt: str, reply: str):
        """Write prompt and raw reply to the debug directory, if configured."""
        if not self.debug_dir:
            return

        now = datetime.now()
        filename = f"LLM_{re.sub(r'[^A-Za-z0-9]+', '', label)}_{now.strftime('%Y%m%d%H%M%S%f')}.txt"
        try:
            self.debug_dir.mkdir(parents=True, exist_ok=True)
            path = self.debug_dir / filename
            path.write_text(
                f"=== LLM CALL ===\n"
                f"Timestamp: {now.isoformat()}\n"
                f"Model: {self.model}\n"
                f"Label: {label}\n\n"
                f"=== PROMPT ===\n{prompt}\n\n"
                f"=== RAW RESPONSE ===\n{reply}\n",
                encoding="utf-8",
            )
            logger.debug(f"[PLAN] LLM reply saved to {path}")
        except OSError as e:
            logger.error(f"[PLAN] Error saving LLM reply to file: {e}")
