"""
Data models for Youtrition.

These models define the core entities used throughout the system:
- Profile: A user's dietary profile from setup
- Ingredient: Either a pantry item or a recipe component
- Recipe: A generated or seeded meal suggestion
- Filter: Diet/allergy constraints for recipe queries
- ScoredRecipe: A recipe paired with its pantry match score
- MealPlan: The meal request sent to the recipe generator
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Dict, Any


@dataclass
class Profile:
    """User dietary profile created at setup."""

    name: str
    persona: Optional[str] = None  # e.g. "Athlete", "Vegetarian"
    dietary_restrictions: List[str] = field(default_factory=list)
    allergies: List[str] = field(default_factory=list)
    cuisine_preferences: List[str] = field(default_factory=list)
    workout_frequency: Optional[int] = None  # 1-10
    workout_intensity: Optional[int] = None  # 1-10
    created_at: datetime = field(default_factory=datetime.now)
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "persona": self.persona,
            "dietary_restrictions": self.dietary_restrictions,
            "allergies": self.allergies,
            "cuisine_preferences": self.cuisine_preferences,
            "workout_frequency": self.workout_frequency,
            "workout_intensity": self.workout_intensity,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        """Create Profile from dictionary.

        Accepts both snake_case keys and the camelCase keys sent by the
        setup form (``dietaryRestrictions``, ``workoutFrequency``, ...).
        """
        def pick(snake: str, camel: str, default=None):
            if snake in data:
                return data[snake]
            return data.get(camel, default)

        created_at = data.get("created_at")
        return cls(
            id=data.get("id"),
            name=data["name"],
            persona=data.get("persona"),
            dietary_restrictions=_as_list(pick("dietary_restrictions", "dietaryRestrictions")),
            allergies=_as_list(data.get("allergies")),
            cuisine_preferences=_as_list(pick("cuisine_preferences", "cuisinePreferences")),
            workout_frequency=pick("workout_frequency", "workoutFrequency"),
            workout_intensity=pick("workout_intensity", "workoutIntensity"),
            created_at=datetime.fromisoformat(created_at) if created_at else datetime.now(),
        )


@dataclass
class Nutrition:
    """Nutrition record for a recipe. Values are opaque pass-through."""
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["Nutrition"]:
        if not data:
            return None
        return cls(
            calories=data.get("calories"),
            protein=data.get("protein"),
            carbs=data.get("carbs"),
            fat=data.get("fat"),
        )


@dataclass
class Ingredient:
    """An ingredient owned by a profile.

    A pantry item has no ``recipe_id``; a recipe component always has one.
    """
    name: str
    quantity: Optional[float] = None
    unit: Optional[str] = None
    profile_id: Optional[int] = None
    recipe_id: Optional[int] = None
    expires_at: Optional[datetime] = None
    condition: Optional[str] = None  # Freshness note from a fridge scan
    id: Optional[int] = None

    @property
    def is_pantry_item(self) -> bool:
        return self.recipe_id is None

    def __str__(self) -> str:
        """Human-readable ingredient string."""
        if self.quantity and self.unit:
            return f"{self.quantity:g} {self.unit} {self.name}"
        elif self.quantity:
            return f"{self.quantity:g} {self.name}"
        else:
            return self.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "profile_id": self.profile_id,
            "recipe_id": self.recipe_id,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "condition": self.condition,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Ingredient":
        expires_at = data.get("expires_at")
        quantity = data.get("quantity")
        return cls(
            id=data.get("id"),
            name=data["name"],
            quantity=_as_float(quantity),
            unit=data.get("unit"),
            profile_id=data.get("profile_id"),
            recipe_id=data.get("recipe_id"),
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
            condition=data.get("condition"),
        )


@dataclass
class Recipe:
    """A generated or seeded meal suggestion owned by one profile."""

    title: str
    cuisine: str
    instructions: str  # Newline-delimited steps stored as one string
    cook_time: int  # Minutes
    dietary_info: str
    profile_id: Optional[int] = None
    nutrition: Optional[Nutrition] = None
    favorite: bool = False
    source: str = "llm"  # "seed", "llm", "mock"
    ingredients: List[Ingredient] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    id: Optional[int] = None

    @property
    def steps(self) -> List[str]:
        """Instruction steps split back out of the stored string."""
        return [line for line in self.instructions.split("\n") if line.strip()]

    @property
    def ingredient_names(self) -> List[str]:
        return [ing.name for ing in self.ingredients]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "cuisine": self.cuisine,
            "instructions": self.instructions,
            "cook_time": self.cook_time,
            "dietary_info": self.dietary_info,
            "profile_id": self.profile_id,
            "nutrition": self.nutrition.to_dict() if self.nutrition else None,
            "favorite": self.favorite,
            "source": self.source,
            "ingredients": [ing.to_dict() for ing in self.ingredients],
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Filter:
    """Recipe query constraints.

    Every ``diet`` tag must appear in the recipe's dietary info; any
    ``allergies`` tag found in an ingredient name excludes the recipe.
    """
    diet: List[str] = field(default_factory=list)
    allergies: List[str] = field(default_factory=list)

    @classmethod
    def for_profile(cls, profile: Profile, extra: Optional["Filter"] = None) -> "Filter":
        """Profile restrictions and allergies, plus any ``extra`` tags."""
        extra = extra or cls()
        return cls(
            diet=list(profile.dietary_restrictions) + [t for t in extra.diet if t not in profile.dietary_restrictions],
            allergies=list(profile.allergies) + [t for t in extra.allergies if t not in profile.allergies],
        )


@dataclass
class ScoredRecipe:
    """A recipe with its pantry match percentage (0-100)."""
    recipe: Recipe
    match: float

    def to_dict(self) -> Dict[str, Any]:
        data = self.recipe.to_dict()
        data["match"] = round(self.match, 1)
        return data


@dataclass
class MealPlan:
    """Meal request used to prompt the recipe generator."""
    meal_type: str
    cuisine: str
    calories: int
    macro_type: str  # "Balanced", "Protein-Intensive", "Carb-Intensive"
    today_workout: Optional[int] = None  # 1-10

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MealPlan":
        return cls(
            meal_type=data.get("meal_type", data.get("mealType", "Dinner")),
            cuisine=data.get("cuisine", "Any"),
            calories=int(data.get("calories", 600)),
            macro_type=data.get("macro_type", data.get("macroType", "Balanced")),
            today_workout=data.get("today_workout", data.get("todayWorkout")),
        )


def _as_list(value) -> List[str]:
    """Normalize a list-ish field (None, single string or list) to a list."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return [str(v) for v in value]


def _as_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
