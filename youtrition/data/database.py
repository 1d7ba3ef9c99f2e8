"""
Database interface for Youtrition.

Manages a single SQLite database holding:
- profiles: dietary profiles created at setup
- recipes: generated or seeded meal suggestions
- ingredients: pantry items (recipe_id NULL) and recipe components
"""

import sqlite3
import json
import logging
from typing import List, Optional, Dict, Iterable
from datetime import datetime
from pathlib import Path

from .models import Profile, Recipe, Ingredient, Nutrition

logger = logging.getLogger(__name__)

# Upper bound on rows returned by a filtered recipe query
FILTER_LIMIT = 50


def _casefold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if value is not None else None


class DatabaseInterface:
    """Interface for interacting with the Youtrition SQLite database."""

    def __init__(self, db_path: str = "data/youtrition.db"):
        """
        Initialize database interface.

        Args:
            db_path: Path to the SQLite database file (parent dir is created)
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_database()

    def _init_database(self):
        """Initialize database schema."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS profiles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    persona TEXT,
                    dietary_restrictions TEXT,
                    allergies TEXT,
                    cuisine_preferences TEXT,
                    workout_frequency INTEGER,
                    workout_intensity INTEGER,
                    created_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS recipes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    profile_id INTEGER,
                    title TEXT NOT NULL,
                    cuisine TEXT,
                    source TEXT DEFAULT 'llm',
                    instructions TEXT,
                    cook_time INTEGER,
                    dietary_info TEXT,
                    nutrition_json TEXT,
                    favorite BOOLEAN DEFAULT 0,
                    created_at TEXT NOT NULL,

                    FOREIGN KEY (profile_id) REFERENCES profiles(id)
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS ingredients (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    quantity REAL,
                    unit TEXT,
                    profile_id INTEGER,
                    recipe_id INTEGER,
                    position INTEGER DEFAULT 0,
                    expires_at TEXT,
                    condition TEXT,

                    FOREIGN KEY (profile_id) REFERENCES profiles(id),
                    FOREIGN KEY (recipe_id) REFERENCES recipes(id)
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_ingredients_profile
                ON ingredients(profile_id, recipe_id)
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_ingredients_recipe
                ON ingredients(recipe_id)
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_recipes_profile
                ON recipes(profile_id)
            """)

            conn.commit()
            logger.info(f"Database initialized at {self.db_path}")

    # ==================== Profile Operations ====================

    def create_profile(self, profile: Profile) -> int:
        """
        Insert a new profile.

        Args:
            profile: Profile to save. If ``profile.id`` is set it is used as
                the primary key (the setup flow may assign its own id).

        Returns:
            The profile ID
        """
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO profiles
                (id, name, persona, dietary_restrictions, allergies,
                 cuisine_preferences, workout_frequency, workout_intensity,
                 created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    profile.id,
                    profile.name,
                    profile.persona,
                    json.dumps(profile.dietary_restrictions),
                    json.dumps(profile.allergies),
                    json.dumps(profile.cuisine_preferences),
                    profile.workout_frequency,
                    profile.workout_intensity,
                    profile.created_at.isoformat(),
                ),
            )
            conn.commit()
            profile.id = cursor.lastrowid

        logger.info(f"Created profile {profile.id} ({profile.name})")
        return profile.id

    def get_profile(self, profile_id: int) -> Optional[Profile]:
        """
        Get a profile by ID.

        Returns:
            Profile object or None if not found
        """
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()

            cursor.execute("SELECT * FROM profiles WHERE id = ?", (profile_id,))
            row = cursor.fetchone()

            if row:
                return self._row_to_profile(row)
            return None

    def update_profile(self, profile: Profile) -> bool:
        """Update an existing profile. Returns False if it does not exist."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE profiles SET
                    name = ?,
                    persona = ?,
                    dietary_restrictions = ?,
                    allergies = ?,
                    cuisine_preferences = ?,
                    workout_frequency = ?,
                    workout_intensity = ?
                WHERE id = ?
                """,
                (
                    profile.name,
                    profile.persona,
                    json.dumps(profile.dietary_restrictions),
                    json.dumps(profile.allergies),
                    json.dumps(profile.cuisine_preferences),
                    profile.workout_frequency,
                    profile.workout_intensity,
                    profile.id,
                ),
            )
            conn.commit()
            updated = cursor.rowcount > 0

        if updated:
            logger.info(f"Updated profile {profile.id}")
        return updated

    def _row_to_profile(self, row: sqlite3.Row) -> Profile:
        """Convert database row to Profile object."""
        return Profile(
            id=row["id"],
            name=row["name"],
            persona=row["persona"],
            dietary_restrictions=json.loads(row["dietary_restrictions"]) if row["dietary_restrictions"] else [],
            allergies=json.loads(row["allergies"]) if row["allergies"] else [],
            cuisine_preferences=json.loads(row["cuisine_preferences"]) if row["cuisine_preferences"] else [],
            workout_frequency=row["workout_frequency"],
            workout_intensity=row["workout_intensity"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # ==================== Pantry Operations ====================

    def add_pantry_item(self, profile_id: int, ingredient: Ingredient) -> int:
        """
        Add an item the user owns to their pantry.

        The ingredient is stored without a recipe link regardless of
        ``ingredient.recipe_id``.

        Returns:
            The ingredient ID
        """
        return self.add_pantry_items(profile_id, [ingredient])[0]

    def add_pantry_items(self, profile_id: int, items: Iterable[Ingredient]) -> List[int]:
        """Add several pantry items in one transaction."""
        ids = []
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            for item in items:
                cursor.execute(
                    """
                    INSERT INTO ingredients
                    (name, quantity, unit, profile_id, recipe_id, expires_at, condition)
                    VALUES (?, ?, ?, ?, NULL, ?, ?)
                    """,
                    (
                        item.name,
                        item.quantity,
                        item.unit,
                        profile_id,
                        item.expires_at.isoformat() if item.expires_at else None,
                        item.condition,
                    ),
                )
                item.id = cursor.lastrowid
                item.profile_id = profile_id
                item.recipe_id = None
                ids.append(item.id)
            conn.commit()

        logger.info(f"Added {len(ids)} pantry items for profile {profile_id}")
        return ids

    def get_pantry_items(self, profile_id: int) -> List[Ingredient]:
        """Get all ingredients for a profile that have no recipe link."""
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()

            cursor.execute(
                """
                SELECT * FROM ingredients
                WHERE profile_id = ? AND recipe_id IS NULL
                ORDER BY id
                """,
                (profile_id,),
            )
            return [self._row_to_ingredient(row) for row in cursor.fetchall()]

    def get_pantry_names(self, profile_id: int) -> List[str]:
        """Get the names of a profile's pantry items."""
        return [item.name for item in self.get_pantry_items(profile_id)]

    def remove_pantry_item(self, profile_id: int, ingredient_id: int) -> bool:
        """Delete a pantry item. Recipe components are never touched."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                DELETE FROM ingredients
                WHERE id = ? AND profile_id = ? AND recipe_id IS NULL
                """,
                (ingredient_id, profile_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    # ==================== Recipe Operations ====================

    def save_recipe(self, recipe: Recipe) -> int:
        """
        Save a recipe together with its ingredients.

        Each ingredient is linked to the new recipe and to the recipe's
        owning profile. Ingredient order is preserved.

        Returns:
            The recipe ID
        """
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO recipes
                (profile_id, title, cuisine, source, instructions, cook_time,
                 dietary_info, nutrition_json, favorite, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    recipe.profile_id,
                    recipe.title,
                    recipe.cuisine,
                    recipe.source,
                    recipe.instructions,
                    recipe.cook_time,
                    recipe.dietary_info,
                    json.dumps(recipe.nutrition.to_dict()) if recipe.nutrition else None,
                    recipe.favorite,
                    recipe.created_at.isoformat(),
                ),
            )
            recipe.id = cursor.lastrowid

            for position, ing in enumerate(recipe.ingredients):
                cursor.execute(
                    """
                    INSERT INTO ingredients
                    (name, quantity, unit, profile_id, recipe_id, position, expires_at, condition)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        ing.name,
                        ing.quantity,
                        ing.unit,
                        recipe.profile_id,
                        recipe.id,
                        position,
                        ing.expires_at.isoformat() if ing.expires_at else None,
                        ing.condition,
                    ),
                )
                ing.id = cursor.lastrowid
                ing.recipe_id = recipe.id
                ing.profile_id = recipe.profile_id

            conn.commit()

        logger.info(f"Saved recipe {recipe.id}: {recipe.title} ({len(recipe.ingredients)} ingredients)")
        return recipe.id

    def get_recipe(self, recipe_id: int) -> Optional[Recipe]:
        """
        Get a specific recipe by ID, with its ingredients.

        Returns:
            Recipe object or None if not found
        """
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()

            cursor.execute("SELECT * FROM recipes WHERE id = ?", (recipe_id,))
            row = cursor.fetchone()
            if not row:
                return None

            recipe = self._row_to_recipe(row)
            recipe.ingredients = self._load_ingredients(cursor, [recipe.id]).get(recipe.id, [])
            return recipe

    def get_recipes(self, limit: Optional[int] = None) -> List[Recipe]:
        """Get all recipes in insertion order, with their ingredients."""
        return self.find_recipes(limit=limit)

    def find_recipes(
        self,
        diet: Optional[List[str]] = None,
        allergies: Optional[List[str]] = None,
        limit: Optional[int] = FILTER_LIMIT,
    ) -> List[Recipe]:
        """
        Find recipes matching a dietary/allergy filter.

        Matching is plain case-insensitive substring containment, with
        both sides folded by Python's ``str.casefold`` (not SQLite's
        ASCII-only ``lower``):
        - every diet tag must appear in ``dietary_info``
        - no ingredient name may contain any allergen

        ``instr`` is used instead of LIKE so ``%`` and ``_`` in user text
        are treated literally. Blank tags are ignored.

        Args:
            diet: Required diet tags (conjunction)
            allergies: Excluded allergen tags
            limit: Maximum number of recipes (None for no limit)

        Returns:
            Recipes in insertion order with ingredients attached
        """
        sql = "SELECT * FROM recipes WHERE 1=1"
        params: List = []

        for tag in diet or []:
            if not tag.strip():
                continue
            sql += " AND instr(casefold(dietary_info), casefold(?)) > 0"
            params.append(tag)

        for allergen in allergies or []:
            if not allergen.strip():
                continue
            sql += """
                AND NOT EXISTS (
                    SELECT 1 FROM ingredients i
                    WHERE i.recipe_id = recipes.id
                      AND instr(casefold(i.name), casefold(?)) > 0
                )
            """
            params.append(allergen)

        sql += " ORDER BY id"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        with sqlite3.connect(self.db_path) as conn:
            conn.create_function("casefold", 1, _casefold, deterministic=True)
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()

            cursor.execute(sql, params)
            recipes = [self._row_to_recipe(row) for row in cursor.fetchall()]

            by_recipe = self._load_ingredients(cursor, [r.id for r in recipes])
            for recipe in recipes:
                recipe.ingredients = by_recipe.get(recipe.id, [])

        logger.debug(f"find_recipes(diet={diet}, allergies={allergies}) -> {len(recipes)} recipes")
        return recipes

    def set_favorite(self, recipe_id: int, favorite: bool = True) -> bool:
        """Set or clear a recipe's favorite flag. Returns False if not found."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE recipes SET favorite = ? WHERE id = ?",
                (favorite, recipe_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def get_favorite_recipes(self, profile_id: int) -> List[Recipe]:
        """Get a profile's favorite recipes, newest first."""
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()

            cursor.execute(
                """
                SELECT * FROM recipes
                WHERE profile_id = ? AND favorite = 1
                ORDER BY id DESC
                """,
                (profile_id,),
            )
            recipes = [self._row_to_recipe(row) for row in cursor.fetchall()]

            by_recipe = self._load_ingredients(cursor, [r.id for r in recipes])
            for recipe in recipes:
                recipe.ingredients = by_recipe.get(recipe.id, [])
            return recipes

    def _load_ingredients(self, cursor: sqlite3.Cursor, recipe_ids: List[int]) -> Dict[int, List[Ingredient]]:
        """Load ingredients for several recipes, grouped by recipe ID."""
        if not recipe_ids:
            return {}

        placeholders = ",".join(["?" for _ in recipe_ids])
        cursor.execute(
            f"""
            SELECT * FROM ingredients
            WHERE recipe_id IN ({placeholders})
            ORDER BY recipe_id, position, id
            """,
            recipe_ids,
        )

        grouped: Dict[int, List[Ingredient]] = {}
        for row in cursor.fetchall():
            grouped.setdefault(row["recipe_id"], []).append(self._row_to_ingredient(row))
        return grouped

    def _row_to_recipe(self, row: sqlite3.Row) -> Recipe:
        """Convert database row to Recipe object (ingredients not loaded)."""
        nutrition = None
        if row["nutrition_json"]:
            try:
                nutrition = Nutrition.from_dict(json.loads(row["nutrition_json"]))
            except (json.JSONDecodeError, TypeError) as e:
                logger.warning(f"Failed to parse nutrition for recipe {row['id']}: {e}")

        return Recipe(
            id=row["id"],
            profile_id=row["profile_id"],
            title=row["title"],
            cuisine=row["cuisine"] or "",
            source=row["source"] or "llm",
            instructions=row["instructions"] or "",
            cook_time=row["cook_time"] or 0,
            dietary_info=row["dietary_info"] or "",
            nutrition=nutrition,
            favorite=bool(row["favorite"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_ingredient(self, row: sqlite3.Row) -> Ingredient:
        """Convert database row to Ingredient object."""
        return Ingredient(
            id=row["id"],
            name=row["name"],
            quantity=row["quantity"],
            unit=row["unit"],
            profile_id=row["profile_id"],
            recipe_id=row["recipe_id"],
            expires_at=datetime.fromisoformat(row["expires_at"]) if row["expires_at"] else None,
            condition=row["condition"],
        )

    # ==================== Maintenance ====================

    def clear_all(self):
        """Delete every ingredient, recipe and profile (used by the seed script)."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM ingredients")
            cursor.execute("DELETE FROM recipes")
            cursor.execute("DELETE FROM profiles")
            conn.commit()

        logger.warning(f"Cleared all data in {self.db_path}")
