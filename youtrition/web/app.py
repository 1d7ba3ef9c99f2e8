#!/usr/bin/env python3
"""
Flask web application for Youtrition.

JSON API behind the setup wizard, fridge scanner, meal planner and
recommendation pages.
"""

import os
import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime
from typing import List, Optional

from flask import Flask, request, jsonify
from flask_cors import CORS

from youtrition.config import Settings
from youtrition.data.models import Filter, MealPlan
from youtrition.errors import FridgeScanError, ProfileNotFoundError, RecipeParseError
from youtrition.fridge_scanner import MAX_IMAGES
from youtrition.main import YoutritionAssistant

settings = Settings.from_env()

# Setup logging with both console and file output
os.makedirs(settings.log_dir, exist_ok=True)

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            os.path.join(settings.log_dir, 'app.log'),
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5
        )
    ]
)
logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)
app.secret_key = settings.secret_key
CORS(app)

# Created on first use so importing the module does not touch the database
assistant: Optional[YoutritionAssistant] = None


def get_assistant() -> YoutritionAssistant:
    global assistant
    if assistant is None:
        assistant = YoutritionAssistant(settings=settings)
    return assistant


def error_response(message: str, status: int):
    return jsonify({"success": False, "error": message}), status


def _tag_list(name: str) -> List[str]:
    """Read a repeatable and/or comma-separated query parameter."""
    tags = []
    for value in request.args.getlist(name):
        tags.extend(t.strip() for t in value.split(',') if t.strip())
    return tags


@app.errorhandler(ProfileNotFoundError)
def handle_profile_not_found(e):
    return error_response(str(e), 404)


@app.route('/health')
def health_check():
    """Health check endpoint."""
    return jsonify({"status": "healthy", "timestamp": datetime.now().isoformat()}), 200


# ==================== Profiles ====================

@app.route('/api/profile', methods=['POST'])
def api_create_profile():
    """Create a profile from the setup wizard."""
    data = request.get_json(silent=True) or {}
    if not data.get('name'):
        return error_response("Profile name is required", 400)

    try:
        profile = get_assistant().create_profile(data)
        logger.info(f"Created profile {profile.id} ({profile.name})")
        return jsonify({"ok": True, "id": profile.id})

    except Exception as e:
        logger.error(f"Error creating profile: {e}", exc_info=True)
        return error_response(str(e), 500)


@app.route('/api/profile/<int:profile_id>', methods=['GET'])
def api_get_profile(profile_id):
    profile = get_assistant().get_profile(profile_id)
    return jsonify({"success": True, "profile": profile.to_dict()})


@app.route('/api/profile/<int:profile_id>', methods=['PUT'])
def api_update_profile(profile_id):
    """Save edited setup wizard answers."""
    data = request.get_json(silent=True) or {}
    if not data.get('name'):
        return error_response("Profile name is required", 400)

    profile = get_assistant().update_profile(profile_id, data)
    logger.info(f"Updated profile {profile.id} ({profile.name})")
    return jsonify({"success": True, "profile": profile.to_dict()})


# ==================== Pantry ====================

@app.route('/api/<int:profile_id>/pantry', methods=['GET'])
def api_get_pantry(profile_id):
    """List the items a user owns."""
    items = get_assistant().get_pantry(profile_id)
    return jsonify({"success": True, "items": [item.to_dict() for item in items]})


@app.route('/api/<int:profile_id>/pantry', methods=['POST'])
def api_add_pantry(profile_id):
    """Add items (e.g. confirmed fridge scan results) to the pantry."""
    data = request.get_json(silent=True) or {}
    items = data.get('items')
    if not isinstance(items, list):
        return error_response("'items' must be a list", 400)

    try:
        added = get_assistant().add_to_pantry(profile_id, [i for i in items if isinstance(i, dict)])
        return jsonify({"success": True, "items": [item.to_dict() for item in added]})

    except ProfileNotFoundError:
        raise
    except Exception as e:
        logger.error(f"Error adding pantry items: {e}", exc_info=True)
        return error_response(str(e), 500)


@app.route('/api/<int:profile_id>/pantry/<int:ingredient_id>', methods=['DELETE'])
def api_remove_pantry(profile_id, ingredient_id):
    if not get_assistant().db.remove_pantry_item(profile_id, ingredient_id):
        return error_response("Pantry item not found", 404)
    return jsonify({"success": True})


@app.route('/api/fridge', methods=['POST'])
def api_scan_fridge():
    """
    Analyze fridge photos.

    Form fields:
        image1..image10: JPEG/PNG uploads
        profileId: Optional; recognized items are added to this pantry
    """
    images = []
    for i in range(1, MAX_IMAGES + 1):
        upload = request.files.get(f'image{i}')
        if upload is not None:
            images.append((upload.read(), upload.mimetype or "image/jpeg"))

    if not images:
        return error_response("No images uploaded.", 400)

    try:
        items = get_assistant().scan_fridge(images)

        profile_id = request.form.get('profileId', type=int)
        if profile_id is not None:
            get_assistant().add_to_pantry(profile_id, [item.to_dict() for item in items])

        return jsonify({"success": True, "items": [item.to_dict() for item in items]})

    except ProfileNotFoundError:
        raise
    except FridgeScanError as e:
        logger.error(f"[FRIDGE] Scan failed: {e}")
        return error_response(str(e), 500)
    except Exception as e:
        logger.error(f"[FRIDGE] Fridge scan error: {e}", exc_info=True)
        return error_response(str(e) or "Failed to analyze fridge images.", 500)


# ==================== Recipes ====================

@app.route('/api/plan', methods=['POST'])
def api_plan():
    """
    Generate recipes for a meal plan, or fetch a selected one.

    Body:
        {"action": "select", "recipeId": 3}
        {"profile": {...}, "plan": {"mealType", "cuisine", "calories", "macroType", "todayWorkout"}}
    """
    data = request.get_json(silent=True) or {}

    try:
        if data.get('action') == 'select':
            recipe = get_assistant().get_recipe(data.get('recipeId'))
            if not recipe:
                return error_response("Recipe not found", 404)
            return jsonify({"success": True, "result": recipe.to_dict()})

        profile_data = data.get('profile') or {}
        plan_data = data.get('plan') or {}
        if not profile_data.get('name') and profile_data.get('id') is None:
            return error_response("Profile is required", 400)

        plan = MealPlan.from_dict(plan_data)
        recipes, note = get_assistant().generate_recipes(profile_data, plan)

        result = {"success": True, "results": [r.to_dict() for r in recipes]}
        if note:
            result["note"] = note
        return jsonify(result)

    except Exception as e:
        logger.error(f"[PLAN] API error: {e}", exc_info=True)
        return jsonify({
            "success": False,
            "error": str(e) or "Failed to process request",
            "errorType": type(e).__name__,
        }), 500


@app.route('/api/recipe', methods=['POST'])
def api_generate_recipe():
    """Generate one student-friendly recipe for a cuisine."""
    data = request.get_json(silent=True) or {}
    cuisine = data.get('cuisine')
    if not cuisine:
        return error_response("Cuisine is required", 400)

    try:
        recipe = get_assistant().generate_single_recipe(cuisine, profile_id=data.get('profileId'))
        return jsonify(recipe.to_dict())

    except RecipeParseError as e:
        logger.error(f"Unusable recipe reply: {e}")
        return error_response(str(e), 500)
    except Exception as e:
        logger.error(f"Error generating recipe: {e}", exc_info=True)
        return error_response(str(e), 500)


@app.route('/api/recipes/<int:recipe_id>', methods=['GET'])
def api_get_recipe(recipe_id):
    recipe = get_assistant().get_recipe(recipe_id)
    if not recipe:
        return error_response("Recipe not found", 404)
    return jsonify({"success": True, "recipe": recipe.to_dict()})


@app.route('/api/recipes/<int:recipe_id>/favorite', methods=['POST'])
def api_set_favorite(recipe_id):
    data = request.get_json(silent=True) or {}
    favorite = data.get('favorite', True)
    if not isinstance(favorite, bool):
        return error_response("'favorite' must be true or false", 400)
    if not get_assistant().set_favorite(recipe_id, favorite):
        return error_response("Recipe not found", 404)
    return jsonify({"success": True, "favorite": favorite})


@app.route('/api/<int:profile_id>/recommendations', methods=['GET'])
def api_recommendations(profile_id):
    """
    Rank recipes by pantry match.

    Query params:
        diet: Required diet tag (repeatable or comma-separated)
        allergy: Excluded allergen (repeatable or comma-separated)
        limit: Max results, at least 1 (default 5)
        useProfile: "true" to add the profile's saved restrictions and allergies

    Example: /api/1/recommendations?diet=vegan,gluten-free&allergy=nut&limit=5
    """
    recipe_filter = Filter(diet=_tag_list('diet'), allergies=_tag_list('allergy'))
    limit = request.args.get('limit', 5, type=int)
    if limit < 1:
        return error_response("'limit' must be at least 1", 400)

    if request.args.get('useProfile', '').lower() == 'true':
        recipe_filter = get_assistant().profile_filter(profile_id, recipe_filter)

    try:
        ranked = get_assistant().recommend(profile_id, recipe_filter, limit=limit)
        return jsonify({
            "success": True,
            "recipes": [scored.to_dict() for scored in ranked],
            "count": len(ranked),
            "filters": {"diet": recipe_filter.diet, "allergies": recipe_filter.allergies},
        })

    except Exception as e:
        logger.error(f"[RECOMMEND] Error ranking recipes: {e}", exc_info=True)
        return error_response(str(e), 500)


@app.route('/api/<int:profile_id>/matches', methods=['GET'])
def api_matches(profile_id):
    """Top 10 recipes by pantry match, no filtering."""
    try:
        ranked = get_assistant().matching_recipes(profile_id)
        return jsonify({"success": True, "recipes": [scored.to_dict() for scored in ranked]})

    except Exception as e:
        logger.error(f"[RECOMMEND] Error matching recipes: {e}", exc_info=True)
        return error_response(str(e), 500)


@app.route('/api/<int:profile_id>/favorites', methods=['GET'])
def api_favorites(profile_id):
    """A profile's favorite recipes, newest first (dashboard card)."""
    recipes = get_assistant().favorite_recipes(profile_id)
    return jsonify({"success": True, "recipes": [recipe.to_dict() for recipe in recipes]})


if __name__ == '__main__':
    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY not set - recipes will be mock data and fridge scans disabled")

    app.run(
        host='0.0.0.0',
        port=int(os.environ.get('PORT', 5000)),
        debug=settings.debug,
    )
