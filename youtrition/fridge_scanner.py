"""
Fridge photo analysis.

Sends up to 10 refrigerator photos to a vision-capable LLM and turns the
reply into a clean, de-duplicated list of items the user can add to their
pantry.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from youtrition.config import DEFAULT_MODEL
from youtrition.data.models import Ingredient
from youtrition.errors import FridgeScanError
from youtrition.llm_provider import ImageInput, LLMProvider
from youtrition.recipe_generator import strip_code_fences

logger = logging.getLogger(__name__)

MAX_IMAGES = 10

FRIDGE_PROMPT = """
You are an AI assistant helping a user analyze the contents of their refrigerator based on up to 10 photos.

Your task is to:
- List every distinct food item, container, or object visible in the fridge.
- Do not count duplicates from different angles. If the same item appears in multiple images, list it only once.
- If a label or visual feature (e.g. color, size, shape) is visible on a box or container, describe it (e.g., "tall red juice box", "blue plastic container", "pizza box", "white tub with green lid").
- If unsure, provide your best guess (e.g., "unlabeled bottle", "clear jar with yellow liquid").

For each item, return:
- "name": lowercase noun (e.g., "milk", "spinach", "red box", "container").
- "quantity": estimated quantity or count (e.g., "1", "half bag", "2 jars").
- "condition": freshness or guess, such as "fresh", "spoiled", "frosted", "looks old", "sealed", "unknown".

Requirements:
- Output should be a JSON array, sorted alphabetically by item name.
- Do not return duplicates, even if they appear from different angles.
- If multiple similar items are visible (e.g., two milk bottles), combine them with appropriate quantity.
- Do not return any markdown, explanation, or commentary. Just the JSON.

Example:
[
  { "name": "apple", "quantity": "2", "condition": "fresh" },
  { "name": "blue plastic box", "quantity": "1", "condition": "sealed" },
  { "name": "pizza box", "quantity": "1", "condition": "looks old" }
]
"""


@dataclass
class FridgeItem:
    """One item recognized in the fridge."""
    name: str
    quantity: str = "unknown"
    condition: str = "unknown"

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "quantity": self.quantity, "condition": self.condition}

    def to_ingredient(self) -> Ingredient:
        """Pantry ingredient for this item; non-numeric quantities are dropped."""
        try:
            quantity: Optional[float] = float(self.quantity)
        except ValueError:
            quantity = None
        return Ingredient(name=self.name, quantity=quantity, condition=self.condition)


def normalize_items(raw_items: List[Any]) -> List[FridgeItem]:
    """
    Validate and clean items from the LLM reply.

    Keeps objects with a non-blank string ``name``, lowercases and strips
    the name, stringifies quantity and condition (default "unknown") and
    sorts by name. When the same name is reported more than once only the
    first entry is kept.
    """
    items: Dict[str, FridgeItem] = {}
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            continue
        name = name.strip().lower()
        if name in items:
            continue
        items[name] = FridgeItem(
            name=name,
            quantity=_text_or_unknown(raw.get("quantity")),
            condition=_text_or_unknown(raw.get("condition")),
        )
    return sorted(items.values(), key=lambda item: item.name)


def _text_or_unknown(value: Any) -> str:
    if value is None or value == "":
        return "unknown"
    return str(value)


def scan_fridge(
    provider: LLMProvider,
    images: Sequence[ImageInput],
    model: str = DEFAULT_MODEL,
) -> List[FridgeItem]:
    """
    Identify the items visible in a set of fridge photos.

    Args:
        provider: Vision-capable LLM provider
        images: Up to 10 images as raw bytes or (bytes, media type)
        model: Model name

    Returns:
        Items sorted by name

    Raises:
        FridgeScanError: On missing images, no usable LLM or an unparseable reply
    """
    if not images:
        raise FridgeScanError("No images uploaded.")
    if len(images) > MAX_IMAGES:
        logger.warning(f"[FRIDGE] {len(images)} images received, using first {MAX_IMAGES}")
        images = images[:MAX_IMAGES]
    if provider.is_null:
        raise FridgeScanError("Fridge scanning requires a configured LLM provider.")

    logger.info(f"[FRIDGE] Analyzing {len(images)} images")
    text = provider.ask_about_images(
        FRIDGE_PROMPT,
        images,
        model=model,
        max_tokens=2048,
        temperature=0.4,
        top_k=50,
    )

    try:
        raw_items = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        logger.error(f"[FRIDGE] Failed to parse reply: {e}")
        raise FridgeScanError("Failed to parse AI response.") from e

    if not isinstance(raw_items, list):
        raise FridgeScanError("AI response is not a valid array.")

    items = normalize_items(raw_items)
    logger.info(f"[FRIDGE] Recognized {len(items)} items")
    return items
