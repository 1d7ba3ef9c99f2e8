"""Exceptions raised by Youtrition services."""


class YoutritionError(Exception):
    """Base class for expected, user-reportable failures."""
    pass


class ProfileNotFoundError(YoutritionError):
    """Raised when a profile ID does not exist."""
    pass


class RecipeParseError(YoutritionError):
    """Raised when an LLM reply cannot be turned into a recipe."""
    pass


class FridgeScanError(YoutritionError):
    """Raised when fridge photos cannot be analyzed."""
    pass
