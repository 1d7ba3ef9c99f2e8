"""
Youtrition - personalized meal planning.

Dietary profiles, fridge scanning and pantry-aware recipe recommendations.
"""

__version__ = "0.1.0"
