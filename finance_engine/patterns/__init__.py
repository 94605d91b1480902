"""
Category Pattern Definitions for the Transaction Intelligence Engine.

Contains the ordered keyword and regex rules used to categorize merchant labels.
"""

from .category_patterns import CATEGORY_RULES

__all__ = [
    "CATEGORY_RULES",
]
