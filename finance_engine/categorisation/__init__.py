"""
Categorisation Module for the Transaction Intelligence Engine.

Orchestrates merchant categorization through:
- Preprocessing (normalization, amount parsing)
- Pattern matching (keyword, regex and fuzzy)
- Amount-based disambiguation for unlabelled deposits
"""

from .engine import TransactionCategorizer, CategoryMatch, classify
from .preprocess import normalize_text, normalize_merchant, to_decimal
from .pattern_matching import (
    match_patterns,
    match_keyword_list,
    match_regex_list,
    fuzzy_match_keywords,
)

__all__ = [
    # Main categorizer
    "TransactionCategorizer",
    "CategoryMatch",
    "classify",
    # Preprocessing utilities
    "normalize_text",
    "normalize_merchant",
    "to_decimal",
    # Pattern matching utilities
    "match_patterns",
    "match_keyword_list",
    "match_regex_list",
    "fuzzy_match_keywords",
]
