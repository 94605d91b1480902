"""
Generic Pattern Matching for Transaction Categorization.

Provides reusable pattern matching logic for keyword, regex and fuzzy
categorization against the ordered category rule table.
"""

import re
from typing import Dict, List, Optional, Tuple

from rapidfuzz import fuzz


def match_keyword_list(text: str, keywords: List[str]) -> Optional[str]:
    """
    Return the first keyword contained in text.

    Example:
        >>> match_keyword_list("WHOLE FOODS MARKET", ["WHOLE FOODS", "ALDI"])
        'WHOLE FOODS'
    """
    for keyword in keywords:
        if keyword.upper() in text:
            return keyword
    return None


def match_regex_list(text: str, patterns: List[str]) -> Optional[str]:
    """Return the first regex pattern that matches text."""
    for pattern in patterns:
        if re.search(pattern, text):
            return pattern
    return None


def fuzzy_match_keywords(
    text: str,
    keywords: List[str],
    threshold: int = 85,
    min_keyword_length: int = 7
) -> Optional[Tuple[str, float]]:
    """
    Fuzzy match text against keywords using rapidfuzz partial_ratio.

    Keywords shorter than min_keyword_length, or longer than the text itself,
    are skipped so that short labels cannot be aligned inside a long keyword.

    Returns:
        Tuple of (keyword, score 0-100) for the best keyword at or above the
        threshold, or None
    """
    best_keyword = None
    best_score = 0.0
    for keyword in keywords:
        keyword = keyword.upper()
        if len(keyword) < min_keyword_length or len(keyword) > len(text):
            continue
        score = fuzz.partial_ratio(keyword, text)
        if score >= threshold and score > best_score:
            best_score = score
            best_keyword = keyword
    if best_keyword is None:
        return None
    return best_keyword, best_score


def match_patterns(text: str, rule: Dict) -> Optional[Tuple[str, str]]:
    """
    Exact match of text against a single rule.

    Keywords are checked first (fastest), then regex patterns.

    Returns:
        Tuple of (match_method, matched_term) or None if no match
    """
    keyword = match_keyword_list(text, rule.get("keywords", []))
    if keyword:
        return "keyword", keyword

    pattern = match_regex_list(text, rule.get("regex_patterns", []))
    if pattern:
        return "regex", pattern

    return None
