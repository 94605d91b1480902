"""
Preprocessing utilities for transaction categorization.
Handles merchant label normalization and amount parsing.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional


_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: Optional[str]) -> str:
    """
    Normalize text for matching.

    Args:
        text: Raw text to normalize

    Returns:
        Uppercase text with runs of whitespace collapsed
    """
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text.upper()).strip()


def normalize_merchant(merchant: Optional[str]) -> str:
    """Key used to compare merchants case-insensitively."""
    return normalize_text(merchant)


def to_decimal(value) -> Optional[Decimal]:
    """
    Parse an amount into a Decimal.

    Accepts Decimal, int, float and strings with an optional currency symbol
    or thousands separators. Returns None when the value cannot be parsed.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        text = repr(value)
    else:
        text = str(value).strip().replace(",", "").replace("$", "")
    if not text:
        return None
    try:
        parsed = Decimal(text)
    except (InvalidOperation, ValueError):
        return None
    return parsed if parsed.is_finite() else None
