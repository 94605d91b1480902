"""
Transaction Categorizer for the Transaction Intelligence Engine.
Maps free-text merchant labels onto the closed Category enumeration.
"""

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from ..config.engine_config import CLASSIFIER_CONFIG
from ..models import Category, Transaction
from ..patterns.category_patterns import CATEGORY_RULES
from .pattern_matching import fuzzy_match_keywords, match_patterns
from .preprocess import normalize_text, to_decimal


@dataclass
class CategoryMatch:
    """Result of transaction categorization."""
    category: Category
    confidence: float
    match_method: str  # 'keyword', 'regex', 'fuzzy', 'amount', 'none'
    matched_term: Optional[str] = None
    description: str = ""


class TransactionCategorizer:
    """Categorizes transactions by first-match over an ordered rule table."""

    def __init__(self, rules: Optional[List[Dict]] = None, config: Optional[Dict] = None):
        """Initialize the categorizer.

        Args:
            rules: Ordered rule table, defaults to CATEGORY_RULES
            config: Overrides for CLASSIFIER_CONFIG
        """
        self.rules = rules if rules is not None else CATEGORY_RULES
        self.config = dict(CLASSIFIER_CONFIG)
        if config:
            self.config.update(config)

    def categorize_transaction(self, merchant: Optional[str], amount=0) -> CategoryMatch:
        """
        Categorize a single merchant label.

        Args:
            merchant: Free-text merchant label (may be empty)
            amount: Signed amount, income positive and expense negative

        Returns:
            CategoryMatch with categorization result
        """
        text = normalize_text(merchant) or normalize_text(self.config["fallback_label"])

        # Exact keyword/regex pass, first rule in table order wins
        for rule in self.rules:
            matched = match_patterns(text, rule)
            if matched:
                method, term = matched
                return CategoryMatch(
                    category=rule["category"],
                    confidence=0.95 if method == "keyword" else 0.90,
                    match_method=method,
                    matched_term=term,
                    description=rule.get("description", ""),
                )

        # Fuzzy pass only when nothing matched exactly
        for rule in self.rules:
            fuzzy = fuzzy_match_keywords(
                text,
                rule.get("keywords", []),
                threshold=self.config["fuzzy_threshold"],
                min_keyword_length=self.config["fuzzy_min_keyword_length"],
            )
            if fuzzy:
                keyword, score = fuzzy
                return CategoryMatch(
                    category=rule["category"],
                    confidence=round(score / 100.0, 3),
                    match_method="fuzzy",
                    matched_term=keyword,
                    description=rule.get("description", ""),
                )

        # Large unlabelled deposits lean towards income
        signed = to_decimal(amount)
        threshold = Decimal(str(self.config["income_deposit_threshold"]))
        if signed is not None and signed >= threshold:
            return CategoryMatch(
                category=Category.INCOME,
                confidence=0.60,
                match_method="amount",
                description="Large unlabelled deposit",
            )

        return CategoryMatch(
            category=Category.OTHER,
            confidence=0.0,
            match_method="none",
        )

    def classify(self, merchant: Optional[str], amount=0) -> Category:
        return self.categorize_transaction(merchant, amount).category

    def categorize_transactions(
        self,
        transactions: List[Transaction]
    ) -> List[Tuple[Transaction, CategoryMatch]]:
        """
        Categorize a list of transactions without mutating them.

        Returns:
            List of tuples (transaction, category_match)
        """
        return [
            (txn, self.categorize_transaction(txn.merchant, txn.signed_amount))
            for txn in transactions
        ]

    def get_category_summary(
        self,
        categorized_transactions: List[Tuple[Transaction, CategoryMatch]]
    ) -> Dict[str, Dict]:
        """
        Generate a summary of categorized transactions.

        Returns:
            Dictionary of category name to {"total", "count"}
        """
        summary = defaultdict(lambda: {"total": 0.0, "count": 0})
        for txn, match in categorized_transactions:
            entry = summary[match.category.value]
            entry["total"] += float(txn.amount)
            entry["count"] += 1
        return dict(summary)


_default_categorizer = TransactionCategorizer()


def classify(merchant: Optional[str], amount=0) -> Category:
    """Classify a merchant label with the default rule table."""
    return _default_categorizer.classify(merchant, amount)
