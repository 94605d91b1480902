"""
Income Analysis Module for the Transaction Intelligence Engine.

Measures how steady a user's income is: month-to-month variation of income
totals, and whether deposits arrive from recurring sources on a consistent
cadence (weekly, fortnightly or monthly).
"""

import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from ..categorisation.preprocess import normalize_merchant, to_decimal
from ..models import Transaction
from ..utils_dates import month_key, month_keys_between


@dataclass
class RecurringIncomeSource:
    """Represents a detected recurring income source."""
    merchant_key: str
    amount_avg: float
    frequency_days: float  # Average days between payments
    interval_variation: float  # Std dev / mean of the intervals
    occurrence_count: int
    frequency: str  # 'weekly', 'fortnightly', 'monthly', 'irregular'
    dates: List[datetime] = field(default_factory=list)

    @property
    def is_regular(self) -> bool:
        return self.frequency != "irregular"


class IncomeDetector:
    """Analyzes income-typed transactions for stability and regularity."""

    WEEKLY_MIN_DAYS = 5
    WEEKLY_MAX_DAYS = 9
    FORTNIGHTLY_MIN_DAYS = 11
    FORTNIGHTLY_MAX_DAYS = 17
    MONTHLY_MIN_DAYS = 25
    MONTHLY_MAX_DAYS = 35

    # Max std dev / mean of intervals for a source to count as regular
    MAX_INTERVAL_VARIATION = 0.25

    def __init__(self, min_amount: float = 100.0, min_occurrences: int = 2):
        self.min_amount = min_amount
        self.min_occurrences = min_occurrences

    def monthly_income_totals(
        self,
        transactions: List[Transaction],
        as_of: datetime
    ) -> Dict[str, float]:
        """
        Income totals per calendar month, zero-filled from the first month with
        income through the month of as_of.

        Callers are expected to pass transactions already limited to the
        lookback window. Empty dict when there is no income at all.
        """
        totals = defaultdict(float)
        first_date = None
        for txn in transactions:
            if not txn.is_income or not isinstance(txn.date, datetime):
                continue
            amount = to_decimal(txn.amount)
            if amount is None:
                continue
            totals[month_key(txn.date)] += float(abs(amount))
            if first_date is None or txn.date < first_date:
                first_date = txn.date

        if first_date is None:
            return {}

        return {key: totals.get(key, 0.0) for key in month_keys_between(first_date, as_of)}

    def calculate_income_stability(self, monthly_totals: Dict[str, float]) -> Optional[float]:
        """
        Calculate income stability score based on coefficient of variation.

        Score = 100 - (StdDev / Mean * 100), clamped to 0-100.
        Returns None when fewer than two months are available.
        """
        if len(monthly_totals) < 2:
            return None

        values = list(monthly_totals.values())
        mean_income = statistics.mean(values)
        if mean_income == 0:
            return 0.0

        coefficient_of_variation = statistics.pstdev(values) / mean_income * 100
        return round(max(0.0, min(100.0, 100 - coefficient_of_variation)), 1)

    def find_recurring_income_sources(
        self,
        transactions: List[Transaction]
    ) -> List[RecurringIncomeSource]:
        """Group income deposits by merchant and classify each group's cadence."""
        groups = defaultdict(list)
        for txn in transactions:
            if not txn.is_income or not isinstance(txn.date, datetime):
                continue
            amount = to_decimal(txn.amount)
            if amount is None or float(abs(amount)) < self.min_amount:
                continue
            groups[normalize_merchant(txn.merchant)].append((txn.date, float(abs(amount))))

        sources = []
        for key in sorted(groups):
            deposits = sorted(groups[key])
            if len(deposits) < self.min_occurrences:
                continue
            dates = [d for d, _ in deposits]
            intervals = [
                (later - earlier).total_seconds() / 86400
                for earlier, later in zip(dates, dates[1:])
            ]
            mean_interval = statistics.mean(intervals)
            variation = (
                statistics.pstdev(intervals) / mean_interval if mean_interval > 0 else 1.0
            )
            sources.append(RecurringIncomeSource(
                merchant_key=key,
                amount_avg=round(statistics.mean(a for _, a in deposits), 2),
                frequency_days=round(mean_interval, 1),
                interval_variation=round(variation, 3),
                occurrence_count=len(deposits),
                frequency=self._classify_frequency(mean_interval, variation),
                dates=dates,
            ))
        return sources

    def _classify_frequency(self, mean_interval: float, variation: float) -> str:
        if variation > self.MAX_INTERVAL_VARIATION:
            return "irregular"
        if self.WEEKLY_MIN_DAYS <= mean_interval <= self.WEEKLY_MAX_DAYS:
            return "weekly"
        if self.FORTNIGHTLY_MIN_DAYS <= mean_interval <= self.FORTNIGHTLY_MAX_DAYS:
            return "fortnightly"
        if self.MONTHLY_MIN_DAYS <= mean_interval <= self.MONTHLY_MAX_DAYS:
            return "monthly"
        return "irregular"

    def calculate_income_regularity(self, transactions: List[Transaction]) -> Optional[float]:
        """
        Share of deposit value (0-100) that arrives from regular recurring sources.

        Returns None when fewer than two qualifying deposits exist.
        """
        total = 0.0
        count = 0
        for txn in transactions:
            if not txn.is_income:
                continue
            amount = to_decimal(txn.amount)
            if amount is None or float(abs(amount)) < self.min_amount:
                continue
            total += float(abs(amount))
            count += 1

        if count < 2 or total == 0:
            return None

        regular_total = sum(
            source.amount_avg * source.occurrence_count
            for source in self.find_recurring_income_sources(transactions)
            if source.is_regular
        )
        return round(max(0.0, min(100.0, regular_total / total * 100)), 1)
