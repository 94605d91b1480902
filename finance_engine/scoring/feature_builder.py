"""
Financial Feature Builder for health scoring.
Aggregates a user's transactions into the monthly figures the scorer needs.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from ..categorisation.preprocess import to_decimal
from ..config.engine_config import HEALTH_CONFIG
from ..income.income_detector import IncomeDetector
from ..models import Transaction
from ..utils_dates import month_key, month_start_end, shift_month, to_naive

# Initialize logger for this module
logger = logging.getLogger(__name__)


@dataclass
class MonthMetrics:
    """Totals for the calendar month being scored."""
    month: str = ""
    total_income: float = 0.0
    total_expense: float = 0.0
    debt_service: float = 0.0
    transaction_count: int = 0


@dataclass
class IncomeMetrics:
    """Income stability inputs across the lookback window."""
    monthly_totals: Dict[str, float] = field(default_factory=dict)
    variation_score: Optional[float] = None  # 0-100, None if < 2 months
    regularity_score: Optional[float] = None  # 0-100, None if < 2 deposits
    has_income: bool = False


@dataclass
class BalanceMetrics:
    """Cumulative balance and spending level."""
    net_balance: float = 0.0
    average_monthly_expense: float = 0.0


@dataclass
class HealthFeatures:
    month: MonthMetrics = field(default_factory=MonthMetrics)
    income: IncomeMetrics = field(default_factory=IncomeMetrics)
    balance: BalanceMetrics = field(default_factory=BalanceMetrics)


class MetricsCalculator:
    """Calculates health features from a user's transactions."""

    def __init__(self, config: Optional[Dict] = None, income_detector: Optional[IncomeDetector] = None):
        self.config = dict(HEALTH_CONFIG)
        if config:
            self.config.update(config)
        self.lookback_months = self.config["stability_lookback_months"]
        self.income_detector = income_detector or IncomeDetector(
            min_amount=self.config["regularity_min_amount"]
        )

    @staticmethod
    def _usable(transactions: Iterable[Transaction]) -> List[Transaction]:
        """Drop rows whose date or amount cannot be interpreted; dates come back naive."""
        usable = []
        for txn in transactions:
            if not isinstance(txn.date, datetime) or to_decimal(txn.amount) is None:
                logger.debug(f"Skipping unusable transaction {txn.id} in health features")
                continue
            if txn.date.tzinfo is not None:
                txn = replace(txn, date=to_naive(txn.date))
            usable.append(txn)
        return usable

    def calculate_all_metrics(self, transactions: Iterable[Transaction], as_of: datetime) -> HealthFeatures:
        """
        Build every feature for the month containing as_of.

        Args:
            transactions: All of one user's transactions
            as_of: Reference moment; its calendar month is the scoring window

        Returns:
            HealthFeatures
        """
        as_of = to_naive(as_of)
        usable = self._usable(transactions)
        month_start, month_end = month_start_end(as_of.year, as_of.month)
        lookback_year, lookback_month = shift_month(as_of.year, as_of.month, -(self.lookback_months - 1))
        lookback_start, _ = month_start_end(lookback_year, lookback_month)

        current_month = [t for t in usable if month_start <= t.date < month_end]
        lookback = [t for t in usable if lookback_start <= t.date < month_end]
        to_date = [t for t in usable if t.date < month_end]

        return HealthFeatures(
            month=self.calculate_month_metrics(current_month, as_of),
            income=self.calculate_income_metrics(lookback, as_of),
            balance=self.calculate_balance_metrics(to_date, lookback),
        )

    def calculate_month_metrics(self, transactions: List[Transaction], as_of: datetime) -> MonthMetrics:
        metrics = MonthMetrics(month=month_key(as_of), transaction_count=len(transactions))
        for txn in transactions:
            amount = float(abs(to_decimal(txn.amount)))
            if txn.is_income:
                metrics.total_income += amount
            else:
                metrics.total_expense += amount
                if txn.category.is_debt_service:
                    metrics.debt_service += amount
        return metrics

    def calculate_income_metrics(self, transactions: List[Transaction], as_of: datetime) -> IncomeMetrics:
        monthly_totals = self.income_detector.monthly_income_totals(transactions, as_of)
        return IncomeMetrics(
            monthly_totals=monthly_totals,
            variation_score=self.income_detector.calculate_income_stability(monthly_totals),
            regularity_score=self.income_detector.calculate_income_regularity(transactions),
            has_income=bool(monthly_totals),
        )

    def calculate_balance_metrics(
        self,
        to_date: List[Transaction],
        lookback: List[Transaction]
    ) -> BalanceMetrics:
        """
        Net cumulative balance up to the scoring month, and the average monthly
        expense over lookback months that contain any expense.
        """
        net = 0.0
        for txn in to_date:
            amount = float(abs(to_decimal(txn.amount)))
            net += amount if txn.is_income else -amount

        monthly_expense = defaultdict(float)
        for txn in lookback:
            if txn.is_expense:
                monthly_expense[month_key(txn.date)] += float(abs(to_decimal(txn.amount)))

        average = sum(monthly_expense.values()) / len(monthly_expense) if monthly_expense else 0.0
        return BalanceMetrics(net_balance=round(net, 2), average_monthly_expense=round(average, 2))
