"""
Financial Health Scorer.
Combines five normalized sub-scores into a weighted 0-100 composite.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from ..categorisation.preprocess import to_decimal
from ..config.engine_config import HEALTH_CONFIG
from ..models import Transaction
from .feature_builder import HealthFeatures, MetricsCalculator

logger = logging.getLogger(__name__)


SUB_SCORES = (
    "income_stability",
    "expense_ratio",
    "savings_rate",
    "debt_ratio",
    "liquidity",
)


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


@dataclass
class HealthResult:
    """Complete health scoring result for a user."""
    score: int = 0
    income_stability: float = 0.0
    expense_ratio: float = 0.0
    savings_rate: float = 0.0
    debt_ratio: float = 0.0
    liquidity: float = 0.0

    # Factors computed from zero or insufficient input
    degraded_factors: List[str] = field(default_factory=list)
    breakdown: Dict = field(default_factory=dict)

    def sub_scores(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in SUB_SCORES}

    def to_dict(self) -> Dict:
        return {
            "score": self.score,
            "incomeStability": self.income_stability,
            "expenseRatio": self.expense_ratio,
            "savingsRate": self.savings_rate,
            "debtRatio": self.debt_ratio,
            "liquidity": self.liquidity,
            "degradedFactors": list(self.degraded_factors),
        }


class FinancialHealthScorer:
    """Scores a user's financial health from transaction history and income."""

    def __init__(self, config: Optional[Dict] = None):
        """Initialize the scorer with configuration."""
        self.config = dict(HEALTH_CONFIG)
        if config:
            self.config.update(config)
        self.weights = self.config["weights"]
        total_weight = sum(self.weights.values())
        if abs(total_weight - 1.0) > 1e-9:
            raise ValueError(f"Health weights must sum to 1.0, got {total_weight}")
        self.calculator = MetricsCalculator(config=self.config)

    def score(
        self,
        transactions: Iterable[Transaction],
        monthly_income,
        as_of: Optional[datetime] = None
    ) -> HealthResult:
        """
        Score a user's financial health.

        Args:
            transactions: All of one user's transactions
            monthly_income: Stated monthly income; zero or None degrades the
                income-based factors instead of failing
            as_of: Reference moment, defaults to now

        Returns:
            HealthResult with sub-scores and composite
        """
        as_of = as_of or datetime.now()
        income = to_decimal(monthly_income)
        income = float(income) if income is not None and income > 0 else 0.0

        features = self.calculator.calculate_all_metrics(transactions, as_of)
        result = HealthResult()
        degraded = []

        result.income_stability = self._score_income_stability(features, degraded)
        if income > 0:
            result.expense_ratio = self._score_expense_ratio(features, income)
            result.savings_rate = self._score_savings_rate(features, income)
            result.debt_ratio = self._score_debt_ratio(features, income)
        else:
            for name in ("expense_ratio", "savings_rate", "debt_ratio"):
                setattr(result, name, self.config["degraded_score"])
                degraded.append(name)
        result.liquidity = self._score_liquidity(features)

        composite = sum(self.weights[name] * getattr(result, name) for name in SUB_SCORES)
        result.score = int(round(clamp(composite)))
        result.degraded_factors = degraded
        result.breakdown = {
            "month": features.month.month,
            "monthly_income": income,
            "month_expense": round(features.month.total_expense, 2),
            "month_debt_service": round(features.month.debt_service, 2),
            "net_balance": features.balance.net_balance,
            "average_monthly_expense": features.balance.average_monthly_expense,
            "income_months": len(features.income.monthly_totals),
        }

        logger.debug(f"Health score {result.score} for month {features.month.month}, degraded={degraded}")
        return result

    def _score_income_stability(self, features: HealthFeatures, degraded: List[str]) -> float:
        income = features.income
        if not income.has_income:
            degraded.append("income_stability")
            return 0.0
        if income.variation_score is None:
            degraded.append("income_stability")
            return self.config["insufficient_data_score"]

        weights = self.config["stability_weights"]
        regularity = income.regularity_score
        if regularity is None:
            regularity = self.config["insufficient_data_score"]
        blended = weights["variation"] * income.variation_score + weights["regularity"] * regularity
        return round(clamp(blended), 1)

    def _score_expense_ratio(self, features: HealthFeatures, income: float) -> float:
        ratio = features.month.total_expense / income
        return round(clamp(100 - ratio * 100), 1)

    def _score_savings_rate(self, features: HealthFeatures, income: float) -> float:
        rate = (income - features.month.total_expense) / income
        return round(clamp(rate / self.config["target_savings_rate"] * 100), 1)

    def _score_debt_ratio(self, features: HealthFeatures, income: float) -> float:
        ratio = features.month.debt_service / income
        return round(clamp(100 - ratio / self.config["max_debt_ratio"] * 100), 1)

    def _score_liquidity(self, features: HealthFeatures) -> float:
        balance = features.balance
        target = self.config["liquidity_buffer_months"] * balance.average_monthly_expense
        if target <= 0:
            return 100.0 if balance.net_balance > 0 else 0.0
        return round(clamp(balance.net_balance / target * 100), 1)


_default_scorer = FinancialHealthScorer()


def compute_health(transactions: Iterable[Transaction], monthly_income, as_of: Optional[datetime] = None) -> HealthResult:
    """Score health with the default configuration."""
    return _default_scorer.score(transactions, monthly_income, as_of)
