"""
Scoring Module for financial health.

Contains feature aggregation from transactions and the health scoring logic.
"""

# Import from feature_builder
from .feature_builder import (
    MonthMetrics,
    IncomeMetrics,
    BalanceMetrics,
    HealthFeatures,
    MetricsCalculator,
)

# Import from health_scorer
from .health_scorer import (
    HealthResult,
    FinancialHealthScorer,
    compute_health,
)

__all__ = [
    # Feature builder exports
    "MonthMetrics",
    "IncomeMetrics",
    "BalanceMetrics",
    "HealthFeatures",
    "MetricsCalculator",
    # Health scorer exports
    "HealthResult",
    "FinancialHealthScorer",
    "compute_health",
]
