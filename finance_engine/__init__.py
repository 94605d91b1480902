"""
Finance Engine - Transaction Intelligence for personal finance.

Categorizes personal transactions, flags likely fraud with an explainable
reason, and maintains a composite financial-health score per user.

Main Components:
    - patterns: Category keyword and regex rules
    - config: Classifier, fraud and health configuration
    - categorisation: Category inference
    - fraud: Heuristic fraud detection
    - income: Income stability analysis
    - scoring: Health features and scoring
    - ingestion: Payload and CSV normalization
    - storage: Repository interface and in-memory store
    - processing: Engine orchestrator and per-user locking
"""

from .models import (
    Budget,
    BudgetPeriod,
    Category,
    FinancialHealth,
    Goal,
    GoalType,
    NotFoundError,
    Transaction,
    TransactionType,
    User,
    ValidationError,
)

# Core engine functions
from .categorisation.engine import TransactionCategorizer, CategoryMatch, classify
from .fraud.detector import FraudDetector, FraudVerdict, evaluate_fraud
from .scoring.health_scorer import FinancialHealthScorer, HealthResult, compute_health

# Orchestration
from .processing.orchestrator import (
    TransactionEngine,
    TransactionOutcome,
    ImportResult,
    ImportStats,
    RowError,
)
from .storage.repository import Repository, InMemoryRepository

# Configuration
from .config.engine_config import CLASSIFIER_CONFIG, FRAUD_CONFIG, HEALTH_CONFIG


__version__ = "1.0.0"
__all__ = [
    # Models
    "Budget",
    "BudgetPeriod",
    "Category",
    "FinancialHealth",
    "Goal",
    "GoalType",
    "NotFoundError",
    "Transaction",
    "TransactionType",
    "User",
    "ValidationError",
    # Engine functions
    "TransactionCategorizer",
    "CategoryMatch",
    "classify",
    "FraudDetector",
    "FraudVerdict",
    "evaluate_fraud",
    "FinancialHealthScorer",
    "HealthResult",
    "compute_health",
    # Orchestration
    "TransactionEngine",
    "TransactionOutcome",
    "ImportResult",
    "ImportStats",
    "RowError",
    "Repository",
    "InMemoryRepository",
    # Configuration
    "CLASSIFIER_CONFIG",
    "FRAUD_CONFIG",
    "HEALTH_CONFIG",
]
