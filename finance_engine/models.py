"""
Domain models for the Transaction Intelligence Engine.

Transactions always carry a non-negative amount plus an explicit type;
``signed_amount`` gives the income-positive view used by the categorizer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class ValidationError(ValueError):
    """Raised when a required transaction field is missing or malformed."""

    def __init__(self, field_name: str, message: str):
        super().__init__(f"{field_name}: {message}")
        self.field = field_name
        self.message = message


class NotFoundError(KeyError):
    """Raised when a record id is not present in the repository."""
    pass


class Category(Enum):
    """Closed set of spending and income categories."""
    GROCERIES = "Groceries"
    FOOD_DINING = "Food & Dining"
    TRANSPORTATION = "Transportation"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    UTILITIES = "Utilities"
    HEALTHCARE = "Healthcare"
    HOUSING = "Housing"
    INSURANCE = "Insurance"
    EDUCATION = "Education"
    TRAVEL = "Travel"
    DEBT_PAYMENTS = "Debt Payments"
    INCOME = "Income"
    TRANSFER = "Transfer"
    OTHER = "Other"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "Category":
        """Parse a free-text label; anything unknown maps to OTHER."""
        if not label:
            return cls.OTHER
        wanted = label.strip().lower()
        for member in cls:
            if member.value.lower() == wanted or member.name.lower() == wanted:
                return member
        return cls.OTHER

    @property
    def is_debt_service(self) -> bool:
        return self is Category.DEBT_PAYMENTS


class TransactionType(Enum):
    INCOME = "income"
    EXPENSE = "expense"


class BudgetPeriod(Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class GoalType(Enum):
    EMERGENCY_FUND = "emergency_fund"
    VACATION = "vacation"
    INVESTMENT = "investment"
    DEBT_PAYOFF = "debt_payoff"


@dataclass
class Transaction:
    """A single income or expense record owned by one user."""
    user_id: str
    date: datetime
    amount: Decimal
    merchant: str
    type: TransactionType
    category: Category = Category.OTHER
    is_fraudulent: bool = False
    fraud_reason: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    account_id: Optional[str] = None
    source: str = "manual"
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_income(self) -> bool:
        return self.type is TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type is TransactionType.EXPENSE

    @property
    def signed_amount(self) -> Decimal:
        """Income positive, expense negative."""
        return self.amount if self.is_income else -self.amount

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "date": self.date.isoformat() if self.date else None,
            "amount": str(self.amount),
            "merchant": self.merchant,
            "category": self.category.value,
            "type": self.type.value,
            "isFraudulent": self.is_fraudulent,
            "fraudReason": self.fraud_reason,
            "description": self.description,
            "location": self.location,
            "accountId": self.account_id,
            "source": self.source,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class User:
    username: str
    monthly_income: Decimal = Decimal("0")
    id: Optional[str] = None


@dataclass
class Budget:
    user_id: str
    category: Category
    amount: Decimal
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "category": self.category.value,
            "amount": str(self.amount),
            "period": self.period.value,
        }


@dataclass
class Goal:
    user_id: str
    name: str
    type: GoalType
    target_amount: Decimal
    current_amount: Decimal = Decimal("0")
    deadline: Optional[datetime] = None
    status: str = "active"
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "type": self.type.value,
            "targetAmount": str(self.target_amount),
            "currentAmount": str(self.current_amount),
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "status": self.status,
        }


@dataclass
class FinancialHealth:
    """Current health snapshot for a user; replaced on every recomputation."""
    user_id: str
    score: int = 0
    income_stability: float = 0.0
    expense_ratio: float = 0.0
    savings_rate: float = 0.0
    debt_ratio: float = 0.0
    liquidity: float = 0.0
    degraded_factors: List[str] = field(default_factory=list)
    calculated_at: Optional[datetime] = None
    id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "score": self.score,
            "incomeStability": self.income_stability,
            "expenseRatio": self.expense_ratio,
            "savingsRate": self.savings_rate,
            "debtRatio": self.debt_ratio,
            "liquidity": self.liquidity,
            "degradedFactors": list(self.degraded_factors),
            "calculatedAt": self.calculated_at.isoformat() if self.calculated_at else None,
        }
