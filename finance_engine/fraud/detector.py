"""
Rule-based Fraud Detector for the Transaction Intelligence Engine.

Evaluates a pre-insertion candidate transaction against the owner's stored
history with a fixed battery of heuristics. Rules run in a fixed priority
order and the first one that triggers supplies the reported reason.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from ..categorisation.preprocess import normalize_merchant, to_decimal
from ..config.engine_config import FRAUD_CONFIG
from ..models import Transaction, TransactionType
from ..utils_dates import to_naive

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FraudVerdict:
    """Outcome of a fraud evaluation. ``reason`` is set iff flagged."""
    is_fraudulent: bool = False
    reason: Optional[str] = None
    rule: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "isFraudulent": self.is_fraudulent,
            "reason": self.reason,
            "rule": self.rule,
        }


CLEAN = FraudVerdict()


@dataclass(frozen=True)
class _HistoryEntry:
    merchant_key: str
    amount: Optional[Decimal]
    date: Optional[datetime]
    type: Optional[TransactionType]


class FraudDetector:
    """Deterministic heuristic fraud detector."""

    def __init__(self, config: Optional[Dict] = None):
        self.config = dict(FRAUD_CONFIG)
        if config:
            self.config.update(config)
        self._rules = {
            "new_merchant_large_amount": self._check_new_merchant_large_amount,
            "velocity": self._check_velocity,
            "duplicate": self._check_duplicate,
            "outlier_amount": self._check_outlier_amount,
        }

    def evaluate(self, candidate: Transaction, history: Iterable[Transaction]) -> FraudVerdict:
        """
        Evaluate a candidate transaction against the owner's history.

        Args:
            candidate: Transaction about to be persisted
            history: Stored transactions for the same user, excluding candidate

        Returns:
            FraudVerdict for the first rule that triggers, or a clean verdict
        """
        if isinstance(candidate.date, datetime) and candidate.date.tzinfo is not None:
            candidate = replace(candidate, date=to_naive(candidate.date))
        entries = self._prepare_history(candidate, history)
        amount = to_decimal(candidate.amount)
        if amount is None:
            return CLEAN
        amount = abs(amount)

        for rule_name in self.config["rule_order"]:
            reason = self._rules[rule_name](candidate, amount, entries)
            if reason:
                logger.info(f"Rule '{rule_name}' flagged transaction for user {candidate.user_id}: {reason}")
                return FraudVerdict(is_fraudulent=True, reason=reason, rule=rule_name)

        return CLEAN

    def _prepare_history(
        self,
        candidate: Transaction,
        history: Iterable[Transaction]
    ) -> List[_HistoryEntry]:
        """Snapshot history, dropping other users' rows and the candidate itself."""
        entries = []
        for txn in history:
            if txn.user_id != candidate.user_id:
                continue
            if candidate.id is not None and txn.id == candidate.id:
                continue
            amount = to_decimal(txn.amount)
            entries.append(_HistoryEntry(
                merchant_key=normalize_merchant(txn.merchant),
                amount=abs(amount) if amount is not None else None,
                date=to_naive(txn.date) if isinstance(txn.date, datetime) else None,
                type=txn.type if isinstance(txn.type, TransactionType) else None,
            ))
        return entries

    @staticmethod
    def _expense_amounts(entries: List[_HistoryEntry]) -> List[Decimal]:
        return [
            e.amount for e in entries
            if e.type is TransactionType.EXPENSE and e.amount is not None
        ]

    def _has_baseline(self, entries: List[_HistoryEntry]) -> bool:
        return len(entries) >= self.config["min_history_count"]

    def _check_new_merchant_large_amount(
        self,
        candidate: Transaction,
        amount: Decimal,
        entries: List[_HistoryEntry]
    ) -> Optional[str]:
        if not self._has_baseline(entries):
            return None

        merchant_key = normalize_merchant(candidate.merchant)
        if any(e.merchant_key == merchant_key for e in entries):
            return None

        expenses = self._expense_amounts(entries)
        if not expenses:
            return None
        mean_expense = sum(expenses) / len(expenses)
        multiplier = Decimal(str(self.config["new_merchant_multiplier"]))
        if amount > mean_expense * multiplier:
            return (
                f"New merchant '{candidate.merchant}' with amount {amount:.2f} exceeds "
                f"{multiplier}x the average expense of {mean_expense:.2f}"
            )
        return None

    def _check_velocity(
        self,
        candidate: Transaction,
        amount: Decimal,
        entries: List[_HistoryEntry]
    ) -> Optional[str]:
        if not isinstance(candidate.date, datetime):
            return None

        window_minutes = self.config["velocity_window_minutes"]
        window_start = candidate.date - timedelta(minutes=window_minutes)
        merchant_key = normalize_merchant(candidate.merchant)
        recent = sum(
            1 for e in entries
            if e.merchant_key == merchant_key
            and e.date is not None
            and window_start <= e.date <= candidate.date
        )
        if recent >= self.config["velocity_max_count"]:
            return (
                f"Velocity anomaly: {recent + 1} transactions at '{candidate.merchant}' "
                f"within {window_minutes} minutes"
            )
        return None

    def _check_duplicate(
        self,
        candidate: Transaction,
        amount: Decimal,
        entries: List[_HistoryEntry]
    ) -> Optional[str]:
        if not isinstance(candidate.date, datetime):
            return None

        window = timedelta(seconds=self.config["duplicate_window_seconds"])
        epsilon = Decimal(str(self.config["duplicate_amount_epsilon"]))
        merchant_key = normalize_merchant(candidate.merchant)
        gaps = []
        for e in entries:
            if e.merchant_key != merchant_key or e.amount is None or e.date is None:
                continue
            if e.type is not None and e.type is not candidate.type:
                continue
            gap = abs(e.date - candidate.date)
            if abs(e.amount - amount) <= epsilon and gap <= window:
                gaps.append(gap)
        if not gaps:
            return None

        # Report the closest match so the reason does not depend on history order
        seconds = int(min(gaps).total_seconds())
        return (
            f"Possible duplicate: {amount:.2f} at '{candidate.merchant}' "
            f"already recorded {seconds} seconds apart"
        )

    def _check_outlier_amount(
        self,
        candidate: Transaction,
        amount: Decimal,
        entries: List[_HistoryEntry]
    ) -> Optional[str]:
        if not self._has_baseline(entries):
            return None

        expenses = self._expense_amounts(entries)
        if not expenses:
            return None
        ceiling = max(expenses) * Decimal(str(self.config["outlier_multiplier"]))
        if amount > ceiling:
            return (
                f"Outlier amount {amount:.2f} exceeds ceiling of {ceiling:.2f} "
                f"based on largest previous expense"
            )
        return None


_default_detector = FraudDetector()


def evaluate_fraud(candidate: Transaction, history: Iterable[Transaction]) -> FraudVerdict:
    """Evaluate a candidate with the default fraud configuration."""
    return _default_detector.evaluate(candidate, history)
