"""
Transaction Engine orchestrating categorization, fraud detection, persistence
and health recomputation for every mutating event.

Single entries, CSV imports and receipt imports all run
classify -> evaluate fraud -> persist per record, holding the owner's lock,
and recompute the health snapshot once per call.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Union

from ..categorisation.engine import TransactionCategorizer
from ..fraud.detector import FraudDetector, FraudVerdict
from ..ingestion.csv_reader import read_transaction_rows
from ..ingestion.normalizer import normalize_transaction
from ..models import (
    Category,
    FinancialHealth,
    NotFoundError,
    Transaction,
    ValidationError,
)
from ..scoring.health_scorer import FinancialHealthScorer
from ..storage.repository import Repository
from .locks import UserLockRegistry

logger = logging.getLogger(__name__)


@dataclass
class TransactionOutcome:
    """Persisted transaction, its fraud verdict and the refreshed snapshot."""
    transaction: Transaction
    verdict: FraudVerdict
    health: Optional[FinancialHealth] = None

    def to_dict(self) -> Dict:
        return {
            "transaction": self.transaction.to_dict(),
            "fraudCheck": self.verdict.to_dict(),
            "health": self.health.to_dict() if self.health else None,
        }


@dataclass
class RowError:
    """Details of a rejected import row."""
    row_number: int  # 1-based position among data rows
    error_type: str
    error_message: str
    field: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "row": self.row_number,
            "errorType": self.error_type,
            "field": self.field,
            "message": self.error_message,
        }


@dataclass
class ImportStats:
    """Statistics for a batch import."""
    total_rows: int = 0
    created: int = 0
    fraudulent: int = 0
    rejected: int = 0

    # Timing
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def processing_time(self) -> float:
        """Calculate total processing time in seconds."""
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return 0.0


@dataclass
class ImportResult:
    """Complete result of a batch import. Created rows are never rolled back."""
    stats: ImportStats
    transactions: List[Transaction] = field(default_factory=list)
    fraudulent: List[Transaction] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)
    error_summary: Dict[str, int] = field(default_factory=dict)
    health: Optional[FinancialHealth] = None

    def to_dict(self) -> Dict:
        return {
            "count": self.stats.created,
            "fraudCount": self.stats.fraudulent,
            "rejectedCount": self.stats.rejected,
            "transactions": [t.to_dict() for t in self.transactions],
            "fraudulent": [t.to_dict() for t in self.fraudulent],
            "errors": [e.to_dict() for e in self.errors],
            "errorSummary": dict(self.error_summary),
            "health": self.health.to_dict() if self.health else None,
        }


class TransactionEngine:
    """Entry point the application layer calls for every mutating event."""

    EDITABLE_FIELDS = {"category", "description"}

    def __init__(
        self,
        repository: Repository,
        categorizer: Optional[TransactionCategorizer] = None,
        fraud_detector: Optional[FraudDetector] = None,
        health_scorer: Optional[FinancialHealthScorer] = None,
        clock: Optional[Callable[[], datetime]] = None,
        locks: Optional[UserLockRegistry] = None,
    ):
        self.repository = repository
        self.categorizer = categorizer or TransactionCategorizer()
        self.fraud_detector = fraud_detector or FraudDetector()
        self.health_scorer = health_scorer or FinancialHealthScorer()
        self.clock = clock or datetime.now
        self.locks = locks or UserLockRegistry()

    def create_transaction(self, user_id: str, payload: Dict, source: str = "manual") -> TransactionOutcome:
        """
        Create one transaction.

        Raises:
            ValidationError: missing or malformed merchant, amount or date
        """
        candidate = normalize_transaction(user_id, payload, source=source)
        with self.locks.hold(user_id):
            transaction, verdict = self._ingest(candidate)
            health = self.recalculate_health(user_id)
        return TransactionOutcome(transaction=transaction, verdict=verdict, health=health)

    def import_csv(
        self,
        user_id: str,
        content: Union[str, bytes],
        filename: Optional[str] = None
    ) -> ImportResult:
        """
        Import a CSV file row by row in file order.

        Malformed rows are rejected and reported without aborting the batch.

        Raises:
            ValidationError: the file as a whole cannot be read
        """
        rows = read_transaction_rows(content)
        return self._import_batch(user_id, rows, source="csv", label=filename or "csv upload")

    def import_receipt(self, user_id: str, extracted: Union[Dict, List[Dict]]) -> ImportResult:
        """
        Import transactions extracted from a receipt image by an OCR collaborator.

        Accepts a single candidate, a list of candidates, or an object with a
        'transactions' key.
        """
        if isinstance(extracted, dict) and isinstance(extracted.get("transactions"), list):
            records = extracted["transactions"]
        elif isinstance(extracted, list):
            records = extracted
        elif isinstance(extracted, dict):
            records = [extracted]
        else:
            raise ValidationError("receipt", "expected an object or a list of objects")
        return self._import_batch(user_id, records, source="receipt", label="receipt")

    def update_transaction(self, transaction_id: str, updates: Dict) -> Transaction:
        """
        Apply a user edit. Only category and description may change.

        Raises:
            NotFoundError: unknown transaction id
            ValidationError: a non-editable field or an unknown category
        """
        blocked = set(updates) - self.EDITABLE_FIELDS
        if blocked:
            raise ValidationError(sorted(blocked)[0], "field cannot be edited")

        existing = self.repository.get_transaction(transaction_id)
        if existing is None:
            raise NotFoundError(transaction_id)

        changes = {}
        if "category" in updates:
            category = Category.from_label(updates["category"])
            if category is Category.OTHER and str(updates["category"]).strip().lower() != "other":
                raise ValidationError("category", f"unknown category '{updates['category']}'")
            changes["category"] = category
        if "description" in updates:
            changes["description"] = updates["description"]

        with self.locks.hold(existing.user_id):
            updated = self.repository.update_transaction(transaction_id, changes)
            if updated is None:
                raise NotFoundError(transaction_id)
            self.recalculate_health(existing.user_id)
        return updated

    def delete_transaction(self, transaction_id: str) -> None:
        """
        Raises:
            NotFoundError: unknown transaction id
        """
        existing = self.repository.get_transaction(transaction_id)
        if existing is None:
            raise NotFoundError(transaction_id)

        with self.locks.hold(existing.user_id):
            if not self.repository.delete_transaction(transaction_id):
                raise NotFoundError(transaction_id)
            self.recalculate_health(existing.user_id)

    def recalculate_health(self, user_id: str) -> FinancialHealth:
        """Re-read the user's full history, score it and upsert the snapshot."""
        with self.locks.hold(user_id):
            user = self.repository.get_user(user_id)
            monthly_income = user.monthly_income if user else 0
            if user is None:
                logger.warning(f"No user record for {user_id}; scoring with zero income")

            history = self.repository.list_transactions_for_user(user_id)
            result = self.health_scorer.score(history, monthly_income, as_of=self.clock())
            snapshot = self.repository.upsert_health_snapshot(user_id, {
                **result.sub_scores(),
                "score": result.score,
                "degraded_factors": list(result.degraded_factors),
            })
            logger.debug(f"Recalculated health for {user_id}: score={result.score}")
            return snapshot

    def _ingest(self, candidate: Transaction):
        """Classify, evaluate and persist one candidate. Caller holds the user lock."""
        if candidate.category is Category.OTHER:
            candidate.category = self.categorizer.classify(candidate.merchant, candidate.signed_amount)

        history = self.repository.list_transactions_for_user(candidate.user_id)
        verdict = self.fraud_detector.evaluate(candidate, history)
        candidate.is_fraudulent = verdict.is_fraudulent
        candidate.fraud_reason = verdict.reason

        return self.repository.create_transaction(candidate), verdict

    def _import_batch(self, user_id: str, records: List[Dict], source: str, label: str) -> ImportResult:
        if not user_id:
            raise ValidationError("userId", "userId is required")

        stats = ImportStats(total_rows=len(records), start_time=datetime.now())
        result = ImportResult(stats=stats)
        logger.info(f"Starting {source} import of {len(records)} rows from {label} for user {user_id}")

        with self.locks.hold(user_id):
            try:
                for row_number, record in enumerate(records, start=1):
                    try:
                        if not isinstance(record, dict):
                            raise ValidationError("row", "row is not an object")
                        candidate = normalize_transaction(user_id, record, source=source)
                    except ValidationError as e:
                        result.errors.append(RowError(
                            row_number=row_number,
                            error_type="VALIDATION_ERROR",
                            error_message=e.message,
                            field=e.field,
                        ))
                        result.error_summary["VALIDATION_ERROR"] = result.error_summary.get("VALIDATION_ERROR", 0) + 1
                        stats.rejected += 1
                        logger.warning(f"Rejected row {row_number} of {label}: {e}")
                        continue

                    transaction, verdict = self._ingest(candidate)
                    result.transactions.append(transaction)
                    stats.created += 1
                    if verdict.is_fraudulent:
                        result.fraudulent.append(transaction)
                        stats.fraudulent += 1
            except Exception:
                logger.exception(f"Import of {label} stopped after {stats.created} created rows")
                raise
            finally:
                result.health = self.recalculate_health(user_id)

        stats.end_time = datetime.now()
        logger.info(
            f"Import complete: {stats.created}/{stats.total_rows} created, "
            f"{stats.fraudulent} flagged, {stats.rejected} rejected, time: {stats.processing_time:.2f}s"
        )
        return result
