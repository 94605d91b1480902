"""
Record store interface and an in-memory implementation.

The engine only depends on the abstract Repository, so a transactional
database can replace the in-memory store without touching engine code.
Records handed out are copies; callers mutate state only through the
repository methods.
"""

import copy
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from ..models import Budget, FinancialHealth, Goal, Transaction, User


class Repository(ABC):
    """Capability set the engine and application layer rely on."""

    # Users
    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    def create_user(self, user: User) -> User: ...

    # Transactions
    @abstractmethod
    def get_transaction(self, transaction_id: str) -> Optional[Transaction]: ...

    @abstractmethod
    def list_transactions_for_user(self, user_id: str) -> List[Transaction]: ...

    @abstractmethod
    def list_transactions_in_range(self, user_id: str, start: datetime, end: datetime) -> List[Transaction]: ...

    @abstractmethod
    def create_transaction(self, transaction: Transaction) -> Transaction: ...

    @abstractmethod
    def update_transaction(self, transaction_id: str, updates: Dict) -> Optional[Transaction]: ...

    @abstractmethod
    def delete_transaction(self, transaction_id: str) -> bool: ...

    # Budgets
    @abstractmethod
    def get_budget(self, budget_id: str) -> Optional[Budget]: ...

    @abstractmethod
    def list_budgets_for_user(self, user_id: str) -> List[Budget]: ...

    @abstractmethod
    def create_budget(self, budget: Budget) -> Budget: ...

    @abstractmethod
    def update_budget(self, budget_id: str, updates: Dict) -> Optional[Budget]: ...

    @abstractmethod
    def delete_budget(self, budget_id: str) -> bool: ...

    # Goals
    @abstractmethod
    def get_goal(self, goal_id: str) -> Optional[Goal]: ...

    @abstractmethod
    def list_goals_for_user(self, user_id: str) -> List[Goal]: ...

    @abstractmethod
    def create_goal(self, goal: Goal) -> Goal: ...

    @abstractmethod
    def update_goal(self, goal_id: str, updates: Dict) -> Optional[Goal]: ...

    @abstractmethod
    def delete_goal(self, goal_id: str) -> bool: ...

    # Financial health
    @abstractmethod
    def get_health_snapshot(self, user_id: str) -> Optional[FinancialHealth]: ...

    @abstractmethod
    def upsert_health_snapshot(self, user_id: str, metrics: Dict) -> FinancialHealth: ...


class InMemoryRepository(Repository):
    """Process-local store keyed by record id."""

    def __init__(self):
        self._lock = threading.RLock()
        self._users: Dict[str, User] = {}
        self._transactions: Dict[str, Transaction] = {}
        self._budgets: Dict[str, Budget] = {}
        self._goals: Dict[str, Goal] = {}
        self._health: Dict[str, FinancialHealth] = {}

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _apply(record, updates: Dict):
        for key, value in updates.items():
            if not hasattr(record, key) or key == "id":
                raise ValueError(f"Unknown field '{key}' for {type(record).__name__}")
            setattr(record, key, value)
        return record

    def _update(self, table: Dict, record_id: str, updates: Dict):
        with self._lock:
            record = table.get(record_id)
            if record is None:
                return None
            updated = self._apply(copy.deepcopy(record), updates)
            table[record_id] = updated
            return copy.deepcopy(updated)

    def _delete(self, table: Dict, record_id: str) -> bool:
        with self._lock:
            return table.pop(record_id, None) is not None

    # Users
    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            return copy.deepcopy(self._users.get(user_id))

    def create_user(self, user: User) -> User:
        with self._lock:
            stored = copy.deepcopy(user)
            stored.id = stored.id or self._new_id()
            self._users[stored.id] = stored
            return copy.deepcopy(stored)

    # Transactions
    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        with self._lock:
            return copy.deepcopy(self._transactions.get(transaction_id))

    def list_transactions_for_user(self, user_id: str) -> List[Transaction]:
        """Transactions for a user, most recent first."""
        with self._lock:
            rows = [copy.deepcopy(t) for t in self._transactions.values() if t.user_id == user_id]
        return sorted(rows, key=lambda t: t.date, reverse=True)

    def list_transactions_in_range(self, user_id: str, start: datetime, end: datetime) -> List[Transaction]:
        """Transactions with start <= date <= end, most recent first."""
        return [t for t in self.list_transactions_for_user(user_id) if start <= t.date <= end]

    def create_transaction(self, transaction: Transaction) -> Transaction:
        with self._lock:
            stored = copy.deepcopy(transaction)
            stored.id = self._new_id()
            stored.created_at = datetime.now()
            self._transactions[stored.id] = stored
            return copy.deepcopy(stored)

    def update_transaction(self, transaction_id: str, updates: Dict) -> Optional[Transaction]:
        return self._update(self._transactions, transaction_id, updates)

    def delete_transaction(self, transaction_id: str) -> bool:
        return self._delete(self._transactions, transaction_id)

    # Budgets
    def get_budget(self, budget_id: str) -> Optional[Budget]:
        with self._lock:
            return copy.deepcopy(self._budgets.get(budget_id))

    def list_budgets_for_user(self, user_id: str) -> List[Budget]:
        with self._lock:
            return [copy.deepcopy(b) for b in self._budgets.values() if b.user_id == user_id]

    def create_budget(self, budget: Budget) -> Budget:
        with self._lock:
            stored = copy.deepcopy(budget)
            stored.id = self._new_id()
            stored.created_at = datetime.now()
            self._budgets[stored.id] = stored
            return copy.deepcopy(stored)

    def update_budget(self, budget_id: str, updates: Dict) -> Optional[Budget]:
        return self._update(self._budgets, budget_id, updates)

    def delete_budget(self, budget_id: str) -> bool:
        return self._delete(self._budgets, budget_id)

    # Goals
    def get_goal(self, goal_id: str) -> Optional[Goal]:
        with self._lock:
            return copy.deepcopy(self._goals.get(goal_id))

    def list_goals_for_user(self, user_id: str) -> List[Goal]:
        with self._lock:
            return [copy.deepcopy(g) for g in self._goals.values() if g.user_id == user_id]

    def create_goal(self, goal: Goal) -> Goal:
        with self._lock:
            stored = copy.deepcopy(goal)
            stored.id = self._new_id()
            stored.status = "active"
            stored.created_at = datetime.now()
            self._goals[stored.id] = stored
            return copy.deepcopy(stored)

    def update_goal(self, goal_id: str, updates: Dict) -> Optional[Goal]:
        return self._update(self._goals, goal_id, updates)

    def delete_goal(self, goal_id: str) -> bool:
        return self._delete(self._goals, goal_id)

    # Financial health
    def get_health_snapshot(self, user_id: str) -> Optional[FinancialHealth]:
        with self._lock:
            return copy.deepcopy(self._health.get(user_id))

    def upsert_health_snapshot(self, user_id: str, metrics: Dict) -> FinancialHealth:
        """Replace the user's snapshot wholesale, keeping its id."""
        with self._lock:
            existing = self._health.get(user_id)
            snapshot = FinancialHealth(
                user_id=user_id,
                id=existing.id if existing else self._new_id(),
                calculated_at=datetime.now(),
                **metrics,
            )
            self._health[user_id] = snapshot
            return copy.deepcopy(snapshot)
