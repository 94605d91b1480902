"""
Processing Module: the engine orchestrator and per-user serialization.
"""

from .locks import UserLockRegistry
from .orchestrator import (
    TransactionEngine,
    TransactionOutcome,
    ImportStats,
    ImportResult,
    RowError,
)

__all__ = [
    "UserLockRegistry",
    "TransactionEngine",
    "TransactionOutcome",
    "ImportStats",
    "ImportResult",
    "RowError",
]
