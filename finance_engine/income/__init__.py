"""
Income Analysis Module for the Transaction Intelligence Engine.

Measures income stability through monthly variation and recurring deposit patterns.
"""

from .income_detector import IncomeDetector, RecurringIncomeSource

__all__ = [
    "IncomeDetector",
    "RecurringIncomeSource",
]
