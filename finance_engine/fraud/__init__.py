"""
Fraud Detection Module for the Transaction Intelligence Engine.

Heuristic, explainable fraud verdicts for single candidate transactions.
"""

from .detector import FraudDetector, FraudVerdict, evaluate_fraud

__all__ = [
    "FraudDetector",
    "FraudVerdict",
    "evaluate_fraud",
]
