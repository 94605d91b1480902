"""
Configuration module for the Transaction Intelligence Engine.

This module contains all configuration dictionaries for classification,
fraud detection and health scoring.
"""

from .engine_config import CLASSIFIER_CONFIG, FRAUD_CONFIG, HEALTH_CONFIG

__all__ = [
    "CLASSIFIER_CONFIG",
    "FRAUD_CONFIG",
    "HEALTH_CONFIG",
]
