"""
Engine configuration for category inference, fraud detection and health scoring.
Contains thresholds, windows and weights used by the engine components.
"""

# Category classifier
CLASSIFIER_CONFIG = {
    "fallback_label": "Unknown",
    # Fuzzy matching only runs when no keyword/regex rule matched exactly
    "fuzzy_threshold": 85,
    "fuzzy_min_keyword_length": 7,
    # Unmatched credits at or above this amount are treated as income
    "income_deposit_threshold": 500,
}

# Fraud detection heuristics (evaluated in this order, first trigger wins)
FRAUD_CONFIG = {
    "rule_order": [
        "new_merchant_large_amount",
        "velocity",
        "duplicate",
        "outlier_amount",
    ],
    # Rules 1 and 4 need a baseline of at least this many prior transactions
    "min_history_count": 3,
    "new_merchant_multiplier": 3.0,
    "velocity_window_minutes": 60,
    "velocity_max_count": 3,
    "duplicate_window_seconds": 60,
    "duplicate_amount_epsilon": 0.005,
    "outlier_multiplier": 5.0,
}

# Financial health scoring
HEALTH_CONFIG = {
    # Composite weights (must sum to 1.0)
    "weights": {
        "income_stability": 0.20,
        "expense_ratio": 0.20,
        "savings_rate": 0.25,
        "debt_ratio": 0.15,
        "liquidity": 0.20,
    },
    # Sub-score returned for income-based factors when monthly income is zero
    "degraded_score": 25.0,
    # Stability score when only one month of income is available
    "insufficient_data_score": 50.0,
    "stability_lookback_months": 6,
    "stability_weights": {
        "variation": 0.7,
        "regularity": 0.3,
    },
    # Minimum deposit counted for pay-day regularity
    "regularity_min_amount": 100,
    "target_savings_rate": 0.30,
    "max_debt_ratio": 0.50,
    "liquidity_buffer_months": 3,
}
