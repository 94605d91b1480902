"""
Test suite for the heuristic fraud detector.

Each rule is exercised on its own, then together to check priority order,
determinism and tolerance of malformed history rows.
"""

import unittest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from finance_engine.fraud.detector import FraudDetector, evaluate_fraud
from finance_engine.models import Transaction, TransactionType


NOW = datetime(2024, 3, 20, 12, 0, 0)


def make_txn(merchant, amount, date, txn_type=TransactionType.EXPENSE, user_id="user-1", txn_id=None):
    return Transaction(
        user_id=user_id,
        date=date,
        amount=Decimal(str(amount)),
        merchant=merchant,
        type=txn_type,
        id=txn_id,
    )


def small_history(user_id="user-1"):
    """Three ordinary $20 expenses spread over the previous week."""
    return [
        make_txn("Corner Store", 20, NOW - timedelta(days=7), user_id=user_id, txn_id="h1"),
        make_txn("Whole Foods", 20, NOW - timedelta(days=5), user_id=user_id, txn_id="h2"),
        make_txn("Shell", 20, NOW - timedelta(days=2), user_id=user_id, txn_id="h3"),
    ]


class TestNewMerchantRule(unittest.TestCase):

    def setUp(self):
        self.detector = FraudDetector()

    def test_no_history_is_never_flagged(self):
        candidate = make_txn("Unknown Merchant XYZ", "999.99", NOW)
        verdict = self.detector.evaluate(candidate, [])

        self.assertFalse(verdict.is_fraudulent)
        self.assertIsNone(verdict.reason)
        self.assertIsNone(verdict.rule)

    def test_short_history_is_not_a_baseline(self):
        candidate = make_txn("Unknown Merchant XYZ", "999.99", NOW)
        verdict = self.detector.evaluate(candidate, small_history()[:2])
        self.assertFalse(verdict.is_fraudulent)

    def test_large_amount_at_new_merchant(self):
        candidate = make_txn("Unknown Merchant XYZ", "999.99", NOW)
        verdict = self.detector.evaluate(candidate, small_history())

        self.assertTrue(verdict.is_fraudulent)
        self.assertEqual(verdict.rule, "new_merchant_large_amount")
        self.assertIn("Unknown Merchant XYZ", verdict.reason)
        self.assertIn("999.99", verdict.reason)

    def test_modest_amount_at_new_merchant(self):
        candidate = make_txn("New Bakery", "45.00", NOW)
        self.assertFalse(self.detector.evaluate(candidate, small_history()).is_fraudulent)

    def test_large_income_from_new_source(self):
        candidate = make_txn("New Employer Ltd", "4000", NOW, txn_type=TransactionType.INCOME)
        verdict = self.detector.evaluate(candidate, small_history())

        self.assertTrue(verdict.is_fraudulent)
        self.assertEqual(verdict.rule, "new_merchant_large_amount")
        self.assertIn("New Employer Ltd", verdict.reason)

    def test_merchant_comparison_ignores_case(self):
        candidate = make_txn("  whole   FOODS ", "55.00", NOW)
        verdict = self.detector.evaluate(candidate, small_history())
        self.assertFalse(verdict.is_fraudulent)


class TestVelocityRule(unittest.TestCase):

    def setUp(self):
        self.detector = FraudDetector()

    def test_burst_at_same_merchant(self):
        """Five coffee purchases in the past hour, then a sixth."""
        history = [
            make_txn("Coffee Shop", 5, NOW - timedelta(minutes=minutes), txn_id=f"c{minutes}")
            for minutes in (50, 40, 30, 20, 10)
        ]
        candidate = make_txn("Coffee Shop", 5, NOW)
        verdict = self.detector.evaluate(candidate, history)

        self.assertTrue(verdict.is_fraudulent)
        self.assertEqual(verdict.rule, "velocity")
        self.assertIn("6 transactions", verdict.reason)
        self.assertIn("Coffee Shop", verdict.reason)

    def test_below_threshold(self):
        history = [
            make_txn("Coffee Shop", 5, NOW - timedelta(minutes=30), txn_id="c1"),
            make_txn("Coffee Shop", 5, NOW - timedelta(minutes=20), txn_id="c2"),
        ]
        verdict = self.detector.evaluate(make_txn("Coffee Shop", 5, NOW), history)
        self.assertFalse(verdict.is_fraudulent)

    def test_older_activity_outside_window(self):
        history = [
            make_txn("Coffee Shop", 5, NOW - timedelta(hours=hours), txn_id=f"c{hours}")
            for hours in (2, 3, 4, 5)
        ]
        verdict = self.detector.evaluate(make_txn("Coffee Shop", 5, NOW), history)
        self.assertFalse(verdict.is_fraudulent)


class TestDuplicateRule(unittest.TestCase):

    def setUp(self):
        self.detector = FraudDetector()

    def test_same_amount_seconds_apart(self):
        history = [make_txn("Acme Corp", "50.00", NOW, txn_id="a1")]
        candidate = make_txn("Acme Corp", "50.00", NOW + timedelta(seconds=10))
        verdict = self.detector.evaluate(candidate, history)

        self.assertTrue(verdict.is_fraudulent)
        self.assertEqual(verdict.rule, "duplicate")
        self.assertIn("10 seconds", verdict.reason)

    def test_outside_window(self):
        history = [make_txn("Acme Corp", "50.00", NOW, txn_id="a1")]
        candidate = make_txn("Acme Corp", "50.00", NOW + timedelta(seconds=120))
        self.assertFalse(self.detector.evaluate(candidate, history).is_fraudulent)

    def test_different_amount(self):
        history = [make_txn("Acme Corp", "50.00", NOW, txn_id="a1")]
        candidate = make_txn("Acme Corp", "50.01", NOW + timedelta(seconds=10))
        self.assertFalse(self.detector.evaluate(candidate, history).is_fraudulent)

    def test_refund_is_not_a_duplicate_charge(self):
        history = [make_txn("Acme Corp", "50.00", NOW, txn_id="a1")]
        candidate = make_txn("Acme Corp", "50.00", NOW + timedelta(seconds=10), txn_type=TransactionType.INCOME)
        self.assertFalse(self.detector.evaluate(candidate, history).is_fraudulent)

    def test_reports_closest_match(self):
        history = [
            make_txn("Acme Corp", "50.00", NOW - timedelta(seconds=40), txn_id="a1"),
            make_txn("Acme Corp", "50.00", NOW - timedelta(seconds=10), txn_id="a2"),
        ]
        candidate = make_txn("Acme Corp", "50.00", NOW)

        forward = self.detector.evaluate(candidate, history)
        backward = self.detector.evaluate(candidate, list(reversed(history)))

        self.assertEqual(forward, backward)
        self.assertIn("10 seconds", forward.reason)


class TestOutlierRule(unittest.TestCase):

    def test_large_amount_at_known_merchant(self):
        detector = FraudDetector()
        candidate = make_txn("Whole Foods", "999.99", NOW)
        verdict = detector.evaluate(candidate, small_history())

        self.assertTrue(verdict.is_fraudulent)
        self.assertEqual(verdict.rule, "outlier_amount")
        self.assertIn("100.00", verdict.reason)

    def test_within_ceiling(self):
        detector = FraudDetector()
        candidate = make_txn("Whole Foods", "99.00", NOW)
        self.assertFalse(detector.evaluate(candidate, small_history()).is_fraudulent)

    def test_huge_deposit_at_known_merchant(self):
        detector = FraudDetector()
        candidate = make_txn("Shell", "50000", NOW, txn_type=TransactionType.INCOME)
        verdict = detector.evaluate(candidate, small_history())

        self.assertTrue(verdict.is_fraudulent)
        self.assertEqual(verdict.rule, "outlier_amount")
        self.assertIn("50000.00", verdict.reason)

    def test_configurable_multiplier(self):
        detector = FraudDetector(config={"outlier_multiplier": 2.0})
        candidate = make_txn("Whole Foods", "45.00", NOW)
        verdict = detector.evaluate(candidate, small_history())
        self.assertEqual(verdict.rule, "outlier_amount")


class TestDetectorBehaviour(unittest.TestCase):

    def setUp(self):
        self.detector = FraudDetector()

    def test_first_triggered_rule_wins(self):
        # Both the new-merchant and outlier rules apply; the new-merchant rule is reported
        candidate = make_txn("Unknown Merchant XYZ", "5000", NOW)
        verdict = self.detector.evaluate(candidate, small_history())
        self.assertEqual(verdict.rule, "new_merchant_large_amount")

    def test_deterministic_regardless_of_history_order(self):
        candidate = make_txn("Unknown Merchant XYZ", "999.99", NOW)
        history = small_history()
        verdicts = {
            self.detector.evaluate(candidate, history),
            self.detector.evaluate(candidate, list(reversed(history))),
            self.detector.evaluate(candidate, history[1:] + history[:1]),
        }
        self.assertEqual(len(verdicts), 1)

    def test_other_users_history_is_ignored(self):
        candidate = make_txn("Unknown Merchant XYZ", "999.99", NOW)
        verdict = self.detector.evaluate(candidate, small_history(user_id="user-2"))
        self.assertFalse(verdict.is_fraudulent)

    def test_candidate_excluded_from_its_own_history(self):
        candidate = make_txn("Acme Corp", "50.00", NOW, txn_id="same")
        history = [make_txn("Acme Corp", "50.00", NOW, txn_id="same")]
        self.assertFalse(self.detector.evaluate(candidate, history).is_fraudulent)

    def test_malformed_history_rows_are_tolerated(self):
        history = small_history()
        history.append(Transaction("user-1", None, "n/a", "Broken Row", TransactionType.EXPENSE, id="bad1"))
        history.append(Transaction("user-1", NOW, "abc", "Acme Corp", None, id="bad2"))

        verdict = self.detector.evaluate(make_txn("Acme Corp", "50.00", NOW), history)
        self.assertFalse(verdict.is_fraudulent)

    def test_timezone_aware_candidate_against_naive_history(self):
        history = [make_txn("Acme Corp", "50.00", NOW, txn_id="a1")]
        candidate = make_txn("Acme Corp", "50.00", (NOW + timedelta(seconds=10)).replace(tzinfo=timezone.utc))
        verdict = evaluate_fraud(candidate, history)

        self.assertEqual(verdict.rule, "duplicate")
        self.assertIn("10 seconds", verdict.reason)

    def test_timezone_aware_history_against_naive_candidate(self):
        history = [
            make_txn("Coffee Shop", 5, (NOW - timedelta(minutes=m)).replace(tzinfo=timezone.utc), txn_id=f"c{m}")
            for m in (30, 20, 10)
        ]
        verdict = evaluate_fraud(make_txn("Coffee Shop", 5, NOW), history)
        self.assertEqual(verdict.rule, "velocity")

    def test_reason_present_iff_flagged(self):
        cases = [
            (make_txn("Unknown Merchant XYZ", "999.99", NOW), small_history()),
            (make_txn("Corner Store", "18.00", NOW), small_history()),
            (make_txn("Acme Corp", "50.00", NOW), []),
        ]
        for candidate, history in cases:
            verdict = evaluate_fraud(candidate, history)
            with self.subTest(merchant=candidate.merchant):
                self.assertEqual(verdict.is_fraudulent, verdict.reason is not None)
                self.assertEqual(verdict.to_dict()["isFraudulent"], verdict.is_fraudulent)
