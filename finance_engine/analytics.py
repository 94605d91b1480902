"""
Read-only analytics over a user's records: dashboard summary, spending by
category and derived budget progress. Budget "spent" is never stored.
"""

from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from .models import Transaction
from .storage.repository import Repository
from .utils_dates import month_start_end, period_start_end


def _total(transactions: List[Transaction]) -> float:
    return round(sum(float(t.amount) for t in transactions), 2)


def dashboard_summary(repository: Repository, user_id: str, as_of: Optional[datetime] = None) -> Dict:
    """
    Summary metrics for the calendar month containing as_of.

    Fraud alerts count every flagged transaction, not only this month's.
    """
    as_of = as_of or datetime.now()
    month_start, month_end = month_start_end(as_of.year, as_of.month)

    transactions = repository.list_transactions_for_user(user_id)
    this_month = [t for t in transactions if month_start <= t.date < month_end]
    total_spend = _total([t for t in this_month if t.is_expense])
    total_income = _total([t for t in this_month if t.is_income])
    health = repository.get_health_snapshot(user_id)

    return {
        "totalSpend": total_spend,
        "totalIncome": total_income,
        "savings": round(total_income - total_spend, 2),
        "fraudAlerts": sum(1 for t in transactions if t.is_fraudulent),
        "activeGoals": sum(1 for g in repository.list_goals_for_user(user_id) if g.status == "active"),
        "budgetCount": len(repository.list_budgets_for_user(user_id)),
        "healthScore": health.score if health else 0,
        "transactionCount": len(this_month),
    }


def spending_by_category(repository: Repository, user_id: str) -> List[Dict]:
    """Expense totals per category, largest first."""
    totals = defaultdict(float)
    for txn in repository.list_transactions_for_user(user_id):
        if txn.is_expense:
            totals[txn.category.value] += float(txn.amount)

    rows = [{"category": category, "amount": round(amount, 2)} for category, amount in totals.items()]
    return sorted(rows, key=lambda r: (-r["amount"], r["category"]))


def budget_progress(repository: Repository, user_id: str, as_of: Optional[datetime] = None) -> List[Dict]:
    """Spent and remaining per budget for the period containing as_of."""
    as_of = as_of or datetime.now()
    transactions = [t for t in repository.list_transactions_for_user(user_id) if t.is_expense]

    progress = []
    for budget in repository.list_budgets_for_user(user_id):
        start, end = period_start_end(budget.period.value, as_of)
        spent = _total([
            t for t in transactions
            if t.category is budget.category and start <= t.date < end
        ])
        limit = float(budget.amount)
        progress.append({
            "budgetId": budget.id,
            "category": budget.category.value,
            "period": budget.period.value,
            "limit": limit,
            "spent": spent,
            "remaining": round(limit - spent, 2),
            "overBudget": spent > limit,
        })
    return progress
