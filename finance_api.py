"""
Transaction Intelligence API

A thin Flask layer that maps client requests onto the transaction engine.
Every mutating route goes through TransactionEngine so categorization, fraud
checks and health recomputation always run in the same order.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Optional

from flask import Flask, jsonify, request
from werkzeug.utils import secure_filename

from finance_engine import (
    Budget,
    BudgetPeriod,
    Category,
    Goal,
    GoalType,
    InMemoryRepository,
    NotFoundError,
    TransactionEngine,
    User,
    ValidationError,
)
from finance_engine.analytics import budget_progress, dashboard_summary, spending_by_category
from finance_engine.categorisation.preprocess import to_decimal
from finance_engine.ingestion.normalizer import parse_date


app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 10 * 1024 * 1024  # 10MB max upload size

GOAL_STATUSES = {'active', 'completed', 'paused'}

# In-process store; swap for a database-backed Repository in deployment
repository = InMemoryRepository()
engine = TransactionEngine(repository)


def reset_store():
    """Replace the store and engine with empty ones."""
    global repository, engine
    repository = InMemoryRepository()
    engine = TransactionEngine(repository)


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() == 'csv'


def json_object() -> Dict:
    """Request body as a JSON object; anything else is a validation error."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("body", "JSON object expected")
    return data


def require_user_id(value: Optional[str]) -> str:
    if not value or not isinstance(value, str):
        raise ValidationError("userId", "userId is required")
    return value


def parse_money(value, field_name: str) -> Decimal:
    amount = to_decimal(value)
    if amount is None or amount < 0:
        raise ValidationError(field_name, f"{field_name} must be a non-negative number")
    return amount


def parse_end_date(value: str) -> datetime:
    """A date without a time covers the whole of that day."""
    end = parse_date(value)
    if ':' not in value:
        end = end + timedelta(days=1) - timedelta(microseconds=1)
    return end


def parse_category(value) -> Category:
    if not isinstance(value, str):
        raise ValidationError("category", "category is required")
    category = Category.from_label(value)
    if category is Category.OTHER and value.strip().lower() != 'other':
        raise ValidationError("category", "unknown category")
    return category


def parse_period(value) -> BudgetPeriod:
    try:
        return BudgetPeriod(value)
    except ValueError:
        raise ValidationError("period", "period must be weekly, monthly or yearly")


def parse_goal_type(value) -> GoalType:
    try:
        return GoalType(value)
    except ValueError:
        raise ValidationError("type", "unknown goal type")


@app.errorhandler(ValidationError)
def handle_validation_error(error: ValidationError):
    app.logger.warning(f"Validation error on {request.path}: {error}")
    return jsonify({'error': error.message, 'field': error.field}), 400


@app.errorhandler(NotFoundError)
def handle_not_found(error: NotFoundError):
    return jsonify({'error': 'Not found', 'id': error.args[0] if error.args else None}), 404


# ============ USER ROUTES ============

@app.route('/api/users', methods=['POST'])
def create_user():
    data = json_object()
    username = data.get('username')
    if not username:
        raise ValidationError("username", "username is required")
    user = repository.create_user(User(
        username=username,
        monthly_income=parse_money(data.get('monthlyIncome', 0), "monthlyIncome"),
    ))
    return jsonify({'id': user.id, 'username': user.username, 'monthlyIncome': str(user.monthly_income)}), 201


# ============ TRANSACTION ROUTES ============

@app.route('/api/transactions', methods=['GET'])
def list_transactions():
    user_id = require_user_id(request.args.get('userId'))
    start_date = request.args.get('startDate')
    end_date = request.args.get('endDate')

    if start_date and end_date:
        transactions = repository.list_transactions_in_range(
            user_id, parse_date(start_date), parse_end_date(end_date)
        )
    else:
        transactions = repository.list_transactions_for_user(user_id)
    return jsonify([t.to_dict() for t in transactions])


@app.route('/api/transactions', methods=['POST'])
def create_transaction():
    data = json_object()
    user_id = require_user_id(data.get('userId'))
    outcome = engine.create_transaction(user_id, data)
    return jsonify(outcome.to_dict()), 201


@app.route('/api/transactions/<transaction_id>', methods=['PATCH'])
def update_transaction(transaction_id: str):
    transaction = engine.update_transaction(transaction_id, json_object())
    return jsonify(transaction.to_dict())


@app.route('/api/transactions/<transaction_id>', methods=['DELETE'])
def delete_transaction(transaction_id: str):
    engine.delete_transaction(transaction_id)
    return '', 204


@app.route('/api/transactions/upload', methods=['POST'])
def upload_transactions():
    """
    Import a CSV of transactions.

    Expects multipart form data with a 'file' field and a 'userId' field.
    """
    if 'file' not in request.files:
        return jsonify({'error': 'No file uploaded'}), 400

    file = request.files['file']
    user_id = require_user_id(request.form.get('userId'))
    filename = secure_filename(file.filename or '') or 'upload.csv'
    if not allowed_file(filename):
        return jsonify({'error': 'Invalid file type. Only CSV files are allowed'}), 400

    result = engine.import_csv(user_id, file.read(), filename=filename)
    app.logger.info(
        f"CSV import {filename}: {result.stats.created} created, "
        f"{result.stats.fraudulent} flagged, {result.stats.rejected} rejected"
    )
    return jsonify(result.to_dict()), 201


@app.route('/api/transactions/receipt', methods=['POST'])
def import_receipt():
    """Import transactions already extracted from a receipt image."""
    data = json_object()
    user_id = require_user_id(data.get('userId'))
    result = engine.import_receipt(user_id, data)
    return jsonify(result.to_dict()), 201


# ============ BUDGET ROUTES ============

@app.route('/api/budgets', methods=['GET'])
def list_budgets():
    user_id = require_user_id(request.args.get('userId'))
    return jsonify([b.to_dict() for b in repository.list_budgets_for_user(user_id)])


@app.route('/api/budgets', methods=['POST'])
def create_budget():
    data = json_object()
    user_id = require_user_id(data.get('userId'))
    budget = repository.create_budget(Budget(
        user_id=user_id,
        category=parse_category(data.get('category')),
        amount=parse_money(data.get('amount'), "amount"),
        period=parse_period(data.get('period', 'monthly')),
    ))
    return jsonify(budget.to_dict()), 201


@app.route('/api/budgets/<budget_id>', methods=['PATCH'])
def update_budget(budget_id: str):
    data = json_object()
    if repository.get_budget(budget_id) is None:
        raise NotFoundError(budget_id)

    changes = {}
    if 'category' in data:
        changes['category'] = parse_category(data['category'])
    if 'amount' in data:
        changes['amount'] = parse_money(data['amount'], "amount")
    if 'period' in data:
        changes['period'] = parse_period(data['period'])

    budget = repository.update_budget(budget_id, changes)
    if budget is None:
        raise NotFoundError(budget_id)
    return jsonify(budget.to_dict())


@app.route('/api/budgets/<budget_id>', methods=['DELETE'])
def delete_budget(budget_id: str):
    if not repository.delete_budget(budget_id):
        raise NotFoundError(budget_id)
    return '', 204


@app.route('/api/budgets/progress', methods=['GET'])
def get_budget_progress():
    user_id = require_user_id(request.args.get('userId'))
    return jsonify(budget_progress(repository, user_id))


# ============ GOAL ROUTES ============

@app.route('/api/goals', methods=['GET'])
def list_goals():
    user_id = require_user_id(request.args.get('userId'))
    return jsonify([g.to_dict() for g in repository.list_goals_for_user(user_id)])


@app.route('/api/goals', methods=['POST'])
def create_goal():
    data = json_object()
    user_id = require_user_id(data.get('userId'))
    if not data.get('name'):
        raise ValidationError("name", "name is required")

    goal = repository.create_goal(Goal(
        user_id=user_id,
        name=data['name'],
        type=parse_goal_type(data.get('type')),
        target_amount=parse_money(data.get('targetAmount'), "targetAmount"),
        deadline=parse_date(data['deadline']) if data.get('deadline') else None,
    ))
    return jsonify(goal.to_dict()), 201


@app.route('/api/goals/<goal_id>', methods=['PATCH'])
def update_goal(goal_id: str):
    data = json_object()
    if repository.get_goal(goal_id) is None:
        raise NotFoundError(goal_id)

    changes = {}
    if 'name' in data:
        if not data['name']:
            raise ValidationError("name", "name is required")
        changes['name'] = data['name']
    if 'type' in data:
        changes['type'] = parse_goal_type(data['type'])
    if 'targetAmount' in data:
        changes['target_amount'] = parse_money(data['targetAmount'], "targetAmount")
    if 'currentAmount' in data:
        changes['current_amount'] = parse_money(data['currentAmount'], "currentAmount")
    if 'deadline' in data:
        changes['deadline'] = parse_date(data['deadline']) if data['deadline'] else None
    if 'status' in data:
        if data['status'] not in GOAL_STATUSES:
            raise ValidationError("status", "status must be active, completed or paused")
        changes['status'] = data['status']

    goal = repository.update_goal(goal_id, changes)
    if goal is None:
        raise NotFoundError(goal_id)
    return jsonify(goal.to_dict())


@app.route('/api/goals/<goal_id>', methods=['DELETE'])
def delete_goal(goal_id: str):
    if not repository.delete_goal(goal_id):
        raise NotFoundError(goal_id)
    return '', 204


# ============ FINANCIAL HEALTH & ANALYTICS ROUTES ============

@app.route('/api/financial-health', methods=['GET'])
def get_financial_health():
    user_id = require_user_id(request.args.get('userId'))
    health = repository.get_health_snapshot(user_id)
    return jsonify(health.to_dict() if health else None)


@app.route('/api/analytics/dashboard', methods=['GET'])
def get_dashboard():
    user_id = require_user_id(request.args.get('userId'))
    return jsonify(dashboard_summary(repository, user_id, as_of=datetime.now()))


@app.route('/api/analytics/spending-by-category', methods=['GET'])
def get_spending_by_category():
    user_id = require_user_id(request.args.get('userId'))
    return jsonify(spending_by_category(repository, user_id))


if __name__ == '__main__':
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s"
    )
    print("=" * 60)
    print("Transaction Intelligence API")
    print("=" * 60)
    print("\nStarting server on http://localhost:5001")
    print("Press Ctrl+C to stop\n")
    app.run(host='0.0.0.0', port=5001, debug=False)
