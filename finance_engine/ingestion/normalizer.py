"""
Normalizes external transaction payloads (manual entry, CSV rows, receipt
extractions) into canonical Transaction records.

Canonical form: non-negative Decimal amount plus an explicit type. An explicit
``type`` wins; otherwise a negative amount is an expense and a non-negative
amount is income.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Optional

from ..categorisation.preprocess import to_decimal
from ..models import Category, Transaction, TransactionType, ValidationError
from ..utils_dates import to_naive


DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
)

# External key -> canonical key
FIELD_ALIASES = {
    "accountid": "account_id",
    "account_id": "account_id",
    "merchant_name": "merchant",
    "transaction_type": "type",
}


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def canonical_keys(payload: Dict) -> Dict:
    """Lowercase keys and resolve known aliases."""
    result = {}
    for key, value in payload.items():
        lowered = str(key).strip().lower()
        result[FIELD_ALIASES.get(lowered, lowered)] = value
    return result


def parse_date(value) -> datetime:
    """Parse a transaction date, dropping any timezone information."""
    if isinstance(value, datetime):
        return to_naive(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    text = _clean(value)
    if text is None:
        raise ValidationError("date", "date is required")

    try:
        return to_naive(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValidationError("date", f"unrecognised date '{text}'")


def parse_amount(value) -> Decimal:
    if _clean(value) is None:
        raise ValidationError("amount", "amount is required")
    amount = to_decimal(value)
    if amount is None:
        raise ValidationError("amount", f"amount '{value}' is not a number")
    return amount


def parse_type(value) -> Optional[TransactionType]:
    text = _clean(value)
    if text is None:
        return None
    try:
        return TransactionType(text.lower())
    except ValueError:
        raise ValidationError("type", f"type must be 'income' or 'expense', got '{text}'")


def normalize_transaction(user_id: str, payload: Dict, source: str = "manual") -> Transaction:
    """
    Build a canonical Transaction from an external payload.

    Args:
        user_id: Owner id resolved by the caller
        payload: Raw fields (date, amount, merchant, category, type,
                 description, location, accountId)
        source: 'manual', 'csv' or 'receipt'

    Returns:
        Transaction with category OTHER when no usable category was given

    Raises:
        ValidationError: missing or malformed merchant, amount, date or type
    """
    if not user_id:
        raise ValidationError("userId", "userId is required")

    fields = canonical_keys(payload)
    description = _clean(fields.get("description"))
    merchant = _clean(fields.get("merchant")) or description
    if merchant is None:
        raise ValidationError("merchant", "merchant is required")

    amount = parse_amount(fields.get("amount"))
    txn_type = parse_type(fields.get("type"))
    if txn_type is None:
        txn_type = TransactionType.EXPENSE if amount < 0 else TransactionType.INCOME

    return Transaction(
        user_id=user_id,
        date=parse_date(fields.get("date")),
        amount=abs(amount),
        merchant=merchant,
        type=txn_type,
        category=Category.from_label(_clean(fields.get("category"))),
        description=description,
        location=_clean(fields.get("location")),
        account_id=_clean(fields.get("account_id")),
        source=source,
    )
