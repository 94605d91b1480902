"""
Ingestion Module: converts manual entries, CSV files and receipt extractions
into canonical transactions.
"""

from .normalizer import normalize_transaction, parse_date, parse_amount
from .csv_reader import read_transaction_rows

__all__ = [
    "normalize_transaction",
    "parse_date",
    "parse_amount",
    "read_transaction_rows",
]
