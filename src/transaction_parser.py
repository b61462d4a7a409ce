from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

from models import Transaction, TransactionType

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1

# Same bounds as a 96-bit decimal: 28 significant digits, at most 28 after the point.
MAX_AMOUNT_DIGITS = 28
MAX_AMOUNT_SCALE = 28

AMOUNT_TYPES = (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class TransactionParseError(ValueError):
    """Raised when a CSV row cannot be turned into a Transaction."""


def parse_csv_row(row: Dict[Optional[str], Optional[str]]) -> Transaction:
    """
    Parse a csv.DictReader row into a Transaction.

    Keys and values are whitespace-trimmed and the type is case-insensitive.
    The amount column is only read for deposits and withdrawals.
    """
    normalized = {
        k.strip(): (v or "").strip()
        for k, v in row.items()
        if isinstance(k, str)
    }

    try:
        transaction_type = TransactionType(normalized["type"].lower())
    except KeyError:
        raise TransactionParseError("missing type column")
    except ValueError:
        raise TransactionParseError(f"unknown transaction type {normalized['type']!r}")

    client_id = _parse_id(normalized, "client", MAX_CLIENT_ID)
    transaction_id = _parse_id(normalized, "tx", MAX_TRANSACTION_ID)

    amount = None
    if transaction_type in AMOUNT_TYPES:
        amount = _parse_amount(normalized.get("amount", ""))

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_id(normalized: Dict[str, str], column: str, max_value: int) -> int:
    if column not in normalized:
        raise TransactionParseError(f"missing {column} column")
    value = normalized[column]
    if not (value.isascii() and value.isdigit()):
        raise TransactionParseError(f"{column} must be an unsigned integer, got {value!r}")
    parsed = int(value)
    if parsed > max_value:
        raise TransactionParseError(f"{column} {parsed} out of range (max {max_value})")
    return parsed


def _parse_amount(value: str) -> Decimal:
    if not value:
        raise TransactionParseError("missing amount")
    if "_" in value:
        raise TransactionParseError(f"invalid amount {value!r}")
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise TransactionParseError(f"invalid amount {value!r}")
    if not amount.is_finite():
        raise TransactionParseError(f"invalid amount {value!r}")
    if amount < 0:
        raise TransactionParseError(f"negative amount {value!r}")

    _, digits, exponent = amount.as_tuple()
    if exponent < -MAX_AMOUNT_SCALE or len(digits) + max(exponent, 0) > MAX_AMOUNT_DIGITS:
        raise TransactionParseError(f"amount {value!r} out of range")
    return amount
