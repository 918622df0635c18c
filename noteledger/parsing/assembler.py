"""
Transaction Assembler

Packages classifier output into canonical TransactionRecords, and rebuilds
records from rows a storage collaborator persisted earlier.

Absent optional fields become None, never "", so aggregation can tell
"no detail" apart from "empty detail".
"""

from collections.abc import Iterable, Mapping
from typing import Any, Optional

from pydantic import ValidationError

from noteledger.config import get_settings
from noteledger.models.transaction import (
    TransactionCategory,
    TransactionDirection,
    TransactionRecord,
)


class StorageRowError(Exception):
    """A persisted row could not be turned back into a TransactionRecord."""
    pass


def _present(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def assemble_record(
    *,
    amount: int,
    category: TransactionCategory,
    source_line: str,
    date: Optional[str] = None,
    counterparty_name: Optional[str] = None,
    detail: Optional[str] = None,
) -> TransactionRecord:
    """Build the canonical record. No decisions are made here."""
    return TransactionRecord(
        amount=amount,
        category=category,
        date=_present(date),
        counterparty_name=_present(counterparty_name),
        detail=_present(detail),
        source_line=source_line,
    )


# =============================================================================
# STORAGE ROWS
# =============================================================================

_CATEGORY_ALIASES = {
    "lent": TransactionCategory.LENT,
    "lend": TransactionCategory.LENT,
    "lending": TransactionCategory.LENT,
    "money in": TransactionCategory.MONEY_IN,
    "money_in": TransactionCategory.MONEY_IN,
    "clothing": TransactionCategory.CLOTHS,
    "uncategorized": TransactionCategory.GENERAL,
}

_TRANSACTION_TYPES = {"income", "expense", "lending"}


def _resolve_category(raw: Any, transaction_type: str) -> TransactionCategory:
    if transaction_type == "lending":
        return TransactionCategory.LENT
    
    text = str(raw or "").strip()
    for category in TransactionCategory:
        if category.value.lower() == text.lower():
            return category
    if text.lower() in _CATEGORY_ALIASES:
        return _CATEGORY_ALIASES[text.lower()]
    raise StorageRowError(f"Unknown category: {raw!r}")


def record_from_storage_row(
    row: Mapping[str, Any],
    currency_marker: Optional[str] = None,
) -> TransactionRecord:
    """
    Convert a persisted row back into a TransactionRecord.
    
    Accepts the shape produced by TransactionRecord.to_storage_row().
    Rows stored without their original line get a synthesized one built
    from the stored parts.
    
    Raises:
        StorageRowError: If the row is missing data or contradicts itself
    """
    def safe_get(key: str) -> Optional[str]:
        value = row.get(key)
        if value is None:
            return None
        return str(value)
    
    transaction_type = (safe_get("transaction_type") or "").strip().lower()
    if transaction_type not in _TRANSACTION_TYPES:
        raise StorageRowError(f"Unknown transaction type: {row.get('transaction_type')!r}")
    
    category = _resolve_category(row.get("category"), transaction_type)
    
    expected = "lending" if category == TransactionCategory.LENT else category.direction.value
    lending_as_expense = (
        category == TransactionCategory.LENT
        and transaction_type == TransactionDirection.EXPENSE.value
    )
    if transaction_type != expected and not lending_as_expense:
        raise StorageRowError(
            f"Row is stored as {transaction_type} but {category.value} is {expected}"
        )
    
    try:
        amount = int(row.get("amount"))
    except (TypeError, ValueError) as e:
        raise StorageRowError(f"Invalid amount: {row.get('amount')!r}") from e
    
    date = _present(safe_get("transaction_date"))
    detail = _present(safe_get("sub_category"))
    counterparty_name = _present(safe_get("recipient_name"))
    
    source_line = safe_get("original_line")
    if not source_line:
        marker = currency_marker or get_settings().parser.currency_marker
        parts = [date, category.value, counterparty_name or detail, f"{marker}{amount}"]
        source_line = " ".join(part for part in parts if part)
    
    try:
        return assemble_record(
            amount=amount,
            category=category,
            source_line=source_line,
            date=date,
            counterparty_name=counterparty_name,
            detail=detail,
        )
    except ValidationError as e:
        raise StorageRowError(f"Invalid stored transaction: {e}") from e


def records_from_storage_rows(
    rows: Iterable[Mapping[str, Any]],
    currency_marker: Optional[str] = None,
) -> list[TransactionRecord]:
    """Rebuild a session's records; any bad row fails the whole load."""
    return [record_from_storage_row(row, currency_marker) for row in rows]
