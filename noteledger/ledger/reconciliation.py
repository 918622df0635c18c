"""
Debt Reconciliation Engine

Matches money lent to a person against money later received from that
same person.

Rules:
1. Only names that appear on at least one lending record are tracked.
   Money received from anyone else is plain income.
2. Names match case- and whitespace-insensitively; the first spelling
   seen is kept for display.
3. settled = min(lent, received), balance = lent - received
   (negative when someone paid back more than they borrowed).
4. Headline totals drop the settled amount from both income and expense,
   so a repaid loan is neither spending nor income. Net is unchanged.
"""

from collections.abc import Iterable
from typing import Optional

from noteledger.models.transaction import (
    DebtReconciliation,
    LedgerTotals,
    PersonLedgerEntry,
    TransactionDirection,
    TransactionRecord,
)


def reconcile_debts(records: Iterable[TransactionRecord]) -> DebtReconciliation:
    """Build the per-person ledger, ordered by first lending appearance."""
    records = list(records)
    
    # Step 1: the debtors we track
    debtors: dict[str, None] = {}
    for record in records:
        if record.is_lending and record.counterparty_key:
            debtors.setdefault(record.counterparty_key)
    
    # Step 2: running lent / received per debtor
    lent = dict.fromkeys(debtors, 0)
    received = dict.fromkeys(debtors, 0)
    display_names: dict[str, str] = {}
    
    for record in records:
        key = record.counterparty_key
        if key not in debtors:
            continue
        display_names.setdefault(key, record.counterparty_name)
        if record.is_lending:
            lent[key] += record.amount
        elif record.is_money_in:
            received[key] += record.amount
    
    return DebtReconciliation(per_person={
        key: PersonLedgerEntry(
            normalized_name=key,
            display_name=display_names[key],
            lent=lent[key],
            received=received[key],
        )
        for key in debtors
    })


def compute_totals(
    records: Iterable[TransactionRecord],
    reconciliation: Optional[DebtReconciliation] = None,
) -> LedgerTotals:
    """Raw and settlement-adjusted income/expense totals."""
    records = list(records)
    if reconciliation is None:
        reconciliation = reconcile_debts(records)
    
    raw_income = sum(
        r.amount for r in records if r.direction == TransactionDirection.INCOME
    )
    raw_expense = sum(
        r.amount for r in records if r.direction == TransactionDirection.EXPENSE
    )
    
    return LedgerTotals(
        raw_income=raw_income,
        raw_expense=raw_expense,
        total_settled=reconciliation.total_settled,
    )


def outstanding_debts(reconciliation: DebtReconciliation) -> list[tuple[str, int]]:
    """(display name, balance) for people who still owe money, largest first."""
    owing = [
        (entry.display_name, entry.balance)
        for entry in reconciliation.per_person.values()
        if entry.balance > 0
    ]
    return sorted(owing, key=lambda item: item[1], reverse=True)
