"""Ledger views over a record collection: category groups and debts."""

from noteledger.ledger.aggregator import (
    aggregate_by_category,
    category_dominance,
    category_share,
    category_shares,
    sort_by_total,
)
from noteledger.ledger.reconciliation import (
    compute_totals,
    outstanding_debts,
    reconcile_debts,
)

__all__ = [
    "aggregate_by_category",
    "category_dominance",
    "category_share",
    "category_shares",
    "compute_totals",
    "outstanding_debts",
    "reconcile_debts",
    "sort_by_total",
]
