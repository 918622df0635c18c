"""
Category Aggregator

Groups a record collection by category. Every call recomputes from the
collection it is given; a session can swap its whole collection (e.g. when
a historical snapshot is loaded) and the next call reflects that.
"""

from collections.abc import Iterable, Mapping
from typing import Optional

from noteledger.config import get_settings
from noteledger.models.transaction import (
    CategoryDominance,
    CategoryGroup,
    CategoryItem,
    TransactionCategory,
    TransactionDirection,
    TransactionRecord,
)


def aggregate_by_category(records: Iterable[TransactionRecord]) -> list[CategoryGroup]:
    """
    Group records by exact category.
    
    Groups come out in order of first appearance and items keep input
    order. Sorting by total is left to the caller.
    """
    groups: dict[TransactionCategory, CategoryGroup] = {}
    
    for record in records:
        group = groups.get(record.category)
        if group is None:
            group = CategoryGroup(category=record.category, direction=record.direction)
            groups[record.category] = group
        
        group.total += record.amount
        group.items.append(CategoryItem(
            amount=record.amount,
            date=record.date,
            detail=record.detail,
            counterparty_name=record.counterparty_name,
        ))
    
    return list(groups.values())


def sort_by_total(groups: Iterable[CategoryGroup]) -> list[CategoryGroup]:
    """Largest total first; ties keep their original order."""
    return sorted(groups, key=lambda g: g.total, reverse=True)


def category_share(total: int, grand_total: int) -> float:
    """Percentage of grand_total; 0.0 when there is nothing to divide."""
    if grand_total <= 0:
        return 0.0
    return total / grand_total * 100


def category_shares(groups: Iterable[CategoryGroup]) -> dict[TransactionCategory, float]:
    """Each group's share of the combined total of the groups given."""
    groups = list(groups)
    grand_total = sum(g.total for g in groups)
    return {g.category: category_share(g.total, grand_total) for g in groups}


def _dominance_key(category: str) -> str:
    upper = category.upper()
    if "LENT" in upper or "LEND" in upper:
        return TransactionCategory.LENT.value
    return category


def category_dominance(
    records: Iterable[TransactionRecord],
    saved_totals: Optional[Mapping[str, int]] = None,
    limit: Optional[int] = None,
) -> list[CategoryDominance]:
    """
    Merge saved monthly totals with the current, unsaved records.
    
    Args:
        records: Current session records; income records are left out
        saved_totals: Pre-aggregated totals per category from storage
        limit: How many categories to keep (defaults to settings)
        
    Returns:
        Categories by combined total, largest first. Lending spellings
        ("LENT", "Lending", ...) are folded into one LENT row.
    """
    if limit is None:
        limit = get_settings().parser.dominance_limit
    
    merged: dict[str, CategoryDominance] = {}
    
    for category, amount in (saved_totals or {}).items():
        key = _dominance_key(category)
        row = merged.setdefault(key, CategoryDominance(category=key))
        row.saved += amount
    
    for record in records:
        if record.direction == TransactionDirection.INCOME:
            continue
        key = _dominance_key(record.category.value)
        row = merged.setdefault(key, CategoryDominance(category=key))
        row.unsaved += record.amount
    
    ranked = sorted(merged.values(), key=lambda row: row.total, reverse=True)
    return ranked[:limit]
