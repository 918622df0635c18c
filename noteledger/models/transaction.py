"""
Core Data Models for Note Ledger

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce the record invariants at runtime (non-negative amounts, closed categories)
2. Keep direction a pure function of category
3. Be serializable for a storage collaborator
4. Keep the original note line for traceability

DESIGN DECISION: A TransactionRecord is frozen once created.
Aggregation and reconciliation only ever read the collection.
"""

import hashlib
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionDirection(str, Enum):
    """Money flow direction. Lending stays an expense (see is_lending)."""
    INCOME = "income"
    EXPENSE = "expense"


class TransactionCategory(str, Enum):
    """
    Supported transaction categories.
    
    Values keep the spelling users see on their notes and in stored rows.
    """
    LENT = "LENT"
    OTHERS = "OTHERS"
    MONEY_IN = "Money In"
    FOOD = "Food"
    TRAVEL = "Travel"
    CLOTHS = "Cloths"
    GROOMING = "Grooming"
    HEALTH = "Health"
    SOCIAL = "Social"
    EFT = "Eft"
    GENERAL = "General"
    
    @property
    def direction(self) -> TransactionDirection:
        return direction_for(self)


_INCOME_CATEGORIES = frozenset({TransactionCategory.MONEY_IN})


def direction_for(category: TransactionCategory) -> TransactionDirection:
    """Direction is derived from the category, never stored on its own."""
    if category in _INCOME_CATEGORIES:
        return TransactionDirection.INCOME
    return TransactionDirection.EXPENSE


# =============================================================================
# NAME KEY
# =============================================================================

def normalize_name(name: Optional[str]) -> Optional[str]:
    """
    Fold a counterparty name into its identity key.
    
    Case and surrounding/inner whitespace are ignored, so "Sow", " sow "
    and "SOW" all map to "sow". Returns None for missing or blank names.
    """
    if name is None:
        return None
    key = " ".join(name.split()).lower()
    return key or None


# =============================================================================
# CORE TRANSACTION MODEL
# =============================================================================

class TransactionRecord(BaseModel):
    """
    A single recognized line from a note.
    
    CRITICAL: Optional fields are None when absent, never "".
    Downstream code relies on that to tell "no detail" from "empty detail".
    """
    model_config = ConfigDict(frozen=True)
    
    amount: int = Field(
        ...,
        ge=0,
        description="Amount in whole currency units"
    )
    category: TransactionCategory = Field(
        ...,
        description="Closed-vocabulary category"
    )
    date: Optional[str] = Field(
        default=None,
        description="Short date as written on the note, e.g. '17 Jan'"
    )
    counterparty_name: Optional[str] = Field(
        default=None,
        description="Raw display name for lending / money-in lines"
    )
    detail: Optional[str] = Field(
        default=None,
        description="Free-text fragment extracted from the line"
    )
    source_line: str = Field(
        ...,
        description="The exact original line"
    )
    
    @field_validator('counterparty_name')
    @classmethod
    def validate_counterparty_name(cls, v: Optional[str]) -> Optional[str]:
        """A present name must survive trimming."""
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Counterparty name cannot be empty")
        return v
    
    @computed_field
    @property
    def direction(self) -> TransactionDirection:
        return direction_for(self.category)
    
    @computed_field
    @property
    def counterparty_key(self) -> Optional[str]:
        return normalize_name(self.counterparty_name)
    
    @property
    def is_lending(self) -> bool:
        return self.category == TransactionCategory.LENT
    
    @property
    def is_money_in(self) -> bool:
        return self.category == TransactionCategory.MONEY_IN
    
    @property
    def fingerprint(self) -> str:
        """Stable key derived from the original line, used for duplicate suppression."""
        return hashlib.sha256(self.source_line.encode("utf-8")).hexdigest()
    
    def to_storage_row(self) -> dict:
        """
        Convert to the row shape a storage collaborator persists.
        
        Lending records are tagged "lending" here and only here; inside the
        core they remain expenses.
        """
        transaction_type = "lending" if self.is_lending else self.direction.value
        return {
            "amount": self.amount,
            "transaction_type": transaction_type,
            "category": self.category.value,
            "sub_category": self.detail,
            "recipient_name": self.counterparty_name,
            "transaction_date": self.date,
            "fingerprint": self.fingerprint,
            "original_line": self.source_line,
        }


class ProcessResult(BaseModel):
    """Output of classifying one note. Both lists follow input line order."""
    
    recognized: list[TransactionRecord] = Field(default_factory=list)
    unrecognized: list[str] = Field(
        default_factory=list,
        description="Raw lines that could not be parsed"
    )
    
    @property
    def recognized_count(self) -> int:
        return len(self.recognized)
    
    @property
    def unrecognized_count(self) -> int:
        return len(self.unrecognized)


# =============================================================================
# AGGREGATION MODELS
# =============================================================================

class CategoryItem(BaseModel):
    """One contributing line inside a category group."""
    
    amount: int = Field(ge=0)
    date: Optional[str] = None
    detail: Optional[str] = None
    counterparty_name: Optional[str] = None


class CategoryGroup(BaseModel):
    """
    Per-category total with its contributing items.
    
    Recomputed from scratch on every aggregation call.
    """
    
    category: TransactionCategory
    direction: TransactionDirection
    total: int = Field(default=0, ge=0)
    items: list[CategoryItem] = Field(default_factory=list)
    
    @property
    def item_count(self) -> int:
        return len(self.items)


class CategoryDominance(BaseModel):
    """Expense total for one category, split into saved and unsaved parts."""
    
    category: str
    saved: int = 0
    unsaved: int = 0
    
    @computed_field
    @property
    def total(self) -> int:
        return self.saved + self.unsaved


# =============================================================================
# RECONCILIATION MODELS
# =============================================================================

class PersonLedgerEntry(BaseModel):
    """
    Money lent to and received from one counterparty.
    
    Entries exist only for names that appear on at least one lending line.
    """
    
    normalized_name: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1)
    lent: int = Field(default=0, ge=0)
    received: int = Field(default=0, ge=0)
    
    @computed_field
    @property
    def settled(self) -> int:
        return min(self.lent, self.received)
    
    @computed_field
    @property
    def balance(self) -> int:
        """Outstanding amount. Negative when the person paid back more than lent."""
        return self.lent - self.received
    
    @property
    def is_fully_settled(self) -> bool:
        return self.lent > 0 and self.balance <= 0
    
    @property
    def has_repayment(self) -> bool:
        return self.received > 0
    
    @property
    def recovery_percentage(self) -> float:
        """Share of the lent amount already settled; 100.0 when nothing was lent."""
        if self.lent == 0:
            return 100.0
        return self.settled / self.lent * 100


class DebtReconciliation(BaseModel):
    """Per-person ledger keyed by normalized name, in first-lent order."""
    
    per_person: dict[str, PersonLedgerEntry] = Field(default_factory=dict)
    
    @computed_field
    @property
    def total_settled(self) -> int:
        return sum(entry.settled for entry in self.per_person.values())
    
    @property
    def total_lent(self) -> int:
        return sum(entry.lent for entry in self.per_person.values())
    
    @property
    def total_received(self) -> int:
        return sum(entry.received for entry in self.per_person.values())
    
    @property
    def total_outstanding(self) -> int:
        return sum(max(entry.balance, 0) for entry in self.per_person.values())
    
    @property
    def recovery_percentage(self) -> float:
        """Overall share of lent money that came back; 100.0 when nothing was lent."""
        if self.total_lent == 0:
            return 100.0
        return self.total_settled / self.total_lent * 100
    
    def get(self, name: str) -> Optional[PersonLedgerEntry]:
        """Look up a person by any spelling of their name."""
        key = normalize_name(name)
        if key is None:
            return None
        return self.per_person.get(key)


class LedgerTotals(BaseModel):
    """
    Headline income/expense totals.
    
    Settled lending is removed from both sides so money lent and paid back
    does not count as spending and then as income.
    """
    
    raw_income: int = Field(default=0, ge=0)
    raw_expense: int = Field(default=0, ge=0)
    total_settled: int = Field(default=0, ge=0)
    
    @computed_field
    @property
    def adjusted_income(self) -> int:
        return self.raw_income - self.total_settled
    
    @computed_field
    @property
    def adjusted_expense(self) -> int:
        return self.raw_expense - self.total_settled
    
    @computed_field
    @property
    def net(self) -> int:
        return self.raw_income - self.raw_expense


class LedgerSummary(BaseModel):
    """Everything a presentation layer needs for one session."""
    
    categories: list[CategoryGroup] = Field(default_factory=list)
    reconciliation: DebtReconciliation = Field(default_factory=DebtReconciliation)
    totals: LedgerTotals = Field(default_factory=LedgerTotals)
    unrecognized: list[str] = Field(default_factory=list)


# =============================================================================
# HISTORY
# =============================================================================

class HistoricalNote(BaseModel):
    """A saved note as a history collaborator lists it."""
    
    id: str = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    net_balance: int
    raw_text: str
