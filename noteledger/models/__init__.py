"""
Data Models Package

This package contains all Pydantic models used in Note Ledger.
All data flowing through the system must conform to these schemas.
"""

from noteledger.models.transaction import (
    CategoryDominance,
    CategoryGroup,
    CategoryItem,
    DebtReconciliation,
    HistoricalNote,
    LedgerSummary,
    LedgerTotals,
    PersonLedgerEntry,
    ProcessResult,
    TransactionCategory,
    TransactionDirection,
    TransactionRecord,
    direction_for,
    normalize_name,
)
from noteledger.models.rules import (
    MONTH_ABBREVIATIONS,
    ClassifierConfig,
    ExtractionTarget,
    KeywordRule,
    default_classifier_config,
    default_rules,
)
from noteledger.models.query import LedgerQuery, QueryResult
from noteledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "CategoryDominance",
    "CategoryGroup",
    "CategoryItem",
    "DebtReconciliation",
    "HistoricalNote",
    "LedgerSummary",
    "LedgerTotals",
    "PersonLedgerEntry",
    "ProcessResult",
    "TransactionCategory",
    "TransactionDirection",
    "TransactionRecord",
    "direction_for",
    "normalize_name",
    # Rule table
    "MONTH_ABBREVIATIONS",
    "ClassifierConfig",
    "ExtractionTarget",
    "KeywordRule",
    "default_classifier_config",
    "default_rules",
    # Queries
    "LedgerQuery",
    "QueryResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
