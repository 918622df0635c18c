"""
Main Orchestrator for Note Ledger

Defines the end-to-end flow for one session:
note text → classify → records → { category groups, debt ledger, totals }

DESIGN DECISION: The session only holds the current record collection.
Every view is recomputed from that collection on request, so replacing it
(a new note, or records loaded back from storage) can never leave a stale
total behind. The classification and ledger functions themselves are pure.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Optional
from uuid import UUID

from noteledger.audit import AuditLogger, configure_logging, create_correlation_id
from noteledger.config import Settings, get_settings
from noteledger.ledger import (
    aggregate_by_category,
    category_dominance,
    compute_totals,
    outstanding_debts,
    reconcile_debts,
)
from noteledger.models.query import LedgerQuery, QueryResult
from noteledger.models.rules import default_classifier_config
from noteledger.models.transaction import (
    CategoryDominance,
    CategoryGroup,
    DebtReconciliation,
    HistoricalNote,
    LedgerSummary,
    ProcessResult,
    TransactionRecord,
)
from noteledger.parsing import (
    LineClassifier,
    StorageRowError,
    normalize_text,
    records_from_storage_rows,
)
from noteledger.queries import QueryExecutor


class NoteLedgerSession:
    """
    Orchestrates one user's working session.
    
    Flow:
    1. Process → classify a pasted note, replacing the current records
    2. Load → or replace them with records rebuilt from storage
    3. Summarize → category groups, debt ledger and adjusted totals
    4. Snapshot → package the session for a history collaborator
    
    Lines that were not understood are kept for the user to see,
    never dropped silently.
    """
    
    def __init__(
        self,
        classifier: Optional[LineClassifier] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
    ):
        self._settings = settings or get_settings()
        self._classifier = classifier or LineClassifier(
            default_classifier_config(self._settings.parser)
        )
        self._audit_logger = audit_logger or AuditLogger()
        self._records: tuple[TransactionRecord, ...] = ()
        self._unrecognized: tuple[str, ...] = ()
        self._raw_text = ""
    
    @property
    def records(self) -> tuple[TransactionRecord, ...]:
        return self._records
    
    @property
    def unrecognized(self) -> tuple[str, ...]:
        return self._unrecognized
    
    @property
    def raw_text(self) -> str:
        return self._raw_text
    
    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger
    
    def process_note(
        self,
        text: str,
        correlation_id: Optional[UUID] = None,
    ) -> ProcessResult:
        """Classify a note and make its records the session's collection."""
        correlation_id = correlation_id or create_correlation_id()
        
        self._audit_logger.log_note_received(
            line_count=len(normalize_text(text)),
            correlation_id=correlation_id,
        )
        
        result = self._classifier.classify(text)
        
        self._records = tuple(result.recognized)
        self._unrecognized = tuple(result.unrecognized)
        self._raw_text = text
        
        self._audit_logger.log_note_classified(
            recognized=result.recognized_count,
            unrecognized=result.unrecognized,
            correlation_id=correlation_id,
        )
        return result
    
    def load_records(
        self,
        records: Iterable[TransactionRecord],
        source: str = "snapshot",
        raw_text: str = "",
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Replace the whole collection, e.g. with a historical snapshot."""
        correlation_id = correlation_id or create_correlation_id()
        
        self._records = tuple(records)
        self._unrecognized = ()
        self._raw_text = raw_text
        
        self._audit_logger.log_records_loaded(
            record_count=len(self._records),
            source=source,
            correlation_id=correlation_id,
        )
    
    def load_storage_rows(
        self,
        rows: Iterable[Mapping[str, Any]],
        raw_text: str = "",
        correlation_id: Optional[UUID] = None,
    ) -> tuple[TransactionRecord, ...]:
        """
        Rebuild the collection from persisted rows.
        
        Raises:
            StorageRowError: If any row is unusable; the session is left unchanged
        """
        correlation_id = correlation_id or create_correlation_id()
        
        try:
            records = records_from_storage_rows(
                rows,
                currency_marker=self._classifier.config.currency_marker,
            )
        except StorageRowError as e:
            self._audit_logger.log_error(
                error_type="storage_row",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise
        
        self.load_records(
            records,
            source="storage",
            raw_text=raw_text,
            correlation_id=correlation_id,
        )
        return self._records
    
    def categories(self) -> list[CategoryGroup]:
        return aggregate_by_category(self._records)
    
    def reconciliation(self) -> DebtReconciliation:
        return reconcile_debts(self._records)
    
    def outstanding_debts(self) -> list[tuple[str, int]]:
        return outstanding_debts(self.reconciliation())
    
    def dominance(
        self,
        saved_totals: Optional[Mapping[str, int]] = None,
        limit: Optional[int] = None,
    ) -> list[CategoryDominance]:
        """Saved monthly totals merged with this session's unsaved expenses."""
        if limit is None:
            limit = self._settings.parser.dominance_limit
        return category_dominance(self._records, saved_totals, limit)
    
    def summary(self, correlation_id: Optional[UUID] = None) -> LedgerSummary:
        """Recompute every view from the current collection."""
        correlation_id = correlation_id or create_correlation_id()
        
        categories = self.categories()
        reconciliation = self.reconciliation()
        totals = compute_totals(self._records, reconciliation)
        
        self._audit_logger.log_categories_aggregated(
            group_count=len(categories),
            correlation_id=correlation_id,
        )
        self._audit_logger.log_debts_reconciled(
            person_count=len(reconciliation.per_person),
            total_settled=reconciliation.total_settled,
            correlation_id=correlation_id,
        )
        
        return LedgerSummary(
            categories=categories,
            reconciliation=reconciliation,
            totals=totals,
            unrecognized=list(self._unrecognized),
        )
    
    def query(
        self,
        query: LedgerQuery,
        correlation_id: Optional[UUID] = None,
    ) -> QueryResult:
        """Answer a structured query from the current collection."""
        correlation_id = correlation_id or create_correlation_id()
        
        result = QueryExecutor(self._records).execute(query)
        
        self._audit_logger.log_query_executed(
            query_id=query.query_id,
            query_type=query.query_type,
            result_count=result.result_count,
            correlation_id=correlation_id,
        )
        return result
    
    def storage_rows(self) -> list[dict]:
        """Rows for a storage collaborator, keyed by fingerprint."""
        return [record.to_storage_row() for record in self._records]
    
    def snapshot(
        self,
        note_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> HistoricalNote:
        """Package the session as a history entry."""
        correlation_id = correlation_id or create_correlation_id()
        
        net_balance = compute_totals(self._records).net
        note = HistoricalNote(
            id=note_id,
            net_balance=net_balance,
            raw_text=self._raw_text,
        )
        
        self._audit_logger.log_snapshot_created(
            note_id=note_id,
            net_balance=net_balance,
            correlation_id=correlation_id,
        )
        return note


def create_session(
    settings: Optional[Settings] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> NoteLedgerSession:
    """
    Factory function to create a ready-to-use session.
    
    Configures structured logging from settings on first use.
    """
    settings = settings or get_settings()
    configure_logging(settings.logging)
    return NoteLedgerSession(audit_logger=audit_logger, settings=settings)
