"""
Audit Models for Note Ledger

Significant steps of a session are recorded as audit events:
1. A note arriving and how it was classified
2. Lines the classifier could not understand
3. Record collections loaded from storage
4. Reconciliation runs

DESIGN DECISION: Audit trails are append-only. We never delete or modify events.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Note processing
    NOTE_RECEIVED = "note_received"
    NOTE_CLASSIFIED = "note_classified"
    LINE_UNRECOGNIZED = "line_unrecognized"
    
    # Session state
    RECORDS_LOADED = "records_loaded"
    SNAPSHOT_CREATED = "snapshot_created"
    
    # Ledger views
    CATEGORIES_AGGREGATED = "categories_aggregated"
    DEBTS_RECONCILED = "debts_reconciled"
    QUERY_EXECUTED = "query_executed"
    
    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.
    
    Every significant step creates one of these.
    """
    
    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )
    
    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )
    
    # Correlation - all events of one note share an id
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events"
    )
    
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None
    
    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }
    
    def to_row(self) -> list:
        """
        Convert to a flat row for a tabular store.
        
        Returns columns in order:
        [event_id, timestamp, event_type, severity, correlation_id,
         description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, ensure_ascii=False) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.
    """
    
    @staticmethod
    def note_received(
        line_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTE_RECEIVED,
            correlation_id=correlation_id,
            description=f"Note received with {line_count} lines",
            details={
                "line_count": line_count,
            },
        )
    
    @staticmethod
    def note_classified(
        recognized: int,
        unrecognized: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTE_CLASSIFIED,
            correlation_id=correlation_id,
            description=f"Note classified: {recognized} recognized, {unrecognized} not understood",
            details={
                "recognized": recognized,
                "unrecognized": unrecognized,
            },
        )
    
    @staticmethod
    def line_unrecognized(
        line: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LINE_UNRECOGNIZED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description="Line was not understood",
            details={
                "line": line,
            },
        )
    
    @staticmethod
    def records_loaded(
        record_count: int,
        source: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORDS_LOADED,
            correlation_id=correlation_id,
            description=f"Loaded {record_count} records from {source}",
            details={
                "record_count": record_count,
                "source": source,
            },
        )
    
    @staticmethod
    def snapshot_created(
        note_id: str,
        net_balance: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_CREATED,
            correlation_id=correlation_id,
            description=f"Snapshot {note_id} created: net ₹{net_balance}",
            details={
                "note_id": note_id,
                "net_balance": net_balance,
            },
        )
    
    @staticmethod
    def categories_aggregated(
        group_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORIES_AGGREGATED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description=f"Aggregated into {group_count} categories",
            details={
                "group_count": group_count,
            },
        )
    
    @staticmethod
    def debts_reconciled(
        person_count: int,
        total_settled: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBTS_RECONCILED,
            correlation_id=correlation_id,
            description=f"Reconciled {person_count} people, ₹{total_settled} settled",
            details={
                "person_count": person_count,
                "total_settled": total_settled,
            },
        )
    
    @staticmethod
    def query_executed(
        query_id: UUID,
        query_type: str,
        result_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.QUERY_EXECUTED,
            correlation_id=correlation_id,
            description=f"Query executed: {query_type} returned {result_count} results",
            details={
                "query_id": str(query_id),
                "query_type": query_type,
                "result_count": result_count,
            },
        )
    
    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
