"""
Audit Logger

DESIGN DECISION: Every significant step of a session is logged.
This provides:
1. Traceability from a summary back to the note that produced it
2. Debugging capability for lines that were not understood
3. A history the presentation layer can show

The audit logger:
- Is synchronous, like the rest of the core
- Gracefully handles sink failures (a broken sink never breaks a session)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from typing import Callable, Optional
from uuid import UUID, uuid4

import structlog

from noteledger.config import LoggingSettings, get_settings
from noteledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


_PKG_LOGGER_NAME = "noteledger"
_CONFIGURED = False
_HANDLER: Optional[logging.Handler] = None


def configure_logging(
    settings: Optional[LoggingSettings] = None,
    force: bool = False,
) -> None:
    """
    Configure structlog on top of stdlib logging for the package.
    
    Runs once per process unless force=True. Library modules only call
    structlog.get_logger(__name__) and never attach handlers themselves.
    """
    global _CONFIGURED, _HANDLER
    if _CONFIGURED and not force:
        return
    
    settings = settings or get_settings().logging
    
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    pkg_logger.setLevel(settings.level)
    if _HANDLER is None:
        _HANDLER = logging.StreamHandler(sys.stderr)
        _HANDLER.setFormatter(logging.Formatter("%(message)s"))
        pkg_logger.addHandler(_HANDLER)
    pkg_logger.propagate = False
    
    renderer = (
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if settings.json_output
        else structlog.dev.ConsoleRenderer()
    )
    
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    
    _CONFIGURED = True


class AuditLogger:
    """
    Central audit logging service.
    
    Logs events both to:
    1. Structured local log (for debugging)
    2. An append-only in-memory trail, and an optional sink callable
       that a storage collaborator can supply
    """
    
    def __init__(
        self,
        sink: Optional[Callable[[AuditEvent], None]] = None,
    ):
        """
        Initialize audit logger.
        
        Args:
            sink: Called with every event for persistence.
                  If None, events are only logged and kept in memory.
        """
        self._sink = sink
        self._events: list[AuditEvent] = []
        self._logger = structlog.get_logger(__name__)
    
    @property
    def events(self) -> tuple[AuditEvent, ...]:
        return tuple(self._events)
    
    def events_for(self, correlation_id: UUID) -> list[AuditEvent]:
        """All events of one note or action, in the order they happened."""
        return [e for e in self._events if e.correlation_id == correlation_id]
    
    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.
        
        Always logs locally. Hands the event to the sink if one is set.
        
        Returns True if the sink accepted it (or no sink is configured).
        """
        self._events.append(event)
        log_dict = event.to_log_dict()
        
        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)
        
        if self._sink:
            try:
                self._sink(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_sink_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False
        
        return True
    
    def log_note_received(self, line_count: int, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.note_received(
            line_count=line_count,
            correlation_id=correlation_id,
        ))
    
    def log_note_classified(
        self,
        recognized: int,
        unrecognized: list[str],
        correlation_id: UUID,
    ) -> None:
        """Log the batch outcome and one warning per line not understood."""
        self.log(AuditEventBuilder.note_classified(
            recognized=recognized,
            unrecognized=len(unrecognized),
            correlation_id=correlation_id,
        ))
        for line in unrecognized:
            self.log(AuditEventBuilder.line_unrecognized(
                line=line,
                correlation_id=correlation_id,
            ))
    
    def log_records_loaded(
        self,
        record_count: int,
        source: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.records_loaded(
            record_count=record_count,
            source=source,
            correlation_id=correlation_id,
        ))
    
    def log_snapshot_created(
        self,
        note_id: str,
        net_balance: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.snapshot_created(
            note_id=note_id,
            net_balance=net_balance,
            correlation_id=correlation_id,
        ))
    
    def log_categories_aggregated(self, group_count: int, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.categories_aggregated(
            group_count=group_count,
            correlation_id=correlation_id,
        ))
    
    def log_debts_reconciled(
        self,
        person_count: int,
        total_settled: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.debts_reconciled(
            person_count=person_count,
            total_settled=total_settled,
            correlation_id=correlation_id,
        ))
    
    def log_query_executed(
        self,
        query_id: UUID,
        query_type: str,
        result_count: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.query_executed(
            query_id=query_id,
            query_type=query_type,
            result_count=result_count,
            correlation_id=correlation_id,
        ))
    
    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.
    
    Use this at the start of a new user action (e.g., pasting a note).
    Pass it through all subsequent operations.
    """
    return uuid4()
