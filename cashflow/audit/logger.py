"""
Audit Logger

DESIGN DECISION: Every change to the record collections is logged.
This provides:
1. Complete traceability of adds, edits, deletes and contributions
2. Debugging capability when a balance looks wrong
3. A visible record of every lenient recovery

The audit logger:
- Gracefully handles failures (doesn't crash a flow if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from cashflow.models.audit import AuditEvent, AuditEventBuilder
from cashflow.services.storage import AuditStorageInterface


def configure_logging(level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure structlog on top of the stdlib logging factory.

    Call once at startup (create_app_components does).
    """
    renderer = (
        structlog.dev.ConsoleRenderer()
        if log_format == "console"
        else structlog.processors.JSONRenderer()
    )

    logging.basicConfig(format="%(message)s", level=logging.WARNING)
    logging.getLogger("cashflow").setLevel(level.upper())

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


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("cashflow.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_transaction_added(
        self,
        transaction_id: UUID,
        name: str,
        recurrence: str,
        occurrence_count: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.transaction_added(
            transaction_id=transaction_id,
            name=name,
            recurrence=recurrence,
            occurrence_count=occurrence_count,
            correlation_id=correlation_id,
        ))

    def log_transaction_updated(
        self,
        transaction_id: UUID,
        name: str,
        occurrence_count: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            name=name,
            occurrence_count=occurrence_count,
            correlation_id=correlation_id,
        ))

    def log_transaction_deleted(
        self,
        transaction_id: UUID,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        ))

    def log_goal_saved(
        self,
        goal_id: UUID,
        name: str,
        feasibility: Optional[str],
        is_new: bool,
        correlation_id: UUID,
    ) -> None:
        """Log a goal add or edit."""
        self.log(AuditEventBuilder.goal_saved(
            goal_id=goal_id,
            name=name,
            feasibility=feasibility,
            is_new=is_new,
            correlation_id=correlation_id,
        ))

    def log_goal_deleted(
        self,
        goal_id: UUID,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.goal_deleted(
            goal_id=goal_id,
            correlation_id=correlation_id,
        ))

    def log_goal_contribution(
        self,
        goal_id: UUID,
        transaction_id: UUID,
        amount: str,
        contributed: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.goal_contribution(
            goal_id=goal_id,
            transaction_id=transaction_id,
            amount=amount,
            contributed=contributed,
            correlation_id=correlation_id,
        ))

    def log_goal_achieved(
        self,
        goal_id: UUID,
        name: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.goal_achieved(
            goal_id=goal_id,
            name=name,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        entity_type: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log validation failure."""
        self.log(AuditEventBuilder.validation_failed(
            entity_type=entity_type,
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_balance_computed(
        self,
        window: str,
        balance: str,
        occurrence_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.balance_computed(
            window=window,
            balance=balance,
            occurrence_count=occurrence_count,
            correlation_id=correlation_id,
        ))

    def log_custom_range_fallback(
        self,
        start: str,
        end: str,
        fallback: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.custom_range_fallback(
            start=start,
            end=end,
            fallback=fallback,
            correlation_id=correlation_id,
        ))

    def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
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

    Use this at the start of a new user action (e.g., a contribution).
    Pass it through all subsequent operations.
    """
    return uuid4()
