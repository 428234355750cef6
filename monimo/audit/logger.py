"""
Audit Logger

Every public ledger operation is logged as a structured event:
- successful mutations at info level
- rejected operations (bad input, missing item, insufficient stock,
  unconfirmed negative stock) at warning level
- storage failures at error level
- a failed edit rollback at critical level

Supports correlation IDs to tie the events of one operation together.
"""

import logging
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from monimo.models.audit import AuditEvent, AuditEventBuilder, AuditEventType


# Configure structlog for local logging
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
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through the stdlib root logger at `level`."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))
    logging.getLogger("monimo").setLevel(level.upper())


class AuditLogger:
    """Central operational logging service."""

    def __init__(self, logger_name: str = "monimo.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level matching its severity."""
        log_dict = event.to_log_dict()
        severity = event.severity.value

        if severity == "critical":
            self._logger.critical("audit_event", **log_dict)
        elif severity == "error":
            self._logger.error("audit_event", **log_dict)
        elif severity == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif severity == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def log_transaction_created(
        self,
        txn_id: str,
        txn_type: str,
        amount: Decimal,
        inv_id: Optional[str],
        inv_qty: Optional[int],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_created(
            txn_id=txn_id,
            txn_type=txn_type,
            amount=amount,
            inv_id=inv_id,
            inv_qty=inv_qty,
            correlation_id=correlation_id,
        ))

    def log_transaction_updated(
        self,
        txn_id: str,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_updated(
            txn_id=txn_id,
            changes=changes,
            correlation_id=correlation_id,
        ))

    def log_transaction_deleted(
        self,
        txn_id: str,
        txn_type: str,
        amount: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_deleted(
            txn_id=txn_id,
            txn_type=txn_type,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_payment_settled(
        self,
        entry_id: str,
        kind: str,
        amount: Decimal,
        fully_paid: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.payment_settled(
            entry_id=entry_id,
            kind=kind,
            amount=amount,
            fully_paid=fully_paid,
            correlation_id=correlation_id,
        ))

    def log_item_event(
        self,
        event_type: AuditEventType,
        item_id: str,
        name: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.item_event(
            event_type=event_type,
            item_id=item_id,
            name=name,
            details=details,
            correlation_id=correlation_id,
        ))

    def log_settings_updated(
        self,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.settings_updated(changes, correlation_id))

    def log_validation_warnings(
        self,
        subject: str,
        warnings: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        if warnings:
            self.log(AuditEventBuilder.validation_warning(subject, warnings, correlation_id))

    def log_rejected(
        self,
        operation: str,
        error: Exception,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.operation_rejected(operation, error, correlation_id))

    def log_rollback_failed(
        self,
        txn_id: str,
        error: Exception,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.rollback_failed(txn_id, error, correlation_id))

    def log_storage_failed(
        self,
        operation: str,
        error: Exception,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.storage_failed(operation, error, correlation_id))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of each public operation.
    """
    return uuid4()
