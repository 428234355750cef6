"""
Operational Audit Events for Monimo

Every public ledger operation produces one event describing what
happened (or why it was rejected). These events feed the structured
log. They are separate from the inventory audit log, which is ledger
data persisted with the snapshot.

DESIGN DECISION: Events are immutable records. Helpers on
AuditEventBuilder fix the event type, severity and details shape for
each operation.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Payments
    PAYMENT_SETTLED = "payment_settled"

    # Inventory
    ITEM_CREATED = "item_created"
    ITEM_UPDATED = "item_updated"
    ITEM_DELETED = "item_deleted"
    STOCK_ADJUSTED = "stock_adjusted"

    # Settings
    SETTINGS_UPDATED = "settings_updated"

    # Failures
    VALIDATION_WARNING = "validation_warning"
    OPERATION_REJECTED = "operation_rejected"
    ROLLBACK_FAILED = "rollback_failed"
    STORAGE_FAILED = "storage_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of the operational trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'item', 'sale')"
    )
    entity_id: Optional[str] = None

    # Correlation - one id per public operation
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
    )
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_code: Optional[str] = None
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
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(txn_id, "revenue", amount)
        event = AuditEventBuilder.operation_rejected("delete_transaction", exc)
    """

    @staticmethod
    def transaction_created(
        txn_id: str,
        txn_type: str,
        amount: Decimal,
        inv_id: Optional[str] = None,
        inv_qty: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            entity_type="transaction",
            entity_id=txn_id,
            correlation_id=correlation_id,
            description=f"Transaction recorded: {txn_type} {amount}",
            details={
                "type": txn_type,
                "amount": str(amount),
                "inv_id": inv_id,
                "inv_qty": inv_qty,
            },
        )

    @staticmethod
    def transaction_updated(
        txn_id: str,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=txn_id,
            correlation_id=correlation_id,
            description=f"Transaction edited ({len(changes)} fields changed)",
            details={"changes": changes},
        )

    @staticmethod
    def transaction_deleted(
        txn_id: str,
        txn_type: str,
        amount: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=txn_id,
            correlation_id=correlation_id,
            description=f"Transaction deleted: {txn_type} {amount}",
            details={"type": txn_type, "amount": str(amount)},
        )

    @staticmethod
    def payment_settled(
        entry_id: str,
        kind: str,
        amount: Decimal,
        fully_paid: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_SETTLED,
            entity_type=kind,
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"{'Paid in full' if fully_paid else 'Partial payment'}: {amount}",
            details={"amount": str(amount), "fully_paid": fully_paid},
        )

    @staticmethod
    def item_event(
        event_type: AuditEventType,
        item_id: str,
        name: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        verb = {
            AuditEventType.ITEM_CREATED: "created",
            AuditEventType.ITEM_UPDATED: "updated",
            AuditEventType.ITEM_DELETED: "deleted",
            AuditEventType.STOCK_ADJUSTED: "stock adjusted",
        }.get(event_type, event_type.value)
        return AuditEvent(
            event_type=event_type,
            entity_type="item",
            entity_id=item_id,
            correlation_id=correlation_id,
            description=f"Item {verb}: {name}",
            details=details or {},
        )

    @staticmethod
    def settings_updated(
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            entity_type="settings",
            correlation_id=correlation_id,
            description="Display settings updated",
            details={"changes": changes},
        )

    @staticmethod
    def validation_warning(
        subject: str,
        warnings: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_WARNING,
            severity=AuditSeverity.WARNING,
            entity_type=subject,
            correlation_id=correlation_id,
            description=f"{subject.capitalize()} accepted with {len(warnings)} warnings",
            details={"warnings": warnings},
        )

    @staticmethod
    def operation_rejected(
        operation: str,
        error: Exception,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Operation rejected: {operation}",
            details={"operation": operation},
            error_code=type(error).__name__,
            error_message=str(error),
        )

    @staticmethod
    def rollback_failed(
        txn_id: str,
        error: Exception,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ROLLBACK_FAILED,
            severity=AuditSeverity.CRITICAL,
            entity_type="transaction",
            entity_id=txn_id,
            correlation_id=correlation_id,
            description="Edit failed and inventory rollback failed",
            error_code=type(error).__name__,
            error_message=str(error),
        )

    @staticmethod
    def storage_failed(
        operation: str,
        error: Exception,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Could not persist ledger after {operation}",
            details={"operation": operation},
            error_code=type(error).__name__,
            error_message=str(error),
        )
