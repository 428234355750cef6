"""
Input Validation

Checks user input before the ledger is touched:

TRANSACTIONS:
- description must be non-empty and at most 500 characters
- amount must be greater than zero
- an inventory-linked transaction needs a quantity greater than zero
- unusually large amounts pass with a warning

INVENTORY ITEMS:
- name, description and category must fit their stored lengths
- name must be non-empty
- unit price must be zero or more
- opening quantity must be zero or more

IMPORTANT: Validation NEVER silently fixes input. It reports every
issue, and check() raises ValidationError when any issue is an error.
"""

from decimal import Decimal
from typing import Optional

from monimo.config import get_settings
from monimo.ledger.exceptions import ValidationError
from monimo.models.transaction import TransactionDraft
from monimo.models.validation import ValidationIssue, ValidationResult


# Same limits as the max_length constraints on the stored models
MAX_TXN_DESCRIPTION = 500
MAX_ITEM_NAME = 200
MAX_ITEM_DESCRIPTION = 1000
MAX_ITEM_CATEGORY = 100


def _error(field: str, issue_type: str, message: str, fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="error",
        suggested_fix=fix,
    )


def _too_long(field: str, value: Optional[str], limit: int) -> Optional[ValidationIssue]:
    if value is None or len(value.strip()) <= limit:
        return None
    label = field.replace("_", " ")
    return _error(
        field, "too_long",
        f"{label.capitalize()} must be at most {limit} characters",
        f"Shorten the {label}",
    )


class TransactionValidator:
    """Validates transaction drafts."""

    def __init__(self, max_amount: Optional[Decimal] = None):
        if max_amount is None:
            max_amount = Decimal(str(get_settings().ledger.max_transaction_amount))
        self._max_amount = max_amount

    def validate(self, draft: TransactionDraft) -> ValidationResult:
        issues = []

        if not draft.description:
            issues.append(_error(
                "description", "missing",
                "Description is required",
                "Enter a short description of the transaction",
            ))
        else:
            issue = _too_long("description", draft.description, MAX_TXN_DESCRIPTION)
            if issue:
                issues.append(issue)

        if draft.amount is None or draft.amount <= 0:
            issues.append(_error(
                "amount", "invalid_value",
                "Amount must be greater than zero",
            ))
        elif draft.amount > self._max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({draft.amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if draft.is_inventory_linked and (draft.inv_qty is None or draft.inv_qty <= 0):
            issues.append(_error(
                "inv_qty", "invalid_value",
                "Enter a valid quantity for the selected inventory item",
            ))

        return ValidationResult(subject="transaction", issues=issues)

    def check(self, draft: TransactionDraft) -> ValidationResult:
        """Validate and raise ValidationError on any error-level issue."""
        result = self.validate(draft)
        if result.has_errors:
            raise ValidationError(result)
        return result


class InventoryItemValidator:
    """Validates item details on creation and edit."""

    def validate(
        self,
        name: str,
        unit_price: Decimal,
        quantity: Optional[int] = None,
        allow_negative_quantity: bool = False,
        description: str = "",
        category: str = "",
    ) -> ValidationResult:
        issues = []

        if not name or not name.strip():
            issues.append(_error("name", "missing", "Item name is required"))

        for field, value, limit in (
            ("name", name, MAX_ITEM_NAME),
            ("description", description, MAX_ITEM_DESCRIPTION),
            ("category", category, MAX_ITEM_CATEGORY),
        ):
            issue = _too_long(field, value, limit)
            if issue:
                issues.append(issue)

        if unit_price is None or Decimal(unit_price) < 0:
            issues.append(_error("unit_price", "invalid_value", "Enter a valid unit price"))

        if quantity is not None and quantity < 0 and not allow_negative_quantity:
            issues.append(_error(
                "quantity", "invalid_value",
                "Starting quantity cannot be negative",
            ))

        return ValidationResult(subject="inventory_item", issues=issues)

    def check(self, *args, **kwargs) -> ValidationResult:
        result = self.validate(*args, **kwargs)
        if result.has_errors:
            raise ValidationError(result)
        return result


def check_stock_delta(delta: int) -> None:
    """A manual adjustment must change the quantity."""
    if delta == 0:
        raise ValidationError(ValidationResult(
            subject="stock_adjustment",
            issues=[_error("delta", "invalid_value", "Select item and enter valid qty")],
        ))
