"""
Ledger Document Migrations

Upgrades stored documents to CURRENT_SCHEMA_VERSION. Runs at bootstrap
only; the engine and the storage backends refuse any other version.

VERSION 0 is the browser export of the original app: one key per
localStorage entry (monimo_transactions, inventoryData, ...), camelCase
fields, plain numbers for money, and values that are either JSON
strings or already-decoded lists.

VERSION 1 changes:
- snake_case fields, Decimal money
- audit entries carry the transaction id in txn_id (recovered from the
  "Sale tx <id>" style notes)
- receipts use received_from instead of from
- disbursements that pay a purchase carry its purchase_id
"""

import json
import re
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Callable, Optional, Union

import structlog

from monimo.models.ledger import CURRENT_SCHEMA_VERSION, LEDGER_KEYS
from monimo.services.storage.interface import (
    CorruptSnapshotError,
    SchemaMismatchError,
    StorageError,
    document_to_snapshot,
)
from monimo.services.storage.json_file import JsonFileStorage


logger = structlog.get_logger("monimo.storage.migrations")


# localStorage key -> ledger key
LEGACY_KEYS = {
    "monimo_transactions": "transactions",
    "inventoryData": "inventory",
    "inventoryLogs": "inventory_log",
    "purchasesJournal": "purchases_journal",
    "salesJournal": "sales_journal",
    "cashReceipts": "cash_receipts",
    "cashDisbursements": "cash_disbursements",
    "monimo_settings": "settings",
}

# "Sale tx 123", "Restore from revert of purchase tx 123", ...
_TXN_NOTE = re.compile(r"\btx\s+(\S+)\s*$")


# =============================================================================
# HELPERS
# =============================================================================

def _decode(value: Any, default: Any) -> Any:
    """localStorage values may still be JSON text."""
    if value is None:
        return default
    if isinstance(value, str):
        if not value.strip():
            return default
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise CorruptSnapshotError(f"Legacy value is not valid JSON: {e}") from e
    return value


def _money(value: Any) -> str:
    if value is None or value == "":
        return "0"
    try:
        return str(Decimal(str(value)))
    except InvalidOperation as e:
        raise CorruptSnapshotError(f"Not a number: {value!r}") from e


def _optional_money(value: Any) -> Optional[str]:
    return None if value is None or value == "" else _money(value)


def _int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(Decimal(str(value)))
    except InvalidOperation as e:
        raise CorruptSnapshotError(f"Not a quantity: {value!r}") from e


def _id(value: Any) -> Optional[str]:
    return None if value is None or value == "" else str(value)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


# =============================================================================
# VERSION 0 -> 1
# =============================================================================

def _v0_transaction(t: dict) -> dict:
    inv_id = _id(t.get("invId"))
    qty = _int(t.get("invQty")) if inv_id else None
    return {
        "id": _id(t.get("id")),
        "description": _text(t.get("description")),
        "amount": _money(t.get("amount")),
        "type": t.get("type"),
        "date": t.get("date"),
        "inv_id": inv_id,
        "inv_qty": qty if qty else None,
        "inv_name": t.get("invName") if inv_id else None,
        "inv_cost": _optional_money(t.get("invCost")),
        "payment_method": t.get("paymentMethod") or "Cash",
        "customer": _text(t.get("customer")),
        "supplier": _text(t.get("supplier")),
    }


def _v0_item(i: dict) -> dict:
    return {
        "id": _id(i.get("id")),
        "name": _text(i.get("name")),
        "description": _text(i.get("description")),
        "category": _text(i.get("category")),
        "unit_price": _money(i.get("unitPrice", i.get("price"))),
        "quantity": _int(i.get("quantity")) or 0,
    }


def _v0_log(entry: dict) -> dict:
    note = _text(entry.get("note"))
    match = _TXN_NOTE.search(note)
    return {
        "id": _id(entry.get("id")),
        "timestamp": entry.get("timestamp"),
        "item_id": _id(entry.get("itemId")),
        "item_name": _text(entry.get("itemName")),
        "action": entry.get("action"),
        "qty_change": _int(entry.get("qtyChange")) or 0,
        "balance_after": _int(entry.get("balanceAfter")),
        "note": note,
        "txn_id": match.group(1) if match else None,
    }


def _v0_journal_entry(e: dict, party_field: str) -> dict:
    return {
        "id": _id(e.get("id")),
        "txn_id": _id(e.get("txnId")),
        "date": e.get("date"),
        "description": _text(e.get("description")),
        "amount": _money(e.get("amount")),
        "inv_id": _id(e.get("invId")),
        "inv_qty": _int(e.get("invQty")),
        "payment_method": e.get("paymentMethod") or "Cash",
        party_field: _text(e.get(party_field)),
        "paid_amount": _money(e.get("paidAmount")),
        "paid": bool(e.get("paid")),
    }


def _v0_receipt(r: dict) -> dict:
    return {
        "id": _id(r.get("id")),
        "date": r.get("date"),
        "received_from": _text(r.get("from")),
        "amount": _money(r.get("amount")),
        "sale_id": _id(r.get("saleId")),
        "note": _text(r.get("note")),
    }


def _v0_disbursement(d: dict, purchase_by_txn: dict[str, str]) -> dict:
    txn_id = _id(d.get("txnId"))
    return {
        "id": _id(d.get("id")),
        "date": d.get("date"),
        "description": _text(d.get("description")),
        "amount": _money(d.get("amount")),
        "txn_id": txn_id,
        "purchase_id": _id(d.get("purchaseId")) or purchase_by_txn.get(txn_id),
        "note": _text(d.get("note")),
    }


def _v0_settings(s: dict) -> dict:
    return {
        "business_name": s.get("businessName") or "Monimo",
        "theme": s.get("theme") or "light",
        "accent": s.get("accent") or "blue",
    }


def migrate_v0_to_v1(document: dict) -> dict:
    """Convert a legacy browser export into a version 1 document."""
    legacy = {
        new_key: _decode(document.get(old_key), {} if new_key == "settings" else [])
        for old_key, new_key in LEGACY_KEYS.items()
    }

    purchases = [_v0_journal_entry(p, "supplier") for p in legacy["purchases_journal"]]
    purchase_by_txn = {p["txn_id"]: p["id"] for p in purchases if p["txn_id"]}

    return {
        "schema_version": 1,
        "transactions": [_v0_transaction(t) for t in legacy["transactions"]],
        "inventory": [_v0_item(i) for i in legacy["inventory"]],
        "inventory_log": [_v0_log(e) for e in legacy["inventory_log"]],
        "purchases_journal": purchases,
        "sales_journal": [_v0_journal_entry(s, "customer") for s in legacy["sales_journal"]],
        "cash_receipts": [_v0_receipt(r) for r in legacy["cash_receipts"]],
        "cash_disbursements": [
            _v0_disbursement(d, purchase_by_txn) for d in legacy["cash_disbursements"]
        ],
        "settings": _v0_settings(legacy["settings"]),
    }


# version -> step that produces version + 1
MIGRATIONS: dict[int, Callable[[dict], dict]] = {
    0: migrate_v0_to_v1,
}


# =============================================================================
# RUNNERS
# =============================================================================

def detect_version(document: Any) -> int:
    """
    Work out which schema a decoded document uses.

    Raises:
        CorruptSnapshotError: not a ledger document at all
    """
    if not isinstance(document, dict):
        raise CorruptSnapshotError("Ledger document is not a JSON object")
    if "schema_version" in document:
        version = document["schema_version"]
        if not isinstance(version, int):
            raise SchemaMismatchError(version)
        return version
    if any(key in document for key in LEGACY_KEYS):
        return 0
    if all(key in document for key in LEDGER_KEYS):
        raise SchemaMismatchError(None)
    raise CorruptSnapshotError("Document is neither a ledger nor a legacy export")


def migrate_document(document: Any) -> tuple[dict, list[int]]:
    """
    Upgrade a document to the current schema.

    Returns:
        (upgraded document, list of versions that were migrated from)

    Raises:
        SchemaMismatchError: newer than this build, or no migration path
        CorruptSnapshotError: legacy data cannot be converted
    """
    version = detect_version(document)
    if version > CURRENT_SCHEMA_VERSION:
        raise SchemaMismatchError(version)

    applied = []
    while version < CURRENT_SCHEMA_VERSION:
        step = MIGRATIONS.get(version)
        if step is None:
            raise SchemaMismatchError(version)
        document = step(document)
        applied.append(version)
        version += 1
        logger.info("ledger_migrated", from_version=applied[-1], to_version=version)

    return document, applied


def migrate_storage_file(path: Union[str, Path]) -> bool:
    """
    Upgrade a ledger file in place.

    The migrated document is validated before anything is written, so a
    failed migration leaves the file untouched.

    Returns:
        True if the file was rewritten, False if it was already current
        or does not exist.
    """
    path = Path(path).expanduser()
    if not path.exists():
        return False

    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise StorageError(f"Could not read ledger file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise CorruptSnapshotError(f"Ledger file {path} is not valid JSON: {e}") from e

    upgraded, applied = migrate_document(document)
    if not applied:
        return False

    snapshot = document_to_snapshot(upgraded)
    JsonFileStorage(path).save(snapshot)
    logger.info("ledger_file_migrated", path=str(path), steps=applied)
    return True
