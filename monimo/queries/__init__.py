"""Ledger reporting package."""

from monimo.queries.reports import LedgerReports

__all__ = ["LedgerReports"]
