"""
Monimo - Source Package

Bookkeeping engine for a small shop: transactions, inventory with an
audit trail, purchases/sales journals, cash receipts and disbursements,
and settlement of credit sales and purchases.

DESIGN PRINCIPLES:
1. Every operation commits completely or not at all
2. Fail early, fail visibly
3. No silent corrections
4. Every stock movement is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Monimo Team"
