"""
Fungible Balance Ledger

This module provides:
- Balances for a single fungible asset, minted once at construction
- Transfers and allowance-based transfers on behalf of an owner
- Unsigned 256-bit arithmetic that rejects overflow instead of wrapping
"""

from .models import (
    TokenInfo,
    AccountBalance,
    AllowanceInfo,
)
from .service import BalanceLedger, LedgerStorage, to_base_units, format_units

__all__ = [
    "TokenInfo",
    "AccountBalance",
    "AllowanceInfo",
    "BalanceLedger",
    "LedgerStorage",
    "to_base_units",
    "format_units",
]
