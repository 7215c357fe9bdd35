"""
Shared plumbing for the MedTreasury Flow components

This package provides:
- Typed error taxonomy shared by ledger, credentials and treasury
- Environment-driven configuration
- Structured JSON logging
- Event dispatch for emitted notifications
- Clock sources
"""

from .accounts import ZERO_ADDRESS, UINT256_MAX, is_null_account, is_uint256
from .clock import ManualClock, system_clock
from .config import TreasuryFlowConfig, get_config, reload_config
from .errors import (
    TreasuryFlowError,
    UnauthorizedError,
    NotFoundError,
    RequestNotFoundError,
    CredentialNotFoundError,
    InvalidStatusError,
    NotApprovedError,
    InvalidInputError,
    InvalidAmountError,
    InvalidVendorError,
    InvalidDurationError,
    InvalidRecipientError,
    InvalidProofTokenError,
    InsufficientBalanceError,
    InsufficientAllowanceError,
)
from .events import EventType, EventPayload, EventDispatcher

__all__ = [
    "ZERO_ADDRESS",
    "UINT256_MAX",
    "is_null_account",
    "is_uint256",
    "ManualClock",
    "system_clock",
    "TreasuryFlowConfig",
    "get_config",
    "reload_config",
    "TreasuryFlowError",
    "UnauthorizedError",
    "NotFoundError",
    "RequestNotFoundError",
    "CredentialNotFoundError",
    "InvalidStatusError",
    "NotApprovedError",
    "InvalidInputError",
    "InvalidAmountError",
    "InvalidVendorError",
    "InvalidDurationError",
    "InvalidRecipientError",
    "InvalidProofTokenError",
    "InsufficientBalanceError",
    "InsufficientAllowanceError",
    "EventType",
    "EventPayload",
    "EventDispatcher",
]
