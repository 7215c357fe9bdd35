"""
Treasury Workflow

This module provides:
- A pooled treasury balance held on the fungible ledger
- Expense requests that need doctor, nurse and finance approval
- Admin-only release of approved funds to the request's vendor
"""

from .models import (
    RequestType,
    RequestStatus,
    ApprovalStatus,
    ExpenseRequest,
)
from .service import TreasuryWorkflow, TreasuryStorage
from .bootstrap import TreasuryFlowServices, build_services

__all__ = [
    "RequestType",
    "RequestStatus",
    "ApprovalStatus",
    "ExpenseRequest",
    "TreasuryWorkflow",
    "TreasuryStorage",
    "TreasuryFlowServices",
    "build_services",
]
