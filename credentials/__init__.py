"""
Credential Registry

This module provides:
- An admin-managed set of issuer accounts
- Time-bound, revocable role credentials keyed by (holder, role)
- Role checks and placeholder proof-token verification for authorization
"""

from .models import Role, Credential, PROOF_TOKEN_SIZE
from .registry import CredentialRegistry, CredentialStorage, make_proof_token

__all__ = [
    "Role",
    "Credential",
    "PROOF_TOKEN_SIZE",
    "CredentialRegistry",
    "CredentialStorage",
    "make_proof_token",
]
