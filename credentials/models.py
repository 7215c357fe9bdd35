from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, ConfigDict, field_serializer, field_validator

PROOF_TOKEN_SIZE = 32


class Role(str, Enum):
    DOCTOR = "DOCTOR"
    NURSE = "NURSE"
    FINANCE = "FINANCE"


RoleLike = Union[Role, str]


def role_key(role: RoleLike) -> str:
    if isinstance(role, Role):
        return role.value
    return str(role).strip()


def decode_proof_token(token: Union[bytes, bytearray, str]) -> bytes:
    """Accept raw bytes or a 0x-prefixed hex string; return the raw bytes."""
    if isinstance(token, str):
        text = token[2:] if token.lower().startswith("0x") else token
        raw = bytes.fromhex(text)
    elif isinstance(token, (bytes, bytearray)):
        raw = bytes(token)
    else:
        raise TypeError(f"Unsupported proof token type: {type(token).__name__}")

    if len(raw) != PROOF_TOKEN_SIZE:
        raise ValueError(f"Proof token must be {PROOF_TOKEN_SIZE} bytes, got {len(raw)}")
    return raw


class Credential(BaseModel):
    holder: str
    role: str
    # Opaque placeholder compared for equality, not a verified proof
    proof_token: bytes
    issued_at: int
    expires_at: int
    revoked: bool = False

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("proof_token")
    def _serialize_proof_token(self, value: bytes) -> str:
        return "0x" + value.hex()

    def is_active(self, now: int) -> bool:
        return not self.revoked and now < self.expires_at


class AddIssuerRequest(BaseModel):
    account: str


class IssueCredentialRequest(BaseModel):
    holder: str
    role: str = Field(..., description="Role identifier, e.g. DOCTOR, NURSE, FINANCE")
    proof_token: str = Field(..., description="32-byte token as 0x-prefixed hex")
    validity_seconds: int = Field(..., description="Validity window, must be positive")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "holder": "0x" + "d" * 40,
            "role": "DOCTOR",
            "proof_token": "0x" + "11" * 32,
            "validity_seconds": 365 * 24 * 60 * 60,
        }
    })

    @field_validator("role")
    @classmethod
    def _strip_role(cls, value: str) -> str:
        return value.strip()


class RevokeCredentialRequest(BaseModel):
    holder: str
    role: str


class VerifyProofRequest(BaseModel):
    account: str
    role: str
    proof_token: str


class RoleCheckResponse(BaseModel):
    account: str
    role: str
    active: bool
    credential: Optional[Credential] = None
