from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict

from credentials.models import Role


class _OrdinalEnum(str, Enum):
    """String enum that also resolves the legacy ordinal (0, 1, ...) form."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            members = list(cls)
            if 0 <= value < len(members):
                return members[value]
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None


class RequestType(_OrdinalEnum):
    MEDICAL_SUPPLIES = "MEDICAL_SUPPLIES"
    MEDICATION = "MEDICATION"
    EQUIPMENT = "EQUIPMENT"
    OTHER = "OTHER"


class RequestStatus(_OrdinalEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    # Kept for interface compatibility; no operation moves a request here
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"


# Role whose approval each flag records
APPROVAL_FLAGS: dict[Role, str] = {
    Role.DOCTOR: "doctor",
    Role.NURSE: "nurse",
    Role.FINANCE: "finance",
}


class ApprovalStatus(BaseModel):
    doctor: bool = False
    nurse: bool = False
    finance: bool = False

    def is_complete(self) -> bool:
        return all(getattr(self, flag) for flag in APPROVAL_FLAGS.values())


class ExpenseRequest(BaseModel):
    id: int
    requester: str
    amount: int
    description: str
    request_type: RequestType
    vendor: str
    status: RequestStatus
    approvals: ApprovalStatus
    created_at: int
    approved_at: Optional[int] = None
    completed_at: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

    def can_approve(self, role: Role) -> bool:
        return self.status == RequestStatus.PENDING and not getattr(self.approvals, APPROVAL_FLAGS[role])

    def can_release(self) -> bool:
        return self.status == RequestStatus.APPROVED


class FundTreasuryRequest(BaseModel):
    amount: int = Field(..., description="Amount in base units; must be pre-approved for the treasury")


class CreateExpenseRequest(BaseModel):
    amount: int = Field(..., description="Amount in base units, must be positive")
    description: str = ""
    request_type: RequestType = RequestType.MEDICAL_SUPPLIES
    vendor: str

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "amount": 5000 * 10**18,
            "description": "Emergency medical supplies - antibiotics",
            "request_type": "MEDICAL_SUPPLIES",
            "vendor": "0x" + "e" * 40,
        }
    })


class ExpenseRequestResponse(BaseModel):
    request: ExpenseRequest
    message: str


class TreasuryBalance(BaseModel):
    account: str
    balance: int
    formatted: str


class RequestListResponse(BaseModel):
    requests: list[ExpenseRequest]
    total_count: int
