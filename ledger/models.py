from pydantic import BaseModel, Field, ConfigDict


class TokenInfo(BaseModel):
    name: str
    symbol: str
    decimals: int
    total_supply: int


class AccountBalance(BaseModel):
    account: str
    balance: int
    formatted: str


class AllowanceInfo(BaseModel):
    owner: str
    spender: str
    amount: int


class TransferRequest(BaseModel):
    recipient: str = Field(..., description="Receiving account")
    amount: int = Field(..., ge=0, description="Amount in base units")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "recipient": "0x" + "b" * 40,
            "amount": 5000 * 10**18,
        }
    })


class ApproveRequest(BaseModel):
    spender: str
    amount: int = Field(..., ge=0, description="Absolute allowance, replaces any previous value")


class TransferFromRequest(BaseModel):
    owner: str = Field(..., description="Account whose balance is spent")
    recipient: str
    amount: int = Field(..., ge=0)


class LedgerReceipt(BaseModel):
    success: bool = True
    sender: str
    recipient: str
    amount: int
