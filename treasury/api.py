from typing import Annotated, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import TreasuryFlowConfig, get_config
from core.errors import InvalidInputError, TreasuryFlowError
from core.events import EventType
from core.logging_config import setup_logging
from credentials.models import (
    AddIssuerRequest,
    Credential,
    IssueCredentialRequest,
    RevokeCredentialRequest,
    RoleCheckResponse,
    VerifyProofRequest,
)
from ledger.models import (
    AccountBalance,
    AllowanceInfo,
    ApproveRequest,
    LedgerReceipt,
    TokenInfo,
    TransferFromRequest,
    TransferRequest,
)
from ledger.service import format_units

from .bootstrap import TreasuryFlowServices, build_services
from .models import (
    ApprovalStatus,
    CreateExpenseRequest,
    ExpenseRequest,
    ExpenseRequestResponse,
    FundTreasuryRequest,
    RequestListResponse,
    RequestStatus,
    TreasuryBalance,
)

router = APIRouter()


def get_services(request: Request) -> TreasuryFlowServices:
    return request.app.state.services


# The host envelope identifies the calling account
Caller = Annotated[str, Header(alias="X-Caller", description="Account submitting the operation")]


@router.get("/health", tags=["System"])
def health_check():
    return {"status": "healthy", "service": "medtreasury-flow"}


# Ledger

@router.get("/ledger", response_model=TokenInfo, tags=["Ledger"])
def token_info(services: TreasuryFlowServices = Depends(get_services)) -> TokenInfo:
    return services.ledger.info()


@router.post("/ledger/transfer", response_model=LedgerReceipt, tags=["Ledger"])
def transfer(body: TransferRequest, caller: Caller,
             services: TreasuryFlowServices = Depends(get_services)) -> LedgerReceipt:
    services.ledger.transfer(caller, body.recipient, body.amount)
    return LedgerReceipt(sender=caller, recipient=body.recipient, amount=body.amount)


@router.post("/ledger/approve", response_model=AllowanceInfo, tags=["Ledger"])
def approve(body: ApproveRequest, caller: Caller,
            services: TreasuryFlowServices = Depends(get_services)) -> AllowanceInfo:
    services.ledger.approve(caller, body.spender, body.amount)
    return services.ledger.get_allowance(caller, body.spender)


@router.post("/ledger/transfer-from", response_model=LedgerReceipt, tags=["Ledger"])
def transfer_from(body: TransferFromRequest, caller: Caller,
                  services: TreasuryFlowServices = Depends(get_services)) -> LedgerReceipt:
    services.ledger.transfer_from(caller, body.owner, body.recipient, body.amount)
    return LedgerReceipt(sender=body.owner, recipient=body.recipient, amount=body.amount)


@router.get("/ledger/balances/{account}", response_model=AccountBalance, tags=["Ledger"])
def balance_of(account: str, services: TreasuryFlowServices = Depends(get_services)) -> AccountBalance:
    return services.ledger.get_balance(account)


@router.get("/ledger/allowances/{owner}/{spender}", response_model=AllowanceInfo, tags=["Ledger"])
def allowance(owner: str, spender: str, services: TreasuryFlowServices = Depends(get_services)) -> AllowanceInfo:
    return services.ledger.get_allowance(owner, spender)


# Credentials

@router.post("/credentials/issuers", status_code=status.HTTP_201_CREATED, tags=["Credentials"])
def add_issuer(body: AddIssuerRequest, caller: Caller,
               services: TreasuryFlowServices = Depends(get_services)):
    services.registry.add_issuer(caller, body.account)
    return {"issuers": services.registry.issuers()}


@router.post("/credentials", response_model=Credential, status_code=status.HTTP_201_CREATED,
             response_model_exclude={"proof_token"}, tags=["Credentials"])
def issue_credential(body: IssueCredentialRequest, caller: Caller,
                     services: TreasuryFlowServices = Depends(get_services)) -> Credential:
    return services.registry.issue_credential(
        caller, body.holder, body.role, body.proof_token, body.validity_seconds
    )


@router.post("/credentials/revoke", response_model=Credential, response_model_exclude={"proof_token"},
             tags=["Credentials"])
def revoke_credential(body: RevokeCredentialRequest, caller: Caller,
                      services: TreasuryFlowServices = Depends(get_services)) -> Credential:
    return services.registry.revoke_credential(caller, body.holder, body.role)


@router.get("/credentials/{holder}/{role}", response_model=RoleCheckResponse,
            response_model_exclude={"credential": {"proof_token"}}, tags=["Credentials"])
def check_role(holder: str, role: str, services: TreasuryFlowServices = Depends(get_services)) -> RoleCheckResponse:
    return RoleCheckResponse(
        account=holder,
        role=role,
        active=services.registry.has_role(holder, role),
        credential=services.registry.get_credential(holder, role),
    )


@router.post("/credentials/verify", tags=["Credentials"])
def verify_proof(body: VerifyProofRequest, services: TreasuryFlowServices = Depends(get_services)):
    return {"valid": services.registry.verify_zk_proof(body.account, body.role, body.proof_token)}


# Treasury

@router.post("/treasury/fund", response_model=TreasuryBalance, tags=["Treasury"])
def fund_treasury(body: FundTreasuryRequest, caller: Caller,
                  services: TreasuryFlowServices = Depends(get_services)) -> TreasuryBalance:
    services.treasury.fund_treasury(caller, body.amount)
    return treasury_balance(services)


@router.get("/treasury/balance", response_model=TreasuryBalance, tags=["Treasury"])
def treasury_balance(services: TreasuryFlowServices = Depends(get_services)) -> TreasuryBalance:
    balance = services.treasury.treasury_balance()
    return TreasuryBalance(
        account=services.treasury.account,
        balance=balance,
        formatted=format_units(balance, services.ledger.decimals),
    )


@router.post("/requests", response_model=ExpenseRequestResponse, status_code=status.HTTP_201_CREATED,
             tags=["Requests"])
def create_request(body: CreateExpenseRequest, caller: Caller,
                   services: TreasuryFlowServices = Depends(get_services)) -> ExpenseRequestResponse:
    request_id = services.treasury.create_request(
        caller, body.amount, body.description, body.request_type, body.vendor
    )
    return ExpenseRequestResponse(
        request=services.treasury.get_request(request_id),
        message="Request created successfully",
    )


@router.get("/requests", response_model=RequestListResponse, tags=["Requests"])
def list_requests(request_status: Optional[RequestStatus] = Query(None, alias="status"),
                  limit: int = Query(50, ge=1, le=500), offset: int = Query(0, ge=0),
                  services: TreasuryFlowServices = Depends(get_services)) -> RequestListResponse:
    requests, total = services.treasury.list_requests(request_status, limit, offset)
    return RequestListResponse(requests=requests, total_count=total)


@router.get("/requests/{request_id}", response_model=ExpenseRequest, tags=["Requests"])
def get_request(request_id: int, services: TreasuryFlowServices = Depends(get_services)) -> ExpenseRequest:
    return services.treasury.get_request(request_id)


@router.get("/requests/{request_id}/approvals", response_model=ApprovalStatus, tags=["Requests"])
def get_approval_status(request_id: int, services: TreasuryFlowServices = Depends(get_services)) -> ApprovalStatus:
    return services.treasury.get_approval_status(request_id)


@router.post("/requests/{request_id}/doctor-approve", response_model=ExpenseRequestResponse, tags=["Requests"])
def doctor_approve(request_id: int, caller: Caller,
                   services: TreasuryFlowServices = Depends(get_services)) -> ExpenseRequestResponse:
    return ExpenseRequestResponse(
        request=services.treasury.doctor_approve(caller, request_id),
        message="Doctor approval recorded",
    )


@router.post("/requests/{request_id}/nurse-verify", response_model=ExpenseRequestResponse, tags=["Requests"])
def nurse_verify(request_id: int, caller: Caller,
                 services: TreasuryFlowServices = Depends(get_services)) -> ExpenseRequestResponse:
    return ExpenseRequestResponse(
        request=services.treasury.nurse_verify(caller, request_id),
        message="Nurse verification recorded",
    )


@router.post("/requests/{request_id}/finance-approve", response_model=ExpenseRequestResponse, tags=["Requests"])
def finance_approve(request_id: int, caller: Caller,
                    services: TreasuryFlowServices = Depends(get_services)) -> ExpenseRequestResponse:
    return ExpenseRequestResponse(
        request=services.treasury.finance_approve(caller, request_id),
        message="Finance approval recorded",
    )


@router.post("/requests/{request_id}/release", response_model=ExpenseRequestResponse, tags=["Requests"])
def release_funds(request_id: int, caller: Caller,
                  services: TreasuryFlowServices = Depends(get_services)) -> ExpenseRequestResponse:
    return ExpenseRequestResponse(
        request=services.treasury.release_funds(caller, request_id),
        message="Funds released successfully",
    )


# Events

@router.get("/events", tags=["Events"])
def list_events(event_type: Optional[str] = None, services: TreasuryFlowServices = Depends(get_services)):
    if event_type is None:
        selected = None
    else:
        try:
            selected = EventType(event_type)
        except ValueError:
            raise InvalidInputError(f"Unknown event type: {event_type}")
    return [event.to_dict() for event in services.events.history(selected)]


def create_app(config: Optional[TreasuryFlowConfig] = None,
               services: Optional[TreasuryFlowServices] = None) -> FastAPI:
    config = config or (services.config if services else get_config())
    setup_logging(config.log_level, config.log_format)

    app = FastAPI(
        title=config.api_title,
        description="Multi-party approval workflow for releasing pooled funds to vendors",
        version="1.0.0",
        root_path=config.api_root_path,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(TreasuryFlowError)
    async def treasury_flow_error_handler(request: Request, exc: TreasuryFlowError):
        return JSONResponse(
            status_code=exc.http_status,
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    app.state.services = services or build_services(config)
    app.include_router(router)
    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host=get_config().api_host, port=get_config().api_port)
