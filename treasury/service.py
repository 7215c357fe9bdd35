import threading
from typing import Optional, Union

from core.accounts import is_null_account, is_uint256
from core.clock import Clock, system_clock
from core.errors import (
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidInputError,
    InvalidStatusError,
    InvalidVendorError,
    NotApprovedError,
    RequestNotFoundError,
    UnauthorizedError,
)
from core.events import EventDispatcher, EventType
from core.logging_config import get_logger, log_action
from credentials.models import Role
from credentials.registry import CredentialRegistry
from ledger.service import BalanceLedger

from .models import (
    APPROVAL_FLAGS,
    ApprovalStatus,
    ExpenseRequest,
    RequestStatus,
    RequestType,
)

logger = get_logger("treasury")


class TreasuryStorage:
    def __init__(self):
        self.requests: dict[int, dict] = {}
        self.request_counter: int = 0


class TreasuryWorkflow:
    """
    Pooled funds released to vendors after doctor, nurse and finance approval.

    Each public operation runs under one re-entrant lock that also covers the
    calls it makes into the ledger and the credential registry, so approvals
    and releases on the same request never interleave.
    """

    source = "treasury"

    def __init__(
        self,
        ledger: BalanceLedger,
        registry: CredentialRegistry,
        account: str,
        admin: Optional[str] = None,
        clock: Clock = system_clock,
        dispatcher: Optional[EventDispatcher] = None,
        storage: Optional[TreasuryStorage] = None,
    ):
        if is_null_account(account):
            raise InvalidInputError("Treasury account is required")

        self.ledger = ledger
        self.registry = registry
        self.account = account
        self.admin = admin or registry.admin
        self.clock = clock
        self.events = dispatcher or EventDispatcher()
        self.storage = storage or TreasuryStorage()
        self._lock = threading.RLock()

    def fund_treasury(self, caller: str, amount: int) -> int:
        with self._lock:
            now = self.clock()
            if not is_uint256(amount) or amount == 0:
                raise InvalidAmountError("Amount must be positive")

            self.ledger.transfer_from(self.account, caller, self.account, amount, now=now)

            self.events.emit(EventType.TREASURY_FUNDED, self.source, now, funder=caller, amount=amount)
            log_action(logger, "info", f"Treasury funded with {amount}", actor=caller, action="fund_treasury",
                       resource=self.account)
            return self.treasury_balance()

    def create_request(
        self,
        caller: str,
        amount: int,
        description: str,
        request_type: Union[RequestType, int, str],
        vendor: str,
    ) -> int:
        with self._lock:
            now = self.clock()
            self._require_role(caller, Role.DOCTOR, now, "create_request", "request")

            if not is_uint256(amount) or amount == 0:
                raise InvalidAmountError("Amount must be positive")
            if is_null_account(vendor) or vendor == self.account:
                raise InvalidVendorError("Invalid vendor")
            try:
                request_type = RequestType(request_type)
            except ValueError as e:
                raise InvalidInputError(f"Unknown request type: {request_type!r}") from e

            request_id = self.storage.request_counter + 1
            self.storage.requests[request_id] = {
                "id": request_id,
                "requester": caller,
                "amount": amount,
                "description": description or "",
                "request_type": request_type,
                "vendor": vendor,
                "status": RequestStatus.PENDING,
                "approvals": {flag: False for flag in APPROVAL_FLAGS.values()},
                "created_at": now,
                "approved_at": None,
                "completed_at": None,
            }
            self.storage.request_counter = request_id

            self.events.emit(
                EventType.REQUEST_CREATED, self.source, now,
                id=request_id, requester=caller, amount=amount, vendor=vendor,
            )
            log_action(logger, "info", f"Expense request {request_id} created", actor=caller,
                       action="create_request", resource=f"request:{request_id}",
                       extra={"amount": amount, "vendor": vendor, "request_type": request_type.value})
            return request_id

    def doctor_approve(self, caller: str, request_id: int) -> ExpenseRequest:
        return self._approve(caller, request_id, Role.DOCTOR)

    def nurse_verify(self, caller: str, request_id: int) -> ExpenseRequest:
        return self._approve(caller, request_id, Role.NURSE)

    def finance_approve(self, caller: str, request_id: int) -> ExpenseRequest:
        return self._approve(caller, request_id, Role.FINANCE)

    def release_funds(self, caller: str, request_id: int) -> ExpenseRequest:
        with self._lock:
            now = self.clock()
            resource = f"request:{request_id}"
            if caller != self.admin:
                log_action(logger, "warning", "Rejected release by non-admin", actor=caller,
                           action="release_funds", resource=resource)
                raise UnauthorizedError("Only admin")

            request_data = self._load(request_id)
            if not self._snapshot(request_data).can_release():
                log_action(logger, "warning", f"Release refused in {request_data['status'].value} state",
                           actor=caller, action="release_funds", resource=resource)
                raise NotApprovedError("Not approved")

            amount = request_data["amount"]
            pool = self.treasury_balance()
            if pool < amount:
                log_action(logger, "warning", f"Pool balance {pool} below {amount}", actor=caller,
                           action="release_funds", resource=resource)
                raise InsufficientBalanceError("Insufficient balance")

            self.ledger.transfer(self.account, request_data["vendor"], amount, now=now)
            request_data["status"] = RequestStatus.COMPLETED
            request_data["completed_at"] = now

            self.events.emit(
                EventType.FUNDS_RELEASED, self.source, now,
                id=request_id, vendor=request_data["vendor"], amount=amount,
            )
            log_action(logger, "info", f"Released {amount} to {request_data['vendor']}", actor=caller,
                       action="release_funds", resource=resource)
            return self._snapshot(request_data)

    def get_request(self, request_id: int) -> ExpenseRequest:
        with self._lock:
            return self._snapshot(self._load(request_id))

    def get_approval_status(self, request_id: int) -> ApprovalStatus:
        with self._lock:
            return ApprovalStatus(**self._load(request_id)["approvals"])

    def treasury_balance(self) -> int:
        return self.ledger.balance_of(self.account)

    def request_counter(self) -> int:
        return self.storage.request_counter

    def list_requests(
        self,
        status: Optional[RequestStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[ExpenseRequest], int]:
        with self._lock:
            matching = [
                r for _, r in sorted(self.storage.requests.items())
                if status is None or r["status"] == status
            ]
            page = matching[offset:offset + limit]
            return [self._snapshot(r) for r in page], len(matching)

    def _approve(self, caller: str, request_id: int, role: Role) -> ExpenseRequest:
        with self._lock:
            now = self.clock()
            flag = APPROVAL_FLAGS[role]
            action = f"{flag}_approval"
            resource = f"request:{request_id}"
            self._require_role(caller, role, now, action, resource)

            request_data = self._load(request_id)
            if not self._snapshot(request_data).can_approve(role):
                log_action(logger, "warning", f"{role.value} approval refused in {request_data['status'].value} state",
                           actor=caller, action=action, resource=resource)
                raise InvalidStatusError("Invalid status")

            request_data["approvals"][flag] = True
            self.events.emit(EventType.REQUEST_APPROVED, self.source, now, id=request_id, role=role.value)
            log_action(logger, "info", f"{role.value} approved request {request_id}", actor=caller,
                       action=action, resource=resource)

            if all(request_data["approvals"].values()):
                request_data["status"] = RequestStatus.APPROVED
                request_data["approved_at"] = now
                self.events.emit(EventType.REQUEST_FULLY_APPROVED, self.source, now, id=request_id)
                log_action(logger, "info", f"Request {request_id} fully approved", actor=caller,
                           action=action, resource=resource)

            return self._snapshot(request_data)

    def _require_role(self, caller: str, role: Role, now: int, action: str, resource: str) -> None:
        if not self.registry.has_role(caller, role, now=now):
            log_action(logger, "warning", f"Caller lacks live {role.value} credential", actor=caller,
                       action=action, resource=resource)
            raise UnauthorizedError("Not authorized")

    def _load(self, request_id: int) -> dict:
        request_data = self.storage.requests.get(request_id)
        if request_data is None:
            raise RequestNotFoundError(f"Request {request_id} not found")
        return request_data

    @staticmethod
    def _snapshot(request_data: dict) -> ExpenseRequest:
        return ExpenseRequest(**{**request_data, "approvals": ApprovalStatus(**request_data["approvals"])})
