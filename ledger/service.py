import threading
from decimal import Decimal
from typing import Optional

from core.accounts import UINT256_MAX, is_null_account, is_uint256
from core.clock import Clock, system_clock
from core.errors import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidRecipientError,
)
from core.events import EventDispatcher, EventType
from core.logging_config import get_logger, log_action

from .models import AccountBalance, AllowanceInfo, TokenInfo

logger = get_logger("ledger")


def to_base_units(whole, decimals: int = 18) -> int:
    """Scale a human amount ("5000", 12.5, Decimal) to integer base units."""
    if isinstance(whole, int) and not isinstance(whole, bool):
        return whole * 10**decimals
    scaled = Decimal(str(whole)) * (Decimal(10) ** decimals)
    if scaled != scaled.to_integral_value():
        raise InvalidAmountError(f"{whole} has more than {decimals} decimal places")
    return int(scaled)


def format_units(amount: int, decimals: int = 18) -> str:
    whole, frac = divmod(amount, 10**decimals)
    if not frac:
        return str(whole)
    return f"{whole}.{str(frac).rjust(decimals, '0').rstrip('0')}"


def _checked_amount(amount) -> int:
    if not is_uint256(amount):
        raise InvalidAmountError(f"Amount must be an unsigned 256-bit integer, got {amount!r}")
    return amount


def _checked_add(a: int, b: int) -> int:
    result = a + b
    if result > UINT256_MAX:
        raise InvalidAmountError("Arithmetic overflow")
    return result


class LedgerStorage:
    def __init__(self):
        self.balances: dict[str, int] = {}
        self.allowances: dict[tuple[str, str], int] = {}
        self.total_supply: int = 0


class BalanceLedger:
    source = "ledger"

    def __init__(
        self,
        deployer: str,
        initial_supply: int,
        name: str = "MNEE USD Stablecoin",
        symbol: str = "MNEE",
        decimals: int = 18,
        clock: Clock = system_clock,
        dispatcher: Optional[EventDispatcher] = None,
        storage: Optional[LedgerStorage] = None,
    ):
        if is_null_account(deployer):
            raise InvalidRecipientError("Cannot mint to the null account")

        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.clock = clock
        self.events = dispatcher or EventDispatcher()
        self.storage = storage or LedgerStorage()
        self._lock = threading.RLock()

        minted = _checked_amount(_checked_amount(initial_supply) * 10**decimals)
        self.storage.balances[deployer] = minted
        self.storage.total_supply = minted
        self.events.emit(EventType.TRANSFER, self.source, clock(), **{"from": None, "to": deployer, "amount": minted})
        log_action(logger, "info", f"Minted {format_units(minted, decimals)} {symbol}",
                   actor=deployer, action="mint", resource=deployer)

    @property
    def total_supply(self) -> int:
        return self.storage.total_supply

    def info(self) -> TokenInfo:
        return TokenInfo(
            name=self.name,
            symbol=self.symbol,
            decimals=self.decimals,
            total_supply=self.storage.total_supply,
        )

    def transfer(self, sender: str, recipient: str, amount: int, now: Optional[int] = None) -> bool:
        with self._lock:
            now = self.clock() if now is None else now
            self._move(sender, recipient, _checked_amount(amount))
            self.events.emit(EventType.TRANSFER, self.source, now, **{"from": sender, "to": recipient, "amount": amount})
            log_action(logger, "info", f"Transferred {amount} from {sender} to {recipient}",
                       actor=sender, action="transfer", resource=recipient)
            return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        with self._lock:
            now = self.clock()
            amount = _checked_amount(amount)
            if is_null_account(spender):
                raise InvalidRecipientError("Cannot approve the null account")

            self.storage.allowances[(owner, spender)] = amount
            self.events.emit(EventType.APPROVAL, self.source, now, owner=owner, spender=spender, amount=amount)
            log_action(logger, "info", f"Allowance of {spender} over {owner} set to {amount}",
                       actor=owner, action="approve", resource=spender)
            return True

    def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int, now: Optional[int] = None
    ) -> bool:
        with self._lock:
            now = self.clock() if now is None else now
            amount = _checked_amount(amount)
            allowed = self.storage.allowances.get((owner, spender), 0)
            if allowed < amount:
                log_action(logger, "warning", f"Allowance {allowed} below {amount}",
                           actor=spender, action="transfer_from", resource=owner)
                raise InsufficientAllowanceError(
                    f"Insufficient allowance: {spender} may spend {allowed} of {owner}, needs {amount}"
                )

            self._move(owner, recipient, amount)
            self.storage.allowances[(owner, spender)] = allowed - amount

            self.events.emit(EventType.TRANSFER, self.source, now, **{"from": owner, "to": recipient, "amount": amount})
            log_action(logger, "info", f"Transferred {amount} from {owner} to {recipient} on behalf",
                       actor=spender, action="transfer_from", resource=recipient)
            return True

    def balance_of(self, account: str) -> int:
        return self.storage.balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.storage.allowances.get((owner, spender), 0)

    def get_balance(self, account: str) -> AccountBalance:
        balance = self.balance_of(account)
        return AccountBalance(account=account, balance=balance, formatted=format_units(balance, self.decimals))

    def get_allowance(self, owner: str, spender: str) -> AllowanceInfo:
        return AllowanceInfo(owner=owner, spender=spender, amount=self.allowance(owner, spender))

    def holders(self) -> list[str]:
        with self._lock:
            return list(self.storage.balances)

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        # Caller holds the lock; every check runs before either balance changes
        if is_null_account(recipient):
            raise InvalidRecipientError("Invalid recipient: null account")

        balance = self.storage.balances.get(sender, 0)
        if balance < amount:
            log_action(logger, "warning", f"Balance {balance} below {amount}",
                       actor=sender, action="transfer", resource=recipient)
            raise InsufficientBalanceError(f"Insufficient balance: {sender} has {balance}, needs {amount}")

        if sender == recipient:
            return

        credited = _checked_add(self.storage.balances.get(recipient, 0), amount)
        self.storage.balances[sender] = balance - amount
        self.storage.balances[recipient] = credited
