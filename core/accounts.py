from typing import Any, Optional

ZERO_ADDRESS = "0x" + "0" * 40

UINT256_MAX = 2**256 - 1


def is_null_account(account: Optional[str]) -> bool:
    if account is None:
        return True
    account = account.strip()
    return account == "" or account.lower() == ZERO_ADDRESS


def is_uint256(value: Any) -> bool:
    # bool is an int subclass but never a valid amount
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= UINT256_MAX
