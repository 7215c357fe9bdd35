import hashlib
import hmac
import threading
from typing import Optional, Union

from core.accounts import is_null_account
from core.clock import Clock, system_clock
from core.errors import (
    CredentialNotFoundError,
    InvalidDurationError,
    InvalidInputError,
    InvalidProofTokenError,
    UnauthorizedError,
)
from core.events import EventDispatcher, EventType
from core.logging_config import get_logger, log_action

from .models import Credential, RoleLike, decode_proof_token, role_key

logger = get_logger("credentials")


def make_proof_token(text: str) -> bytes:
    return hashlib.sha256(text.encode("utf-8")).digest()


class CredentialStorage:
    def __init__(self):
        self.credentials: dict[tuple[str, str], dict] = {}
        self.issuers: set[str] = set()


class CredentialRegistry:
    """
    Issues, revokes and checks time-bound role credentials.

    A credential is live while it is not revoked and the current time is
    strictly before its expiry. Expiry is evaluated on read; nothing is swept.
    The registry is the authorization oracle consulted by the treasury.
    """

    source = "credentials"

    def __init__(
        self,
        admin: str,
        clock: Clock = system_clock,
        dispatcher: Optional[EventDispatcher] = None,
        storage: Optional[CredentialStorage] = None,
    ):
        if is_null_account(admin):
            raise InvalidInputError("Admin account is required")

        self.admin = admin
        self.clock = clock
        self.events = dispatcher or EventDispatcher()
        self.storage = storage or CredentialStorage()
        self.storage.issuers.add(admin)
        self._lock = threading.RLock()

    def add_issuer(self, caller: str, account: str) -> None:
        with self._lock:
            now = self.clock()
            if caller != self.admin:
                log_action(logger, "warning", "Rejected issuer change", actor=caller, action="add_issuer", resource=account)
                raise UnauthorizedError("Only admin")
            if is_null_account(account):
                raise InvalidInputError("Issuer account is required")
            if account in self.storage.issuers:
                return

            self.storage.issuers.add(account)
            self.events.emit(EventType.ISSUER_ADDED, self.source, now, account=account)
            log_action(logger, "info", f"Issuer {account} added", actor=caller, action="add_issuer", resource=account)

    def is_issuer(self, account: str) -> bool:
        return account in self.storage.issuers

    def issuers(self) -> list[str]:
        with self._lock:
            return sorted(self.storage.issuers)

    def issue_credential(
        self,
        caller: str,
        holder: str,
        role: RoleLike,
        proof_token: Union[bytes, str],
        validity_seconds: int,
    ) -> Credential:
        with self._lock:
            now = self.clock()
            self._require_issuer(caller, "issue_credential", holder)

            key = self._key(holder, role)
            if isinstance(validity_seconds, bool) or not isinstance(validity_seconds, int) or validity_seconds <= 0:
                raise InvalidDurationError(f"Validity duration must be a positive number of seconds, got {validity_seconds!r}")
            try:
                token = decode_proof_token(proof_token)
            except (TypeError, ValueError) as e:
                raise InvalidProofTokenError(str(e)) from e

            credential_data = {
                "holder": holder,
                "role": key[1],
                "proof_token": token,
                "issued_at": now,
                "expires_at": now + validity_seconds,
                "revoked": False,
            }
            self.storage.credentials[key] = credential_data

            self.events.emit(
                EventType.CREDENTIAL_ISSUED, self.source, now,
                holder=holder, role=key[1], expires_at=credential_data["expires_at"],
            )
            log_action(logger, "info", f"{key[1]} credential issued to {holder}",
                       actor=caller, action="issue_credential", resource=holder,
                       extra={"role": key[1], "expires_at": credential_data["expires_at"]})
            return Credential(**credential_data)

    def revoke_credential(self, caller: str, holder: str, role: RoleLike) -> Credential:
        with self._lock:
            now = self.clock()
            self._require_issuer(caller, "revoke_credential", holder)

            key = self._key(holder, role)
            credential_data = self.storage.credentials.get(key)
            if credential_data is None:
                raise CredentialNotFoundError(f"No {key[1]} credential for {holder}")

            credential_data["revoked"] = True
            self.events.emit(EventType.CREDENTIAL_REVOKED, self.source, now, holder=holder, role=key[1])
            log_action(logger, "info", f"{key[1]} credential of {holder} revoked",
                       actor=caller, action="revoke_credential", resource=holder)
            return Credential(**credential_data)

    def has_role(self, account: str, role: RoleLike, now: Optional[int] = None) -> bool:
        """
        Whether `account` holds a live credential for `role` at `now`.

        Callers that already stamped their operation pass that time in so the
        check and the record agree; otherwise the registry clock is read.
        """
        with self._lock:
            now = self.clock() if now is None else now
            credential_data = self.storage.credentials.get((account, role_key(role)))
            if credential_data is None:
                return False
            return Credential(**credential_data).is_active(now)

    def verify_zk_proof(
        self,
        account: str,
        role: RoleLike,
        candidate_token: Union[bytes, str],
        now: Optional[int] = None,
    ) -> bool:
        """
        Placeholder proof check: the role must be live and the candidate must
        equal the stored token byte for byte. No cryptographic proof system
        stands behind this comparison.
        """
        with self._lock:
            if not self.has_role(account, role, now=now):
                return False
            try:
                candidate = decode_proof_token(candidate_token)
            except (TypeError, ValueError):
                return False
            stored = self.storage.credentials[(account, role_key(role))]["proof_token"]
            return hmac.compare_digest(candidate, stored)

    def get_credential(self, holder: str, role: RoleLike) -> Optional[Credential]:
        with self._lock:
            credential_data = self.storage.credentials.get((holder, role_key(role)))
            if credential_data is None:
                return None
            return Credential(**credential_data)

    def _require_issuer(self, caller: str, action: str, resource: str) -> None:
        if caller not in self.storage.issuers:
            log_action(logger, "warning", "Rejected non-issuer", actor=caller, action=action, resource=resource)
            raise UnauthorizedError("Not an issuer")

    def _key(self, holder: str, role: RoleLike) -> tuple[str, str]:
        if is_null_account(holder):
            raise InvalidInputError("Credential holder is required")
        key = role_key(role)
        if not key:
            raise InvalidInputError("Role is required")
        return holder, key
