"""
Unit Tests for the Credential Registry

Tests cover:
1. Issuer management
2. Issuing, overwriting and revoking credentials
3. Expiry evaluated against the clock
4. Placeholder proof-token verification
"""

import pytest

from core.accounts import ZERO_ADDRESS
from core.clock import ManualClock
from core.errors import (
    CredentialNotFoundError,
    InvalidDurationError,
    InvalidInputError,
    InvalidProofTokenError,
    UnauthorizedError,
)
from core.events import EventDispatcher, EventType
from credentials.models import Role
from credentials.registry import CredentialRegistry, make_proof_token


# Test constants
ADMIN = "0x" + "a" * 40
ISSUER = "0x" + "b" * 40
DOCTOR = "0x" + "d" * 40
NURSE = "0x" + "e" * 40
ONE_YEAR = 365 * 24 * 60 * 60
PROOF = make_proof_token("demo-proof")


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def registry(clock):
    return CredentialRegistry(ADMIN, clock=clock)


class TestIssuers:
    """Tests for issuer set management."""

    def test_admin_is_seeded_issuer(self, registry):
        """Test that the admin can issue from construction."""
        assert registry.is_issuer(ADMIN)
        assert registry.issuers() == [ADMIN]

    def test_admin_adds_issuer(self, registry):
        """Test that an added issuer can issue credentials."""
        registry.add_issuer(ADMIN, ISSUER)

        registry.issue_credential(ISSUER, DOCTOR, Role.DOCTOR, PROOF, ONE_YEAR)

        assert registry.has_role(DOCTOR, Role.DOCTOR)

    def test_only_admin_adds_issuers(self, registry):
        """Test that a non-admin cannot grow the issuer set."""
        with pytest.raises(UnauthorizedError, match="Only admin"):
            registry.add_issuer(DOCTOR, NURSE)

        assert not registry.is_issuer(NURSE)

    def test_issuer_cannot_add_issuers(self, registry):
        """Test that issuers are not admins."""
        registry.add_issuer(ADMIN, ISSUER)

        with pytest.raises(UnauthorizedError):
            registry.add_issuer(ISSUER, NURSE)

    def test_null_issuer_rejected(self, registry):
        with pytest.raises(InvalidInputError):
            registry.add_issuer(ADMIN, ZERO_ADDRESS)


class TestIssueCredential:
    """Tests for issuing credentials."""

    def test_issue_credential(self, registry, clock):
        """Test that issuing stores a live credential with computed expiry."""
        credential = registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, PROOF, ONE_YEAR)

        assert credential.holder == DOCTOR
        assert credential.role == "DOCTOR"
        assert credential.issued_at == clock()
        assert credential.expires_at == clock() + ONE_YEAR
        assert credential.revoked is False
        assert registry.has_role(DOCTOR, Role.DOCTOR)
        assert registry.has_role(DOCTOR, "DOCTOR")

    def test_role_is_scoped_to_holder_and_role(self, registry):
        """Test that a credential authorizes only its own pair."""
        registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, PROOF, ONE_YEAR)

        assert not registry.has_role(DOCTOR, Role.NURSE)
        assert not registry.has_role(NURSE, Role.DOCTOR)

    def test_only_issuers_create_credentials(self, registry):
        """Test that a non-issuer cannot issue."""
        with pytest.raises(UnauthorizedError, match="Not an issuer"):
            registry.issue_credential(DOCTOR, NURSE, Role.NURSE, PROOF, ONE_YEAR)

        assert registry.get_credential(NURSE, Role.NURSE) is None

    @pytest.mark.parametrize("duration", [0, -1, 1.5, True])
    def test_non_positive_duration_rejected(self, registry, duration):
        """Test that the validity window must be a positive integer."""
        with pytest.raises(InvalidDurationError):
            registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, PROOF, duration)

        assert registry.get_credential(DOCTOR, Role.DOCTOR) is None

    @pytest.mark.parametrize("token", [b"short", "0x1234", "not-hex", 42])
    def test_malformed_proof_token_rejected(self, registry, token):
        with pytest.raises(InvalidProofTokenError):
            registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, token, ONE_YEAR)

    def test_hex_proof_token_accepted(self, registry):
        """Test that a 0x-prefixed hex token equals its raw bytes."""
        registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, "0x" + PROOF.hex(), ONE_YEAR)

        assert registry.get_credential(DOCTOR, Role.DOCTOR).proof_token == PROOF

    def test_custom_role_supported(self, registry):
        """Test that the registry is not limited to the built-in roles."""
        registry.issue_credential(ADMIN, DOCTOR, "PHARMACIST", PROOF, ONE_YEAR)

        assert registry.has_role(DOCTOR, "PHARMACIST")

    def test_empty_role_rejected(self, registry):
        with pytest.raises(InvalidInputError):
            registry.issue_credential(ADMIN, DOCTOR, "  ", PROOF, ONE_YEAR)

    def test_credential_issued_event(self, clock):
        """Test the CredentialIssued notification."""
        events = EventDispatcher()
        registry = CredentialRegistry(ADMIN, clock=clock, dispatcher=events)

        registry.issue_credential(ADMIN, NURSE, Role.NURSE, PROOF, ONE_YEAR)

        (event,) = events.history(EventType.CREDENTIAL_ISSUED)
        assert event.data == {"holder": NURSE, "role": "NURSE", "expires_at": clock() + ONE_YEAR}


class TestExpiry:
    """Tests for time-bound validity."""

    def test_expired_credential_inactive(self, registry, clock):
        """Test that a 1-second credential is gone after 2 seconds."""
        registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, PROOF, 1)
        assert registry.has_role(DOCTOR, Role.DOCTOR)

        clock.advance(2)

        assert not registry.has_role(DOCTOR, Role.DOCTOR)

    def test_inactive_at_exact_expiry(self, registry, clock):
        """Test the boundary: live strictly before expires_at."""
        registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, PROOF, 10)

        clock.advance(9)
        assert registry.has_role(DOCTOR, Role.DOCTOR)
        clock.advance(1)
        assert not registry.has_role(DOCTOR, Role.DOCTOR)

    def test_reissue_after_expiry_restores_role(self, registry, clock):
        """Test that issuing after expiry resets liveness."""
        registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, PROOF, 1)
        clock.advance(5)

        registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, PROOF, ONE_YEAR)

        assert registry.has_role(DOCTOR, Role.DOCTOR)
        assert registry.get_credential(DOCTOR, Role.DOCTOR).expires_at == clock() + ONE_YEAR

    def test_explicit_time_skips_clock(self, registry, clock):
        """Test that a caller-supplied time is used instead of the registry clock."""
        credential = registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, PROOF, 10)
        clock.advance(ONE_YEAR)

        assert registry.has_role(DOCTOR, Role.DOCTOR, now=credential.expires_at - 1)
        assert not registry.has_role(DOCTOR, Role.DOCTOR, now=credential.expires_at)
        assert registry.verify_zk_proof(DOCTOR, Role.DOCTOR, PROOF, now=credential.issued_at)
        assert not registry.verify_zk_proof(DOCTOR, Role.DOCTOR, PROOF)

    def test_credential_is_active(self, registry):
        """Test the snapshot's own liveness check."""
        credential = registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, PROOF, 10)

        assert credential.is_active(credential.issued_at)
        assert not credential.is_active(credential.expires_at)

        revoked = registry.revoke_credential(ADMIN, DOCTOR, Role.DOCTOR)
        assert not revoked.is_active(revoked.issued_at)


class TestRevocation:
    """Tests for revoking credentials."""

    def test_revoke_credential(self, registry):
        """Test that revocation removes the role."""
        registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, PROOF, ONE_YEAR)

        registry.revoke_credential(ADMIN, DOCTOR, Role.DOCTOR)

        assert not registry.has_role(DOCTOR, Role.DOCTOR)
        assert registry.get_credential(DOCTOR, Role.DOCTOR).revoked is True

    def test_revoked_stays_inactive_regardless_of_expiry(self, registry, clock):
        """Test that revocation wins even with time left on the credential."""
        registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, PROOF, ONE_YEAR)
        registry.revoke_credential(ADMIN, DOCTOR, Role.DOCTOR)

        clock.advance(1)

        assert not registry.has_role(DOCTOR, Role.DOCTOR)

    def test_reissue_clears_revocation(self, registry):
        """Test that re-issuing overwrites the revoked record."""
        registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, PROOF, ONE_YEAR)
        registry.revoke_credential(ADMIN, DOCTOR, Role.DOCTOR)

        registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, PROOF, ONE_YEAR)

        assert registry.has_role(DOCTOR, Role.DOCTOR)

    def test_revoke_missing_credential(self, registry):
        """Test that revoking a never-issued credential fails."""
        with pytest.raises(CredentialNotFoundError):
            registry.revoke_credential(ADMIN, DOCTOR, Role.DOCTOR)

    def test_only_issuers_revoke(self, registry):
        registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, PROOF, ONE_YEAR)

        with pytest.raises(UnauthorizedError):
            registry.revoke_credential(NURSE, DOCTOR, Role.DOCTOR)

        assert registry.has_role(DOCTOR, Role.DOCTOR)


class TestProofVerification:
    """Tests for the placeholder proof check."""

    def test_verify_matching_token(self, registry):
        """Test that the stored token verifies."""
        registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, PROOF, ONE_YEAR)

        assert registry.verify_zk_proof(DOCTOR, Role.DOCTOR, PROOF)
        assert registry.verify_zk_proof(DOCTOR, Role.DOCTOR, "0x" + PROOF.hex())

    def test_wrong_token_fails(self, registry):
        registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, PROOF, ONE_YEAR)

        assert not registry.verify_zk_proof(DOCTOR, Role.DOCTOR, make_proof_token("other-proof"))
        assert not registry.verify_zk_proof(DOCTOR, Role.DOCTOR, b"garbage")

    def test_inactive_credential_fails(self, registry, clock):
        """Test that a correct token does not verify once the role lapses."""
        registry.issue_credential(ADMIN, DOCTOR, Role.DOCTOR, PROOF, 1)
        clock.advance(2)

        assert not registry.verify_zk_proof(DOCTOR, Role.DOCTOR, PROOF)

    def test_missing_credential_fails(self, registry):
        assert not registry.verify_zk_proof(NURSE, Role.NURSE, PROOF)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
