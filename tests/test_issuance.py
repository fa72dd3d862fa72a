"""Tests for credential-gated issuance."""

import pytest

from verigate.access.registrar import AccessRegistrar
from verigate.crypto.codec import NULL_ACTOR, decode_actor
from verigate.crypto.commitment import HashCommitment
from verigate.errors import (
    InvalidActor,
    MalformedInput,
    MissingCredential,
    VerificationFailed,
)
from verigate.issuance.service import IssuanceService
from verigate.ledger.token_ledger import TokenLedger
from verigate.verification.verifier import HashCommitmentVerifier


ADMIN = decode_actor("0x" + "aa" * 20)
ALICE = decode_actor("0x" + "11" * 20)
BOB = decode_actor("0x" + "22" * 20)
SECRET = b"open sesame"


class _CountingVerifier:
    def __init__(self) -> None:
        self.calls = 0

    def verify(self, actor: str, credential: bytes, root: bytes) -> bool:
        self.calls += 1
        return True


def _make_issuance(verifier=None, max_bytes: int = 64):
    registrar = AccessRegistrar()
    ledger = TokenLedger()
    registrar.claim_admin(ADMIN)
    registrar.set_verifier_root(ADMIN, HashCommitment().digest(ALICE, SECRET))
    service = IssuanceService(
        registrar, verifier or HashCommitmentVerifier(), ledger, max_credential_bytes=max_bytes
    )
    return service, registrar, ledger


class TestIssue:
    def test_valid_credential_mints(self) -> None:
        service, _, ledger = _make_issuance()
        token_id = service.issue(ALICE, SECRET)
        assert token_id == 1
        assert ledger.owner_of(token_id) == ALICE
        assert ledger.balance_of(ALICE) == 1

    def test_replay_mints_again(self) -> None:
        service, _, ledger = _make_issuance()
        assert service.issue(ALICE, SECRET) == 1
        assert service.issue(ALICE, SECRET) == 2
        assert ledger.balance_of(ALICE) == 2

    def test_wrong_credential(self) -> None:
        service, _, ledger = _make_issuance()
        with pytest.raises(VerificationFailed):
            service.issue(ALICE, b"wrong")
        assert ledger.total_supply() == 0

    def test_other_actor_cannot_use_credential(self) -> None:
        service, _, _ = _make_issuance()
        with pytest.raises(VerificationFailed):
            service.issue(BOB, SECRET)

    def test_empty_credential(self) -> None:
        verifier = _CountingVerifier()
        service, _, _ = _make_issuance(verifier)
        with pytest.raises(MissingCredential):
            service.issue(ALICE, b"")
        assert verifier.calls == 0

    def test_missing_credential_is_malformed_input(self) -> None:
        assert issubclass(MissingCredential, MalformedInput)

    def test_oversized_credential_never_reaches_verifier(self) -> None:
        verifier = _CountingVerifier()
        service, _, _ = _make_issuance(verifier, max_bytes=8)
        with pytest.raises(MalformedInput):
            service.issue(ALICE, b"x" * 9)
        assert verifier.calls == 0

    def test_null_actor(self) -> None:
        service, _, _ = _make_issuance(_CountingVerifier())
        with pytest.raises(InvalidActor):
            service.issue(NULL_ACTOR, SECRET)

    def test_root_rotation_invalidates_old_credential(self) -> None:
        service, registrar, ledger = _make_issuance()
        token_id = service.issue(ALICE, SECRET)
        registrar.set_verifier_root(ADMIN, HashCommitment().digest(ALICE, b"new"))
        with pytest.raises(VerificationFailed):
            service.issue(ALICE, SECRET)
        assert service.issue(ALICE, b"new") == token_id + 1
        # Tokens minted under the old root are untouched.
        assert ledger.owner_of(token_id) == ALICE

    def test_unset_root_rejects(self) -> None:
        registrar = AccessRegistrar()
        service = IssuanceService(registrar, HashCommitmentVerifier(), TokenLedger())
        with pytest.raises(VerificationFailed):
            service.issue(ALICE, SECRET)
