"""Issuance — turn a verified credential into a freshly minted token.

Steps, in order:
1. Reject an empty credential (MissingCredential) or one over the size
   bound (MalformedInput). The bound is enforced here, before the
   verifier ever sees attacker-sized input.
2. Read the current root from the registrar.
3. Ask the verifier; a negative answer is VerificationFailed.
4. Mint to the actor and return the new token id.

Verification failure is terminal for the call; nothing is retried.
The service holds no state of its own. The credential is never
consumed: submitting the same credential again mints again.
"""

from __future__ import annotations

import logging

from verigate.access.registrar import AccessRegistrar
from verigate.config import DEFAULT_MAX_CREDENTIAL_BYTES
from verigate.crypto.codec import ActorLike, decode_actor, decode_credential, is_null_actor
from verigate.errors import InvalidActor, MissingCredential, VerificationFailed
from verigate.ledger.token_ledger import TokenLedger
from verigate.verification.verifier import ProofVerifier


logger = logging.getLogger(__name__)


class IssuanceService:
    """Orchestrates credential verification and minting."""

    def __init__(
        self,
        registrar: AccessRegistrar,
        verifier: ProofVerifier,
        ledger: TokenLedger,
        max_credential_bytes: int = DEFAULT_MAX_CREDENTIAL_BYTES,
    ) -> None:
        self._registrar = registrar
        self._verifier = verifier
        self._ledger = ledger
        self._max_credential_bytes = max_credential_bytes

    def issue(self, actor: ActorLike, credential: bytes) -> int:
        """Verify the actor's credential against the current root and mint."""
        account = decode_actor(actor)
        if is_null_actor(account):
            raise InvalidActor("the null actor cannot be issued a token")
        payload = decode_credential(credential, self._max_credential_bytes)
        if not payload:
            raise MissingCredential("credential must not be empty")

        root = self._registrar.current_root()
        if not self._verifier.verify(account, payload, root):
            logger.debug(
                "Credential (%d bytes) from %s did not verify", len(payload), account
            )
            raise VerificationFailed(
                f"credential from {account} does not match the current root"
            )

        return self._ledger.mint(account)
