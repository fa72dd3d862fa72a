"""Proof verifiers — decide whether a credential satisfies the current root.

Contract shared by every verifier:
    verify(actor, credential, root) -> bool

- Deterministic and side-effect free. A verifier never touches ledger state.
- An empty credential is always rejected.
- A malformed credential is a rejection (False), never an exception.
- Credential length is attacker-controlled; callers bound it before
  calling (see IssuanceService).

Two variants exist:
- HashCommitmentVerifier: H(actor || credential) == root. This is a
  shared-secret check, not a zero-knowledge proof. Verification does not
  consume the credential, so the same pair verifies again and again.
- ExternalProofVerifier: adapter for a succinct-proof backend holding a
  circuit-specific verifying key.

The variant is chosen once, from configuration, by build_verifier().
"""

from __future__ import annotations

import hmac
import logging
from typing import Any, Callable, Optional, Protocol

from verigate.config import GateConfig
from verigate.crypto.codec import root_hex
from verigate.crypto.commitment import HashCommitment


logger = logging.getLogger(__name__)

# backend(public_inputs, proof) -> bool
ProofBackend = Callable[[dict[str, Any], bytes], bool]


class ProofVerifier(Protocol):
    """Capability interface for credential verification."""

    def verify(self, actor: str, credential: bytes, root: bytes) -> bool:
        ...


class HashCommitmentVerifier:
    """Default verifier: recompute the commitment and compare to the root."""

    def __init__(self, commitment: Optional[HashCommitment] = None) -> None:
        self._commitment = commitment or HashCommitment()

    @property
    def commitment(self) -> HashCommitment:
        return self._commitment

    def verify(self, actor: str, credential: bytes, root: bytes) -> bool:
        if not credential:
            return False
        digest = self._commitment.digest(actor, credential)
        return hmac.compare_digest(digest, bytes(root))


class ExternalProofVerifier:
    """Adapter around an external succinct-proof verifier.

    The backend receives the public inputs (the actor address and the
    hex-encoded root) and the raw proof bytes. Encoding errors raised by
    the backend count as rejection.
    """

    def __init__(self, backend: ProofBackend) -> None:
        self._backend = backend

    def verify(self, actor: str, credential: bytes, root: bytes) -> bool:
        if not credential:
            return False
        public_inputs = {"actor": actor, "root": root_hex(bytes(root))}
        try:
            accepted = self._backend(public_inputs, bytes(credential))
        except (ValueError, TypeError) as e:
            logger.warning(
                "Proof backend rejected malformed proof (%d bytes) for %s: %s",
                len(credential), actor, e,
            )
            return False
        return accepted is True


def build_verifier(
    config: GateConfig,
    backend: Optional[ProofBackend] = None,
) -> ProofVerifier:
    """Construct the verifier selected by configuration."""
    if config.verifier == "hash_commitment":
        return HashCommitmentVerifier(HashCommitment(config.hash_algorithm))
    if config.verifier == "external":
        if backend is None:
            raise ValueError("verifier 'external' requires a proof backend")
        return ExternalProofVerifier(backend)
    raise ValueError(f"Unknown verifier: {config.verifier!r}")
