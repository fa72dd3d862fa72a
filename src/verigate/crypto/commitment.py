"""Hash commitment — binds an actor and a credential into one 32-byte digest.

The combination rule is fixed: digest = H(actor_bytes || credential),
where actor_bytes are the 20 raw address bytes. With the default
keccak-256 this matches Solidity's keccak256(abi.encodePacked(addr, data)),
so roots can be computed off-ledger by any Ethereum tooling.
"""

from __future__ import annotations

import hashlib

from web3 import Web3

from verigate.crypto.codec import actor_bytes, decode_actor


SUPPORTED_ALGORITHMS = ("keccak256", "sha256")


class HashCommitment:
    """Collision-resistant commitment over (actor, credential).

    Usage:
        commitment = HashCommitment()
        root = commitment.digest(actor, b"secret")
    """

    def __init__(self, algorithm: str = "keccak256") -> None:
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(
                f"Unsupported hash algorithm: {algorithm!r}. "
                f"Supported: {', '.join(SUPPORTED_ALGORITHMS)}"
            )
        self._algorithm = algorithm

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def digest(self, actor: str, credential: bytes) -> bytes:
        """Return the 32-byte commitment for an actor and credential."""
        data = actor_bytes(decode_actor(actor)) + bytes(credential)
        if self._algorithm == "keccak256":
            return bytes(Web3.keccak(primitive=data))
        return hashlib.sha256(data).digest()
