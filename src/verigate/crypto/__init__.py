"""Cryptographic primitives — commitment hashing, typed decoding, actor keys."""

from verigate.crypto.commitment import HashCommitment
from verigate.crypto.codec import EMPTY_ROOT, NULL_ACTOR, ROOT_WIDTH

__all__ = ["HashCommitment", "EMPTY_ROOT", "NULL_ACTOR", "ROOT_WIDTH"]
