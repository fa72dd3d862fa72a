"""Typed decoding for actor identities, verifier roots and credentials.

Every value that crosses into the gate passes through one of these
decoders first. A decoder either returns the canonical form or raises
MalformedInput; there is no partial or best-effort parsing.

Canonical forms:
- actor: EIP-55 checksummed address string, e.g. "0x5aAe...eAed"
- root: exactly ROOT_WIDTH raw bytes
- credential: immutable bytes (may be empty; emptiness is the caller's check)
"""

from __future__ import annotations

from typing import Union

from web3 import Web3

from verigate.errors import MalformedInput


ACTOR_WIDTH = 20
ROOT_WIDTH = 32

NULL_ACTOR = "0x" + "00" * ACTOR_WIDTH
EMPTY_ROOT = bytes(ROOT_WIDTH)

ActorLike = Union[str, bytes]
RootLike = Union[str, bytes]


def decode_actor(value: ActorLike) -> str:
    """Decode an actor identity into its checksummed address form.

    Accepts a hex string (0x prefix optional, any case, but mixed-case
    input must carry a valid EIP-55 checksum) or exactly 20 raw bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        if len(raw) != ACTOR_WIDTH:
            raise MalformedInput(
                f"actor must be {ACTOR_WIDTH} bytes, got {len(raw)}"
            )
        return Web3.to_checksum_address("0x" + raw.hex())

    if not isinstance(value, str):
        raise MalformedInput(f"actor must be str or bytes, got {type(value).__name__}")

    text = value.strip()
    if not text.startswith(("0x", "0X")):
        text = "0x" + text
    if not Web3.is_address(text):
        raise MalformedInput(f"not a valid actor address: {value!r}")
    return Web3.to_checksum_address(text)


def is_null_actor(actor: str) -> bool:
    return actor == NULL_ACTOR


def actor_bytes(actor: str) -> bytes:
    """Return the 20 raw bytes of a canonical actor address."""
    return bytes.fromhex(actor[2:])


def decode_root(value: RootLike) -> bytes:
    """Decode a verifier root.

    Accepts exactly 32 raw bytes or a hex string of exactly 64 digits
    (0x prefix optional).
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
    elif isinstance(value, str):
        text = value.strip()
        if text.startswith(("0x", "0X")):
            text = text[2:]
        if len(text) != ROOT_WIDTH * 2:
            raise MalformedInput(
                f"root must be {ROOT_WIDTH * 2} hex digits, got {len(text)}"
            )
        try:
            raw = bytes.fromhex(text)
        except ValueError as e:
            raise MalformedInput(f"root is not valid hex: {e}") from e
    else:
        raise MalformedInput(f"root must be str or bytes, got {type(value).__name__}")

    if len(raw) != ROOT_WIDTH:
        raise MalformedInput(f"root must be {ROOT_WIDTH} bytes, got {len(raw)}")
    return raw


def root_hex(root: bytes) -> str:
    return "0x" + root.hex()


def decode_credential(value: bytes, max_length: int | None = None) -> bytes:
    """Decode a credential payload, enforcing an optional upper bound."""
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise MalformedInput(
            f"credential must be bytes, got {type(value).__name__}"
        )
    raw = bytes(value)
    if max_length is not None and len(raw) > max_length:
        raise MalformedInput(
            f"credential is {len(raw)} bytes, limit is {max_length}"
        )
    return raw


def parse_credential_text(text: str) -> bytes:
    """Parse a command-line credential: 0x-prefixed hex, else UTF-8 text."""
    if text.startswith(("0x", "0X")):
        try:
            return bytes.fromhex(text[2:])
        except ValueError as e:
            raise MalformedInput(f"credential is not valid hex: {e}") from e
    return text.encode("utf-8")
