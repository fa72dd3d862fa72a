"""Actor key helpers — create and derive actor identities from keys.

Actors are Ethereum-style accounts: the identity the ledger records is
the account address. The private key never enters the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass

from eth_account import Account

from verigate.crypto.codec import decode_actor
from verigate.errors import MalformedInput


@dataclass(frozen=True)
class ActorKey:
    """A generated actor identity and the key that controls it."""
    address: str
    private_key: str


def new_actor(extra_entropy: str = "") -> ActorKey:
    """Generate a fresh actor account."""
    acct = Account.create(extra_entropy)
    return ActorKey(
        address=decode_actor(acct.address),
        private_key="0x" + bytes(acct.key).hex(),
    )


def actor_from_key(private_key: str) -> str:
    """Derive the checksummed actor address controlled by a private key."""
    text = private_key[2:] if private_key.startswith(("0x", "0X")) else private_key
    if len(text) != 64:
        raise MalformedInput(f"private key must be 64 hex digits, got {len(text)}")
    try:
        acct = Account.from_key(private_key)
    except (ValueError, TypeError) as e:
        raise MalformedInput(f"invalid private key: {e}") from e
    return decode_actor(acct.address)
