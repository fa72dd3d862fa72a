"""Token ledger — ERC-721-style ownership and approval state machine.

Token lifecycle:
    NONEXISTENT → OWNED(owner) → BURNED
    OWNED may move to a new owner any number of times.
    BURNED is terminal. Ids are never reused.

Each OWNED token carries an optional single approved actor, reset on
every ownership change. Operators (approved-for-all) may act on every
token of the owner that approved them.

Authorization:
- approve:       owner or operator
- transfer_from: owner, approved actor, or operator
- burn:          owner or operator (the single approved actor is NOT enough)

Every operation checks all of its preconditions before the first
mutation, so a rejected call changes nothing and emits nothing. The
ledger trusts its caller for mint; IssuanceService gates that path.
No locking here; GateService serialises every call.
"""

from __future__ import annotations

import enum
import logging
from typing import Optional

from verigate.crypto.codec import (
    NULL_ACTOR,
    ActorLike,
    decode_actor,
    is_null_actor,
)
from verigate.errors import InvalidActor, NotFound, OwnerMismatch, Unauthorized
from verigate.persistence.event_log import EventKind, EventLog, EventRecord


logger = logging.getLogger(__name__)


class TokenState(str, enum.Enum):
    NONEXISTENT = "nonexistent"
    OWNED = "owned"
    BURNED = "burned"


class TokenLedger:
    """Ownership, balance and approval maps for non-fungible tokens.

    Usage:
        ledger = TokenLedger(event_log)
        token_id = ledger.mint(alice)
        ledger.approve(alice, bob, token_id)
        ledger.transfer_from(bob, alice, carol, token_id)
        ledger.burn(carol, token_id)
    """

    def __init__(self, event_log: Optional[EventLog] = None) -> None:
        self._event_log = event_log
        self._owners: dict[int, str] = {}
        self._balances: dict[str, int] = {}
        self._token_approvals: dict[int, str] = {}
        self._operators: dict[str, set[str]] = {}
        self._minted_count = 0
        self._burned: set[int] = set()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def minted_count(self) -> int:
        return self._minted_count

    @property
    def burned_count(self) -> int:
        return len(self._burned)

    def total_supply(self) -> int:
        """Number of tokens currently OWNED (minted minus burned)."""
        return self._minted_count - len(self._burned)

    def token_state(self, token_id: int) -> TokenState:
        if token_id in self._owners:
            return TokenState.OWNED
        if token_id in self._burned:
            return TokenState.BURNED
        return TokenState.NONEXISTENT

    def exists(self, token_id: int) -> bool:
        return token_id in self._owners

    def owner_of(self, token_id: int) -> str:
        owner = self._owners.get(token_id)
        if owner is None:
            raise NotFound(f"token {token_id} does not exist")
        return owner

    def balance_of(self, actor: ActorLike) -> int:
        account = decode_actor(actor)
        if is_null_actor(account):
            raise InvalidActor("balance query for the null actor")
        return self._balances.get(account, 0)

    def get_approved(self, token_id: int) -> str:
        self.owner_of(token_id)
        return self._token_approvals.get(token_id, NULL_ACTOR)

    def is_approved_for_all(self, owner: ActorLike, operator: ActorLike) -> bool:
        return decode_actor(operator) in self._operators.get(decode_actor(owner), set())

    def tokens_of(self, owner: ActorLike) -> list[int]:
        """Ids currently owned by an actor, ascending."""
        account = decode_actor(owner)
        return sorted(t for t, o in self._owners.items() if o == account)

    def balances(self) -> dict[str, int]:
        """Snapshot of all non-zero balances."""
        return {a: n for a, n in self._balances.items() if n > 0}

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def mint(self, to: ActorLike) -> int:
        """Issue the next token id to an actor. The caller is trusted."""
        recipient = decode_actor(to)
        if is_null_actor(recipient):
            raise InvalidActor("cannot mint to the null actor")

        token_id = self._minted_count + 1
        self._minted_count = token_id
        self._owners[token_id] = recipient
        self._balances[recipient] = self._balances.get(recipient, 0) + 1

        self._emit(
            EventKind.TRANSFER,
            recipient,
            {"from": NULL_ACTOR, "to": recipient, "token_id": token_id},
        )
        logger.info("Minted token %d to %s", token_id, recipient)
        return token_id

    def approve(self, caller: ActorLike, to: ActorLike, token_id: int) -> None:
        """Set (or with NULL_ACTOR, clear) the single approved actor."""
        sender = decode_actor(caller)
        approved = decode_actor(to)
        owner = self.owner_of(token_id)
        if sender != owner and not self._is_operator(owner, sender):
            raise Unauthorized(
                f"{sender} is neither owner nor operator of token {token_id}"
            )

        self._set_approval(sender, owner, approved, token_id)
        logger.debug("Token %d approval set to %s by %s", token_id, approved, sender)

    def set_approval_for_all(
        self,
        caller: ActorLike,
        operator: ActorLike,
        approved: bool,
    ) -> None:
        """Grant or revoke blanket rights over all of the caller's tokens."""
        owner = decode_actor(caller)
        account = decode_actor(operator)
        operators = self._operators.setdefault(owner, set())
        if approved:
            operators.add(account)
        else:
            operators.discard(account)

        self._emit(
            EventKind.APPROVAL_FOR_ALL,
            owner,
            {"owner": owner, "operator": account, "approved": bool(approved)},
        )
        logger.debug("Operator %s %s for %s", account, "approved" if approved else "revoked", owner)

    def transfer_from(
        self,
        caller: ActorLike,
        from_: ActorLike,
        to: ActorLike,
        token_id: int,
    ) -> None:
        """Move a token to a new owner.

        No recipient capability check is made: tokens may be sent to
        actors unable to act on them.
        """
        sender = decode_actor(caller)
        source = decode_actor(from_)
        recipient = decode_actor(to)

        owner = self.owner_of(token_id)
        if owner != source:
            raise OwnerMismatch(f"token {token_id} is owned by {owner}, not {source}")
        if is_null_actor(recipient):
            raise InvalidActor("cannot transfer to the null actor")
        if not (
            sender == owner
            or self._token_approvals.get(token_id) == sender
            or self._is_operator(owner, sender)
        ):
            raise Unauthorized(f"{sender} may not transfer token {token_id}")

        self._set_approval(sender, owner, NULL_ACTOR, token_id)
        self._owners[token_id] = recipient
        self._balances[owner] -= 1
        self._balances[recipient] = self._balances.get(recipient, 0) + 1

        self._emit(
            EventKind.TRANSFER,
            sender,
            {"from": owner, "to": recipient, "token_id": token_id},
        )
        logger.debug("Token %d transferred %s -> %s by %s", token_id, owner, recipient, sender)

    def burn(self, caller: ActorLike, token_id: int) -> None:
        """Permanently retire a token."""
        sender = decode_actor(caller)
        owner = self.owner_of(token_id)
        if sender != owner and not self._is_operator(owner, sender):
            raise Unauthorized(
                f"{sender} is neither owner nor operator of token {token_id}"
            )

        self._set_approval(sender, owner, NULL_ACTOR, token_id)
        del self._owners[token_id]
        self._balances[owner] -= 1
        self._burned.add(token_id)

        self._emit(
            EventKind.TRANSFER,
            sender,
            {"from": owner, "to": NULL_ACTOR, "token_id": token_id},
        )
        logger.info("Burned token %d of %s", token_id, owner)

    # ------------------------------------------------------------------
    # Replay
    # ------------------------------------------------------------------

    def apply_event(self, event: EventRecord) -> None:
        """Apply a recorded token event without re-emitting it.

        Raises ValueError if the record contradicts the current state.
        """
        payload = event.payload
        if event.event_kind == EventKind.TRANSFER:
            token_id = int(payload["token_id"])
            source = decode_actor(payload["from"])
            recipient = decode_actor(payload["to"])
            if is_null_actor(source):
                if token_id != self._minted_count + 1:
                    raise ValueError(
                        f"{event.event_id}: mint of token {token_id} out of sequence"
                    )
                self._minted_count = token_id
                self._owners[token_id] = recipient
                self._balances[recipient] = self._balances.get(recipient, 0) + 1
                return
            if self._owners.get(token_id) != source:
                raise ValueError(
                    f"{event.event_id}: token {token_id} is not owned by {source}"
                )
            self._token_approvals.pop(token_id, None)
            self._balances[source] -= 1
            if is_null_actor(recipient):
                del self._owners[token_id]
                self._burned.add(token_id)
            else:
                self._owners[token_id] = recipient
                self._balances[recipient] = self._balances.get(recipient, 0) + 1

        elif event.event_kind == EventKind.APPROVAL:
            token_id = int(payload["token_id"])
            owner = decode_actor(payload["owner"])
            if self._owners.get(token_id) != owner:
                raise ValueError(
                    f"{event.event_id}: approval for token {token_id} not by its owner"
                )
            approved = decode_actor(payload["approved"])
            if is_null_actor(approved):
                self._token_approvals.pop(token_id, None)
            else:
                self._token_approvals[token_id] = approved

        elif event.event_kind == EventKind.APPROVAL_FOR_ALL:
            owner = decode_actor(payload["owner"])
            operators = self._operators.setdefault(owner, set())
            if payload["approved"]:
                operators.add(decode_actor(payload["operator"]))
            else:
                operators.discard(decode_actor(payload["operator"]))

        else:
            raise ValueError(f"{event.event_id}: not a token event: {event.event_kind.value}")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_operator(self, owner: str, actor: str) -> bool:
        return actor in self._operators.get(owner, set())

    def _set_approval(self, caller: str, owner: str, approved: str, token_id: int) -> None:
        if is_null_actor(approved):
            self._token_approvals.pop(token_id, None)
        else:
            self._token_approvals[token_id] = approved
        self._emit(
            EventKind.APPROVAL,
            caller,
            {"owner": owner, "approved": approved, "token_id": token_id},
        )

    def _emit(self, kind: EventKind, actor: str, payload: dict) -> None:
        if self._event_log is not None:
            self._event_log.append(self._event_log.new_record(kind, actor, payload))
