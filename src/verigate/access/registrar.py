"""Access registrar — the single admin identity and the current verifier root.

Rules:
- The admin is claimed exactly once. The first caller wins; every later
  claim fails with AlreadyInitialized. Deployment tooling must claim in
  the same step that creates the gate.
- Only the admin may set the verifier root, and only once an admin exists.
- The root may be rotated any number of times. No history is kept here;
  rotation is visible through ROOT_UPDATED events. Rotation invalidates
  credentials bound to the old root but leaves minted tokens untouched.

The registrar performs no locking. GateService serialises every call.
"""

from __future__ import annotations

import logging
from typing import Optional

from verigate.crypto.codec import (
    EMPTY_ROOT,
    ActorLike,
    RootLike,
    decode_actor,
    decode_root,
    is_null_actor,
    root_hex,
)
from verigate.errors import (
    AlreadyInitialized,
    InvalidActor,
    NotInitialized,
    Unauthorized,
)
from verigate.persistence.event_log import EventKind, EventLog, EventRecord


logger = logging.getLogger(__name__)


class AccessRegistrar:
    """Holds the admin identity and verifier root.

    Usage:
        registrar = AccessRegistrar(event_log)
        registrar.claim_admin(deployer)
        registrar.set_verifier_root(deployer, root)
        root = registrar.current_root()
    """

    def __init__(self, event_log: Optional[EventLog] = None) -> None:
        self._event_log = event_log
        self._admin: Optional[str] = None
        self._root: bytes = EMPTY_ROOT

    @property
    def admin(self) -> Optional[str]:
        return self._admin

    @property
    def is_initialized(self) -> bool:
        return self._admin is not None

    def claim_admin(self, caller: ActorLike) -> str:
        """Fix the caller as admin for the rest of the process lifetime."""
        actor = decode_actor(caller)
        if is_null_actor(actor):
            raise InvalidActor("the null actor cannot become admin")
        if self._admin is not None:
            raise AlreadyInitialized(f"admin already set to {self._admin}")

        self._admin = actor
        self._emit(EventKind.ADMIN_CLAIMED, actor, {"admin": actor})
        logger.info("Admin claimed by %s", actor)
        return actor

    def set_verifier_root(self, caller: ActorLike, new_root: RootLike) -> bytes:
        """Overwrite the verifier root. Returns the previous root."""
        actor = decode_actor(caller)
        if self._admin is None:
            raise NotInitialized("no admin has been claimed yet")
        if actor != self._admin:
            raise Unauthorized(f"{actor} is not the admin")
        root = decode_root(new_root)

        previous = self._root
        self._root = root
        self._emit(
            EventKind.ROOT_UPDATED,
            actor,
            {"previous_root": root_hex(previous), "root": root_hex(root)},
        )
        logger.info("Verifier root rotated to %s", root_hex(root))
        return previous

    def current_root(self) -> bytes:
        """Return the last-set root, or EMPTY_ROOT if none was ever set."""
        return self._root

    def apply_event(self, event: EventRecord) -> None:
        """Apply a recorded access event without re-emitting it."""
        if event.event_kind == EventKind.ADMIN_CLAIMED:
            if self._admin is not None:
                raise ValueError(f"{event.event_id}: admin claimed twice in log")
            self._admin = decode_actor(event.payload["admin"])
        elif event.event_kind == EventKind.ROOT_UPDATED:
            if self._admin is None or decode_actor(event.actor_id) != self._admin:
                raise ValueError(f"{event.event_id}: root update not made by admin")
            self._root = decode_root(event.payload["root"])
        else:
            raise ValueError(f"{event.event_id}: not an access event: {event.event_kind.value}")

    def _emit(self, kind: EventKind, actor: str, payload: dict) -> None:
        if self._event_log is not None:
            self._event_log.append(self._event_log.new_record(kind, actor, payload))
