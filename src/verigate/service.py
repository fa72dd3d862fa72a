"""Gate service — the single guarded state container for the whole gate.

This is the primary interface for programmatic access. It owns:
- Access registrar (admin identity, verifier root)
- Token ledger (owners, balances, approvals, operators)
- Issuance (credential verification → mint)
- Event log (ordered record of every mutation)

Every public operation runs inside one exclusive section. All
preconditions are checked before the first mutation, so each call either
applies fully or changes nothing. Events are recorded inside the section,
so the log order is the serial order of operations. Persisting and
delivering those events happens after the section is released; no I/O
runs while the state lock is held.

State is reconstructed on construction by replaying the event log, so a
gate backed by a JSONL log survives process restarts.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from verigate.access.registrar import AccessRegistrar
from verigate.config import GateConfig
from verigate.crypto.codec import ActorLike, RootLike, root_hex
from verigate.issuance.service import IssuanceService
from verigate.ledger.token_ledger import TokenLedger
from verigate.persistence.event_log import EventKind, EventLog, EventRecord
from verigate.verification.verifier import ProofBackend, ProofVerifier, build_verifier


logger = logging.getLogger(__name__)

_ACCESS_EVENTS = (EventKind.ADMIN_CLAIMED, EventKind.ROOT_UPDATED)


class GateService:
    """Unified, thread-safe facade over the gate.

    Usage:
        service = GateService(GateConfig())
        service.claim_admin(deployer)
        service.set_verifier_root(deployer, root)
        token_id = service.issue(alice, credential)
        service.transfer_from(alice, alice, bob, token_id)

    Persistence (optional):
        service = GateService(config, event_log=EventLog(Path("events.jsonl")))
        # Existing events are replayed on construction.
    """

    def __init__(
        self,
        config: Optional[GateConfig] = None,
        event_log: Optional[EventLog] = None,
        verifier: Optional[ProofVerifier] = None,
        backend: Optional[ProofBackend] = None,
    ) -> None:
        self._config = config or GateConfig()
        if event_log is None:
            event_log = EventLog(self._config.event_log_path)
        self._event_log = event_log
        self._lock = threading.RLock()

        self._registrar = AccessRegistrar(event_log)
        self._ledger = TokenLedger(event_log)
        self._verifier = verifier or build_verifier(self._config, backend)
        self._issuance = IssuanceService(
            self._registrar,
            self._verifier,
            self._ledger,
            max_credential_bytes=self._config.max_credential_bytes,
        )

        replayed = self._replay(event_log.events())
        if replayed:
            logger.info("Replayed %d events from log", replayed)

    @classmethod
    def from_config(
        cls,
        config: GateConfig,
        backend: Optional[ProofBackend] = None,
    ) -> GateService:
        """Create a gate whose event log lives at config.event_log_path."""
        return cls(config, EventLog(config.event_log_path), backend=backend)

    @property
    def config(self) -> GateConfig:
        return self._config

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def verifier(self) -> ProofVerifier:
        return self._verifier

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def claim_admin(self, caller: ActorLike) -> str:
        with self._lock:
            admin = self._registrar.claim_admin(caller)
        self._event_log.flush()
        return admin

    def set_verifier_root(self, caller: ActorLike, new_root: RootLike) -> bytes:
        with self._lock:
            previous = self._registrar.set_verifier_root(caller, new_root)
        self._event_log.flush()
        return previous

    def current_root(self) -> bytes:
        with self._lock:
            return self._registrar.current_root()

    @property
    def admin(self) -> Optional[str]:
        with self._lock:
            return self._registrar.admin

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    def issue(self, actor: ActorLike, credential: bytes) -> int:
        """Mint a token to actor if credential verifies against the current root."""
        with self._lock:
            token_id = self._issuance.issue(actor, credential)
        self._event_log.flush()
        return token_id

    # ------------------------------------------------------------------
    # Ledger mutations
    # ------------------------------------------------------------------

    def approve(self, caller: ActorLike, to: ActorLike, token_id: int) -> None:
        with self._lock:
            self._ledger.approve(caller, to, token_id)
        self._event_log.flush()

    def set_approval_for_all(
        self, caller: ActorLike, operator: ActorLike, approved: bool
    ) -> None:
        with self._lock:
            self._ledger.set_approval_for_all(caller, operator, approved)
        self._event_log.flush()

    def transfer_from(
        self, caller: ActorLike, from_: ActorLike, to: ActorLike, token_id: int
    ) -> None:
        with self._lock:
            self._ledger.transfer_from(caller, from_, to, token_id)
        self._event_log.flush()

    def burn(self, caller: ActorLike, token_id: int) -> None:
        with self._lock:
            self._ledger.burn(caller, token_id)
        self._event_log.flush()

    # ------------------------------------------------------------------
    # Ledger queries
    # ------------------------------------------------------------------

    def owner_of(self, token_id: int) -> str:
        with self._lock:
            return self._ledger.owner_of(token_id)

    def balance_of(self, actor: ActorLike) -> int:
        with self._lock:
            return self._ledger.balance_of(actor)

    def get_approved(self, token_id: int) -> str:
        with self._lock:
            return self._ledger.get_approved(token_id)

    def is_approved_for_all(self, owner: ActorLike, operator: ActorLike) -> bool:
        with self._lock:
            return self._ledger.is_approved_for_all(owner, operator)

    def total_supply(self) -> int:
        with self._lock:
            return self._ledger.total_supply()

    def tokens_of(self, owner: ActorLike) -> list[int]:
        with self._lock:
            return self._ledger.tokens_of(owner)

    def balances(self) -> dict[str, int]:
        with self._lock:
            return self._ledger.balances()

    def status(self) -> dict[str, Any]:
        """Snapshot of the gate, consistent as of a single point in the order."""
        with self._lock:
            return {
                "admin": self._registrar.admin,
                "verifier_root": root_hex(self._registrar.current_root()),
                "verifier": type(self._verifier).__name__,
                "hash_algorithm": self._config.hash_algorithm,
                "total_supply": self._ledger.total_supply(),
                "minted": self._ledger.minted_count,
                "burned": self._ledger.burned_count,
                "events": self._event_log.count,
            }

    # ------------------------------------------------------------------
    # Replay
    # ------------------------------------------------------------------

    def _replay(self, events: list[EventRecord]) -> int:
        with self._lock:
            for event in events:
                if event.event_kind in _ACCESS_EVENTS:
                    self._registrar.apply_event(event)
                else:
                    self._ledger.apply_event(event)
        return len(events)
