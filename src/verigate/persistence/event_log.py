"""Append-only event log — the observable record of every ledger mutation.

Every successful mutating call appends one or more event records, in
the order the mutation implies. Records are immutable once written.
The log serves as:
1. The feed for off-band indexers (subscribers see each record once, in order).
2. The audit trail, sealed per record with a SHA-256 of its canonical JSON.
3. The source of truth for state reconstruction (GateService replays it on construction).

Appending and dispatching are split. append() only records in memory and
is called while the gate holds its state lock; flush() does the file
write and subscriber callbacks afterwards, so no I/O runs inside the
exclusive section.
"""

from __future__ import annotations

import enum
import hashlib
import json
import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


class EventKind(str, enum.Enum):
    """Classification of ledger events."""
    # Access events
    ADMIN_CLAIMED = "admin_claimed"
    ROOT_UPDATED = "root_updated"
    # Token events
    TRANSFER = "transfer"
    APPROVAL = "approval"
    APPROVAL_FOR_ALL = "approval_for_all"


def _canonical_hash(
    event_id: str,
    event_kind: str,
    timestamp_utc: str,
    actor_id: str,
    payload: dict[str, Any],
) -> str:
    canonical = json.dumps(
        {
            "event_id": event_id,
            "event_kind": event_kind,
            "timestamp_utc": timestamp_utc,
            "actor_id": actor_id,
            "payload": payload,
        },
        sort_keys=True,
        ensure_ascii=False,
    ).encode("utf-8")
    return f"sha256:{hashlib.sha256(canonical).hexdigest()}"


@dataclass(frozen=True)
class EventRecord:
    """A single immutable event in the ledger log.

    actor_id is the caller whose operation produced the event. The
    payload carries the event's own fields, e.g. for TRANSFER:
    {"from": ..., "to": ..., "token_id": ...}.
    """
    event_id: str
    event_kind: EventKind
    timestamp_utc: str
    actor_id: str
    payload: dict[str, Any]
    event_hash: str  # SHA-256 of canonical JSON

    @staticmethod
    def create(
        event_id: str,
        event_kind: EventKind,
        actor_id: str,
        payload: dict[str, Any],
        timestamp_utc: Optional[datetime] = None,
    ) -> EventRecord:
        """Create a new event record with computed hash."""
        ts = timestamp_utc or datetime.now(timezone.utc)
        ts_str = ts.strftime("%Y-%m-%dT%H:%M:%SZ")
        return EventRecord(
            event_id=event_id,
            event_kind=event_kind,
            timestamp_utc=ts_str,
            actor_id=actor_id,
            payload=payload,
            event_hash=_canonical_hash(
                event_id, event_kind.value, ts_str, actor_id, payload
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_kind": self.event_kind.value,
            "timestamp_utc": self.timestamp_utc,
            "actor_id": self.actor_id,
            "payload": self.payload,
            "event_hash": self.event_hash,
        }


Subscriber = Callable[[EventRecord], None]


class EventLog:
    """Append-only event log with optional JSONL persistence and subscribers.

    Events can only be appended, never modified or deleted.

    Usage:
        log = EventLog(storage_path=Path("data/events.jsonl"))
        log.subscribe(indexer.on_event)
        log.append(log.new_record(EventKind.TRANSFER, caller, payload))
        log.flush()  # persist + notify, in append order
    """

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self._events: list[EventRecord] = []
        self._storage_path = storage_path
        self._event_ids: set[str] = set()
        self._pending: deque[EventRecord] = deque()
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()
        self._dispatch_lock = threading.RLock()

        if storage_path and storage_path.exists():
            self._load_from_file(storage_path)

    def new_record(
        self,
        event_kind: EventKind,
        actor_id: str,
        payload: dict[str, Any],
    ) -> EventRecord:
        """Build the next record in sequence. Does not append it."""
        with self._lock:
            seq = len(self._events) + 1
        return EventRecord.create(
            event_id=f"evt-{seq:08d}",
            event_kind=event_kind,
            actor_id=actor_id,
            payload=payload,
        )

    def append(self, event: EventRecord) -> None:
        """Append an event to the log and queue it for dispatch.

        Raises ValueError if event_id is a duplicate (replay protection).
        """
        with self._lock:
            if event.event_id in self._event_ids:
                raise ValueError(f"Duplicate event ID: {event.event_id}")
            self._events.append(event)
            self._event_ids.add(event.event_id)
            self._pending.append(event)

    def flush(self) -> int:
        """Persist and deliver queued events in append order.

        Returns the number of events dispatched. An event leaves the queue
        only once it is on disk; a failed write stops the drain and the
        rest stay queued for the next flush, so the file never has gaps.
        A subscriber that raises is logged and skipped; the others still
        receive the event. Dispatch errors never reach the caller.
        """
        dispatched = 0
        with self._dispatch_lock:
            while True:
                with self._lock:
                    if not self._pending:
                        break
                    event = self._pending[0]
                if self._storage_path:
                    try:
                        self._append_to_file(event)
                    except OSError:
                        logger.exception(
                            "Could not persist %s; %d event(s) left queued",
                            event.event_id, len(self._pending),
                        )
                        break
                with self._lock:
                    self._pending.popleft()
                    subscribers = list(self._subscribers)
                for callback in subscribers:
                    try:
                        callback(event)
                    except Exception:
                        logger.exception(
                            "Subscriber %r failed on %s", callback, event.event_id
                        )
                dispatched += 1
        return dispatched

    def subscribe(self, callback: Subscriber) -> None:
        """Register a callback receiving every event dispatched from now on."""
        with self._lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        with self._lock:
            self._subscribers.remove(callback)

    def events(self, kind: Optional[EventKind] = None) -> list[EventRecord]:
        """Return events, optionally filtered by kind."""
        with self._lock:
            if kind is None:
                return list(self._events)
            return [e for e in self._events if e.event_kind == kind]

    @property
    def count(self) -> int:
        return len(self._events)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def last_event(self) -> Optional[EventRecord]:
        return self._events[-1] if self._events else None

    def _append_to_file(self, event: EventRecord) -> None:
        """Append a single event to the JSONL file."""
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        with self._storage_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(event.to_dict(), sort_keys=True, ensure_ascii=False) + "\n")

    def _load_from_file(self, path: Path) -> None:
        """Load events from a JSONL file with integrity verification.

        Fail-closed: rejects tampered records (hash mismatch) and
        duplicate event IDs (replay protection on recovery).
        """
        with path.open("r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                data = json.loads(line)

                event_id = data["event_id"]
                if event_id in self._event_ids:
                    raise ValueError(
                        f"Duplicate event ID on recovery (line {line_num}): {event_id}"
                    )

                expected_hash = _canonical_hash(
                    data["event_id"],
                    data["event_kind"],
                    data["timestamp_utc"],
                    data["actor_id"],
                    data["payload"],
                )
                if data["event_hash"] != expected_hash:
                    raise ValueError(
                        f"Integrity check failed (line {line_num}): event {event_id} "
                        f"stored hash {data['event_hash']} != computed {expected_hash}"
                    )

                event = EventRecord(
                    event_id=data["event_id"],
                    event_kind=EventKind(data["event_kind"]),
                    timestamp_utc=data["timestamp_utc"],
                    actor_id=data["actor_id"],
                    payload=data["payload"],
                    event_hash=data["event_hash"],
                )
                self._events.append(event)
                self._event_ids.add(event.event_id)
