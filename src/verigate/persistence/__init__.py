"""Persistence — append-only, hash-sealed event log."""

from verigate.persistence.event_log import EventKind, EventLog, EventRecord

__all__ = ["EventKind", "EventLog", "EventRecord"]
