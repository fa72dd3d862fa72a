#!/usr/bin/env python3
"""verigate ledger invariant checks against a recorded event log.

Replays the log into a fresh gate and checks:
- sum of balances == total supply
- every owned token is counted in its owner's balance
- minted == total supply + burned, and ids run 1..minted
- exactly one ADMIN_CLAIMED event, and it precedes any ROOT_UPDATED

Usage:
    python3 tools/check_invariants.py [path/to/events.jsonl]
"""

import sys
from collections import Counter
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from verigate.config import GateConfig
from verigate.errors import GateError, NotFound
from verigate.persistence.event_log import EventKind, EventLog
from verigate.service import GateService


DEFAULT_LOG = ROOT / "data" / "events.jsonl"


def check(log_path: Path = DEFAULT_LOG) -> int:
    errors: list[str] = []

    try:
        service = GateService(GateConfig(), EventLog(log_path))
    except (ValueError, GateError) as e:
        print("Invariant check failed:")
        print(f"- event log does not replay: {e}")
        return 1

    events = service.event_log.events()
    status = service.status()

    # --- Access invariants ---
    claims = [e for e in events if e.event_kind == EventKind.ADMIN_CLAIMED]
    if len(claims) > 1:
        errors.append(f"admin claimed {len(claims)} times, expected at most 1")
    first_root = next(
        (i for i, e in enumerate(events) if e.event_kind == EventKind.ROOT_UPDATED), None
    )
    if first_root is not None:
        if not claims or events.index(claims[0]) > first_root:
            errors.append("root updated before an admin existed")

    # --- Conservation invariants ---
    balances = service.balances()
    supply = service.total_supply()
    if sum(balances.values()) != supply:
        errors.append(
            f"sum of balances {sum(balances.values())} != total supply {supply}"
        )
    if status["minted"] != supply + status["burned"]:
        errors.append(
            f"minted {status['minted']} != supply {supply} + burned {status['burned']}"
        )

    owned = Counter()
    for token_id in range(1, status["minted"] + 1):
        try:
            owned[service.owner_of(token_id)] += 1
        except NotFound:
            continue
    if dict(owned) != balances:
        errors.append("owner map and balance map disagree")

    if errors:
        print("Invariant check failed:")
        for err in errors:
            print(f"- {err}")
        return 1

    print(f"Invariant check passed ({len(events)} events, supply {supply}).")
    return 0


if __name__ == "__main__":
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_LOG
    raise SystemExit(check(path))
