"""verigate CLI — command-line interface for the gate.

State lives in a JSONL event log and is replayed on every invocation.

Usage:
    python -m verigate.cli new-actor
    python -m verigate.cli claim-admin --caller 0xAdmin...
    python -m verigate.cli compute-root --actor 0xAlice... --credential "open sesame"
    python -m verigate.cli set-root --caller 0xAdmin... --root 0x<64 hex>
    python -m verigate.cli issue --caller 0xAlice... --credential "open sesame"
    python -m verigate.cli transfer --caller 0xAlice... --from 0xAlice... --to 0xBob... --token 1
    python -m verigate.cli status
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path

from verigate.config import GateConfig
from verigate.crypto.accounts import actor_from_key, new_actor
from verigate.crypto.codec import parse_credential_text, root_hex
from verigate.crypto.commitment import HashCommitment
from verigate.errors import GateError
from verigate.persistence.event_log import EventKind
from verigate.service import GateService


DEFAULT_LOG = Path("data") / "events.jsonl"


def _load_config(args: argparse.Namespace) -> GateConfig:
    config = GateConfig.from_env(env_file=args.env_file)
    log_path = args.log or config.event_log_path or DEFAULT_LOG
    return dataclasses.replace(config, event_log_path=log_path)


def _make_service(args: argparse.Namespace) -> GateService:
    """Create a GateService backed by the JSONL event log."""
    return GateService.from_config(_load_config(args))


def _caller(args: argparse.Namespace) -> str:
    if args.caller_key:
        return actor_from_key(args.caller_key)
    return args.caller


def cmd_status(args: argparse.Namespace) -> int:
    service = _make_service(args)
    print(json.dumps(service.status(), indent=2))
    return 0


def cmd_new_actor(args: argparse.Namespace) -> int:
    key = new_actor()
    print(json.dumps({"address": key.address, "private_key": key.private_key}, indent=2))
    return 0


def cmd_compute_root(args: argparse.Namespace) -> int:
    config = _load_config(args)
    commitment = HashCommitment(args.hash or config.hash_algorithm)
    digest = commitment.digest(args.actor, parse_credential_text(args.credential))
    print(root_hex(digest))
    return 0


def cmd_claim_admin(args: argparse.Namespace) -> int:
    admin = _make_service(args).claim_admin(_caller(args))
    print(f"Admin claimed: {admin}")
    return 0


def cmd_set_root(args: argparse.Namespace) -> int:
    service = _make_service(args)
    service.set_verifier_root(_caller(args), args.root)
    print(f"Verifier root set: {root_hex(service.current_root())}")
    return 0


def cmd_issue(args: argparse.Namespace) -> int:
    token_id = _make_service(args).issue(
        _caller(args), parse_credential_text(args.credential)
    )
    print(f"Issued token: {token_id}")
    return 0


def cmd_owner_of(args: argparse.Namespace) -> int:
    print(_make_service(args).owner_of(args.token))
    return 0


def cmd_balance_of(args: argparse.Namespace) -> int:
    print(_make_service(args).balance_of(args.actor))
    return 0


def cmd_approve(args: argparse.Namespace) -> int:
    _make_service(args).approve(_caller(args), args.to, args.token)
    print(f"Approved {args.to} for token {args.token}")
    return 0


def cmd_set_operator(args: argparse.Namespace) -> int:
    approved = not args.revoke
    _make_service(args).set_approval_for_all(_caller(args), args.operator, approved)
    print(f"Operator {args.operator} {'approved' if approved else 'revoked'}")
    return 0


def cmd_transfer(args: argparse.Namespace) -> int:
    _make_service(args).transfer_from(_caller(args), args.from_, args.to, args.token)
    print(f"Transferred token {args.token} to {args.to}")
    return 0


def cmd_burn(args: argparse.Namespace) -> int:
    _make_service(args).burn(_caller(args), args.token)
    print(f"Burned token {args.token}")
    return 0


def cmd_events(args: argparse.Namespace) -> int:
    kind = EventKind(args.kind) if args.kind else None
    for event in _make_service(args).event_log.events(kind):
        print(json.dumps(event.to_dict(), sort_keys=True))
    return 0


def _add_caller(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--caller", help="Calling actor address")
    group.add_argument("--caller-key", help="Private key of the calling actor")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="verigate",
        description="verigate — commitment-gated token ledger CLI",
    )
    parser.add_argument(
        "--log",
        type=Path,
        default=None,
        help=f"Path to the JSONL event log (default: $VERIGATE_EVENT_LOG or {DEFAULT_LOG})",
    )
    parser.add_argument("--env-file", type=Path, default=None, help="Load settings from a .env file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("status", help="Show gate status")
    sub.add_parser("new-actor", help="Generate a new actor key and address")

    p_root = sub.add_parser("compute-root", help="Compute the commitment for an actor and credential")
    p_root.add_argument("--actor", required=True, help="Actor address")
    p_root.add_argument("--credential", required=True, help="Credential (0x-hex or text)")
    p_root.add_argument("--hash", choices=["keccak256", "sha256"], help="Hash algorithm override")

    p_claim = sub.add_parser("claim-admin", help="Claim the one-time admin role")
    _add_caller(p_claim)

    p_set = sub.add_parser("set-root", help="Set the verifier root (admin only)")
    _add_caller(p_set)
    p_set.add_argument("--root", required=True, help="32-byte root as 0x-hex")

    p_issue = sub.add_parser("issue", help="Submit a credential and mint a token")
    _add_caller(p_issue)
    p_issue.add_argument("--credential", required=True, help="Credential (0x-hex or text)")

    p_owner = sub.add_parser("owner-of", help="Show the owner of a token")
    p_owner.add_argument("--token", type=int, required=True)

    p_bal = sub.add_parser("balance-of", help="Show an actor's token count")
    p_bal.add_argument("--actor", required=True)

    p_appr = sub.add_parser("approve", help="Approve an actor for one token")
    _add_caller(p_appr)
    p_appr.add_argument("--to", required=True, help="Approved actor (null address clears)")
    p_appr.add_argument("--token", type=int, required=True)

    p_op = sub.add_parser("set-operator", help="Grant or revoke operator rights")
    _add_caller(p_op)
    p_op.add_argument("--operator", required=True)
    p_op.add_argument("--revoke", action="store_true", help="Revoke instead of grant")

    p_xfer = sub.add_parser("transfer", help="Transfer a token")
    _add_caller(p_xfer)
    p_xfer.add_argument("--from", dest="from_", required=True)
    p_xfer.add_argument("--to", required=True)
    p_xfer.add_argument("--token", type=int, required=True)

    p_burn = sub.add_parser("burn", help="Burn a token")
    _add_caller(p_burn)
    p_burn.add_argument("--token", type=int, required=True)

    p_events = sub.add_parser("events", help="Print the event log")
    p_events.add_argument("--kind", choices=[k.value for k in EventKind])

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = _load_config(args)
    except ValueError as e:
        print(f"Failed: {type(e).__name__}: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "status": cmd_status,
        "new-actor": cmd_new_actor,
        "compute-root": cmd_compute_root,
        "claim-admin": cmd_claim_admin,
        "set-root": cmd_set_root,
        "issue": cmd_issue,
        "owner-of": cmd_owner_of,
        "balance-of": cmd_balance_of,
        "approve": cmd_approve,
        "set-operator": cmd_set_operator,
        "transfer": cmd_transfer,
        "burn": cmd_burn,
        "events": cmd_events,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    try:
        return handler(args)
    except (GateError, ValueError) as e:
        print(f"Failed: {type(e).__name__}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
