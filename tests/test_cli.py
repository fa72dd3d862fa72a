"""Tests for verigate CLI — proves CLI dispatches correctly."""

import json
import sys
from pathlib import Path

import pytest

from verigate.cli import build_parser, main


ADMIN = "0x" + "aa" * 20
ALICE = "0x" + "11" * 20
BOB = "0x" + "22" * 20


def _run(log: Path, *argv: str) -> int:
    return main(["--log", str(log), *argv])


class TestCLIParsing:
    def test_status_command(self) -> None:
        args = build_parser().parse_args(["status"])
        assert args.command == "status"

    def test_transfer_command(self) -> None:
        args = build_parser().parse_args([
            "transfer", "--caller", ALICE, "--from", ALICE, "--to", BOB, "--token", "3",
        ])
        assert args.command == "transfer"
        assert args.from_ == ALICE
        assert args.token == 3

    def test_caller_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["claim-admin"])


class TestCLIExecution:
    def test_no_command_shows_help(self, capsys) -> None:
        assert main([]) == 0

    def test_new_actor(self, capsys) -> None:
        assert main(["new-actor"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["address"].startswith("0x")
        assert len(data["private_key"]) == 66

    def test_full_flow(self, tmp_path, capsys) -> None:
        log = tmp_path / "events.jsonl"
        assert _run(log, "claim-admin", "--caller", ADMIN) == 0

        assert _run(log, "compute-root", "--actor", ALICE, "--credential", "open sesame") == 0
        root = capsys.readouterr().out.strip().splitlines()[-1]
        assert root.startswith("0x") and len(root) == 66

        assert _run(log, "set-root", "--caller", ADMIN, "--root", root) == 0
        assert _run(log, "issue", "--caller", ALICE, "--credential", "open sesame") == 0
        assert "Issued token: 1" in capsys.readouterr().out

        assert _run(log, "transfer", "--caller", ALICE, "--from", ALICE, "--to", BOB, "--token", "1") == 0
        capsys.readouterr()
        assert _run(log, "owner-of", "--token", "1") == 0
        assert capsys.readouterr().out.strip().lower() == BOB

        assert _run(log, "balance-of", "--actor", BOB) == 0
        assert capsys.readouterr().out.strip() == "1"

        assert _run(log, "status") == 0
        status = json.loads(capsys.readouterr().out)
        assert status["total_supply"] == 1
        assert status["verifier_root"] == root

    def test_gate_errors_exit_nonzero(self, tmp_path, capsys) -> None:
        log = tmp_path / "events.jsonl"
        assert _run(log, "set-root", "--caller", ADMIN, "--root", "0x" + "01" * 32) == 1
        assert "NotInitialized" in capsys.readouterr().err

        assert _run(log, "claim-admin", "--caller", ADMIN) == 0
        assert _run(log, "claim-admin", "--caller", BOB) == 1
        assert "AlreadyInitialized" in capsys.readouterr().err

        assert _run(log, "issue", "--caller", ALICE, "--credential", "guess") == 1
        assert "VerificationFailed" in capsys.readouterr().err

    def test_bad_environment_exits_nonzero(self, tmp_path, capsys, monkeypatch) -> None:
        log = tmp_path / "events.jsonl"
        monkeypatch.setenv("VERIGATE_HASH", "md5")
        assert _run(log, "status") == 1
        assert "Failed: ValueError" in capsys.readouterr().err

    def test_external_verifier_without_backend_exits_nonzero(
        self, tmp_path, capsys, monkeypatch
    ) -> None:
        log = tmp_path / "events.jsonl"
        monkeypatch.setenv("VERIGATE_VERIFIER", "external")
        assert _run(log, "status") == 1
        assert "Failed: ValueError" in capsys.readouterr().err

    def test_caller_key(self, tmp_path, capsys) -> None:
        log = tmp_path / "events.jsonl"
        key = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
        assert _run(log, "claim-admin", "--caller-key", key) == 0
        assert "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23" in capsys.readouterr().out

    def test_operator_and_burn(self, tmp_path, capsys) -> None:
        log = tmp_path / "events.jsonl"
        _run(log, "claim-admin", "--caller", ADMIN)
        _run(log, "compute-root", "--actor", ALICE, "--credential", "0xc0ffee")
        root = capsys.readouterr().out.strip().splitlines()[-1]
        _run(log, "set-root", "--caller", ADMIN, "--root", root)
        assert _run(log, "issue", "--caller", ALICE, "--credential", "0xc0ffee") == 0
        assert _run(log, "set-operator", "--caller", ALICE, "--operator", BOB) == 0
        assert _run(log, "burn", "--caller", BOB, "--token", "1") == 0
        assert _run(log, "set-operator", "--caller", ALICE, "--operator", BOB, "--revoke") == 0
        capsys.readouterr()

        assert _run(log, "events", "--kind", "transfer") == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[1])["payload"]["to"] == "0x" + "00" * 20


class TestInvariantTool:
    def _check(self):
        sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "tools"))
        from check_invariants import check
        return check

    def test_passes_on_cli_log(self, tmp_path, capsys) -> None:
        log = tmp_path / "events.jsonl"
        _run(log, "claim-admin", "--caller", ADMIN)
        _run(log, "compute-root", "--actor", ALICE, "--credential", "s")
        root = capsys.readouterr().out.strip().splitlines()[-1]
        _run(log, "set-root", "--caller", ADMIN, "--root", root)
        _run(log, "issue", "--caller", ALICE, "--credential", "s")
        _run(log, "issue", "--caller", ALICE, "--credential", "s")
        _run(log, "burn", "--caller", ALICE, "--token", "1")
        assert self._check()(log) == 0

    def test_fails_on_tampered_log(self, tmp_path) -> None:
        log = tmp_path / "events.jsonl"
        _run(log, "claim-admin", "--caller", ADMIN)
        data = json.loads(log.read_text(encoding="utf-8"))
        data["payload"]["admin"] = BOB
        log.write_text(json.dumps(data) + "\n", encoding="utf-8")
        assert self._check()(log) == 1

    def test_empty_log_passes(self, tmp_path) -> None:
        assert self._check()(tmp_path / "missing.jsonl") == 0
