"""Gate configuration — loaded from the environment and an optional .env file.

Variables:
    VERIGATE_HASH                  keccak256 | sha256        (default keccak256)
    VERIGATE_VERIFIER              hash_commitment | external (default hash_commitment)
    VERIGATE_MAX_CREDENTIAL_BYTES  positive int               (default 4096)
    VERIGATE_EVENT_LOG             path to JSONL event log    (default: in-memory)
    VERIGATE_LOG_LEVEL             logging level name         (default WARNING)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv


HASH_ALGORITHMS = ("keccak256", "sha256")
VERIFIERS = ("hash_commitment", "external")
DEFAULT_MAX_CREDENTIAL_BYTES = 4096


@dataclass(frozen=True)
class GateConfig:
    """Construction-time settings for a gate."""
    hash_algorithm: str = "keccak256"
    verifier: str = "hash_commitment"
    max_credential_bytes: int = DEFAULT_MAX_CREDENTIAL_BYTES
    event_log_path: Optional[Path] = None
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.hash_algorithm not in HASH_ALGORITHMS:
            raise ValueError(
                f"hash_algorithm must be one of {HASH_ALGORITHMS}, got {self.hash_algorithm!r}"
            )
        if self.verifier not in VERIFIERS:
            raise ValueError(
                f"verifier must be one of {VERIFIERS}, got {self.verifier!r}"
            )
        if self.max_credential_bytes <= 0:
            raise ValueError(
                f"max_credential_bytes must be > 0, got {self.max_credential_bytes}"
            )
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Unknown log level: {self.log_level!r}")

    @classmethod
    def from_env(
        cls,
        env_file: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> GateConfig:
        """Build a config from environment variables.

        When env_file is given it is loaded first with python-dotenv;
        variables already set in the process environment win.
        """
        if env_file is not None:
            load_dotenv(env_file)
        env = os.environ if environ is None else environ

        raw_max = env.get("VERIGATE_MAX_CREDENTIAL_BYTES", str(DEFAULT_MAX_CREDENTIAL_BYTES))
        try:
            max_bytes = int(raw_max)
        except ValueError as e:
            raise ValueError(
                f"VERIGATE_MAX_CREDENTIAL_BYTES must be an integer, got {raw_max!r}"
            ) from e

        log_path = env.get("VERIGATE_EVENT_LOG")
        return cls(
            hash_algorithm=env.get("VERIGATE_HASH", "keccak256"),
            verifier=env.get("VERIGATE_VERIFIER", "hash_commitment"),
            max_credential_bytes=max_bytes,
            event_log_path=Path(log_path) if log_path else None,
            log_level=env.get("VERIGATE_LOG_LEVEL", "WARNING").upper(),
        )
