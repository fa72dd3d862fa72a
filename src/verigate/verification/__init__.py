"""Credential verification — pluggable proof verifiers."""

from verigate.verification.verifier import (
    ExternalProofVerifier,
    HashCommitmentVerifier,
    ProofVerifier,
    build_verifier,
)

__all__ = [
    "ExternalProofVerifier",
    "HashCommitmentVerifier",
    "ProofVerifier",
    "build_verifier",
]
