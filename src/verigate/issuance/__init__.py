"""Issuance — credential-gated minting."""

from verigate.issuance.service import IssuanceService

__all__ = ["IssuanceService"]
