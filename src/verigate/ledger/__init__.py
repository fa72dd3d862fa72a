"""Token ledger — ownership, approvals and burns."""

from verigate.ledger.token_ledger import TokenLedger, TokenState

__all__ = ["TokenLedger", "TokenState"]
