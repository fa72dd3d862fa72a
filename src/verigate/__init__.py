"""verigate — commitment-gated token issuance and ownership ledger."""
