"""Access control — admin identity and verifier root."""

from verigate.access.registrar import AccessRegistrar

__all__ = ["AccessRegistrar"]
