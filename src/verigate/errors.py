"""Error kinds raised by the gate.

Every error is a rejection of the whole call: the operation that raises
has changed nothing. Errors are surfaced to the caller that triggered
them and are never retried internally.
"""

from __future__ import annotations


class GateError(Exception):
    """Base class for all rejected gate operations."""


class AlreadyInitialized(GateError):
    """Raised when the admin identity is claimed a second time."""


class NotInitialized(GateError):
    """Raised when a root operation runs before any admin exists."""


class Unauthorized(GateError):
    """Raised when the caller lacks the required role or approval."""


class MalformedInput(GateError):
    """Raised when a root, actor or credential fails structural checks."""


class MissingCredential(MalformedInput):
    """Raised when an issuance call carries an empty credential."""


class NotFound(GateError):
    """Raised for a token id that does not (or no longer) exist."""


class OwnerMismatch(GateError):
    """Raised when a transfer source is not the recorded owner."""


class InvalidActor(GateError):
    """Raised when the null actor is given where a real actor is required."""


class VerificationFailed(GateError):
    """Raised when a well-formed credential does not verify against the root.

    This is a legitimate negative result, not a malfunction.
    """
