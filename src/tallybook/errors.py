"""Typed errors raised by the ledger core and its reference services.

Every error carries a machine-readable ``code`` so API handlers can map it to a
response without parsing messages. ``field`` names the offending input when
there is one.
"""

from __future__ import annotations

from typing import Optional


class LedgerError(Exception):
    """Base class for all Tallybook domain errors."""

    code = "ledger_error"

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict[str, str]:
        payload = {"error": self.code, "message": self.message}
        if self.field:
            payload["field"] = self.field
        return payload


class ValidationError(LedgerError):
    """Malformed input; nothing was written."""

    code = "validation_error"


class NotFound(LedgerError):
    """A referenced row does not exist for the requesting owner."""

    code = "not_found"


class InvalidOperation(LedgerError):
    """The request is well-formed but not allowed in the current state."""

    code = "invalid_operation"


class ReferenceInUse(InvalidOperation):
    """Deletion refused while transactions still reference the row."""

    code = "reference_in_use"


class ConsistencyFault(LedgerError):
    """A unit of work could not apply one of its writes.

    Always fatal to the operation; the session scope rolls back.
    """

    code = "consistency_fault"


__all__ = [
    "ConsistencyFault",
    "InvalidOperation",
    "LedgerError",
    "NotFound",
    "ReferenceInUse",
    "ValidationError",
]
