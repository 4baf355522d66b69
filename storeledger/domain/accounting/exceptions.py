"""Ledger error hierarchy.

Every error carries a ``kind`` and the identifiers of the offending records
so the API layer can return a structured body without parsing messages.
"""

from typing import Any, Dict


class LedgerError(Exception):
    """Base class for all ledger errors."""

    kind = "ledger_error"

    def __init__(self, message: str, **identifiers: Any):
        super().__init__(message)
        self.message = message
        self.identifiers = {k: v for k, v in identifiers.items() if v is not None}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "identifiers": {k: str(v) for k, v in self.identifiers.items()},
        }

    def __str__(self) -> str:
        if not self.identifiers:
            return self.message
        details = ", ".join(f"{k}={v}" for k, v in self.identifiers.items())
        return f"{self.message} ({details})"


class ValidationError(LedgerError):
    """Unbalanced entry, missing field, invalid enum or unknown account code."""

    kind = "validation_error"


class NotFoundError(LedgerError):
    """Missing account, entry, period, asset or debt record."""

    kind = "not_found"


class ConflictError(LedgerError):
    """Duplicate reference number or account code."""

    kind = "conflict"


class StateError(LedgerError):
    """Operation not allowed in the record's current state."""

    kind = "state_error"
