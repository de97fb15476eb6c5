"""
Error taxonomy for the sales pipeline.

- ValidationError: bad caller input; raised before any write is attempted.
- NotFoundError: a referenced product/customer/transaction does not exist.
- PersistenceError: the store rejected or failed a read/write.
- PartialCommitError: a transaction header was written but its line items
  were not. The header is removed by a compensating delete when possible;
  either way the failure needs attention and must not be silently retried.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

# PostgreSQL SQLSTATE for unique_violation.
UNIQUE_VIOLATION = "23505"


class PosError(Exception):
    """Base class for all errors raised by the sales pipeline."""


class ValidationError(PosError):
    pass


class NotFoundError(PosError):
    pass


class PersistenceError(PosError):
    """Raised when the backing store rejects or fails an operation."""

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code

    @property
    def is_unique_violation(self) -> bool:
        return self.code == UNIQUE_VIOLATION


class PartialCommitError(PosError):
    """
    Raised when line items failed after their transaction header was written.

    `rolled_back` tells whether the compensating delete removed the header.
    When it is False the header is still stored and must be reconciled.
    """

    def __init__(
        self,
        message: str,
        *,
        transaction_id: UUID,
        invoice_number: str,
        rolled_back: bool,
    ) -> None:
        super().__init__(message)
        self.transaction_id = transaction_id
        self.invoice_number = invoice_number
        self.rolled_back = rolled_back
