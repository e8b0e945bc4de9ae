"""
Error taxonomy for the account ledger.

Every error a caller can see is one of the subclasses below. Uniqueness,
not-found and validation errors are final; ``StorageTimeoutError`` and
``ConflictError`` are transient and marked ``retryable``.
"""

from typing import Optional


class AccountLedgerError(Exception):
    code = "account_ledger_error"
    retryable = False

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = str(self.args[0])


class DuplicateUsernameError(AccountLedgerError):
    """Username is already taken."""

    code = "duplicate_username"


class DuplicateEmailError(AccountLedgerError):
    """Email is already registered."""

    code = "duplicate_email"


class NotFoundError(AccountLedgerError):
    """Account not found."""

    code = "not_found"


class InsufficientCoinsError(AccountLedgerError):
    """Not enough coins to apply the match result."""

    code = "insufficient_coins"


class InvalidInputError(AccountLedgerError):
    """Invalid input."""

    code = "invalid_input"


class StorageTimeoutError(AccountLedgerError, TimeoutError):
    """Storage did not answer within the transaction timeout."""

    code = "timeout"
    retryable = True


class ConflictError(AccountLedgerError):
    """Lock contention exceeded the retry budget."""

    code = "conflict"
    retryable = True
