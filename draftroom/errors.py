"""
Draft errors.

Every error raised by the draft engine derives from DraftError and carries a
stable ``code`` plus the HTTP status the API layer answers with.
"""


class DraftError(Exception):
    """Base exception for all draft-related errors"""
    code = "DraftError"
    status_code = 400


class NotFoundError(DraftError):
    """Raised for an unknown draft, round, pick, trade or manager"""
    code = "NotFound"
    status_code = 404


class InvalidOperationError(DraftError):
    """Raised when an operation is not allowed in the draft's current state"""
    code = "InvalidOperation"
    status_code = 409


class InvalidStateError(DraftError):
    """Raised when the draft is missing data an operation depends on"""
    code = "InvalidState"
    status_code = 409


class AlreadyCompleteError(DraftError):
    code = "AlreadyComplete"
    status_code = 409


class OutOfRangeError(DraftError):
    """Raised when a cursor update points outside the existing slots"""
    code = "OutOfRange"
    status_code = 422


class DraftCompleteError(DraftError):
    """Raised when advancing past the last pick of the draft"""
    code = "DraftComplete"
    status_code = 409


class ConcurrentModificationError(DraftError):
    """Raised when a conditional write lost against another writer"""
    code = "ConcurrentModification"
    status_code = 409


class TradeRejectedError(DraftError):
    """Raised when committing a trade whose validation has issues"""
    code = "TradeRejected"
    status_code = 422

    def __init__(self, validation):
        self.validation = validation
        codes = ", ".join(issue.code for issue in validation.issues)
        super().__init__(f"Trade rejected: {codes}")
