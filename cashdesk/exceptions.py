"""
Typed errors raised by the cash session and ledger services.

Every error carries a machine-readable ``code`` and the HTTP status the
boundary layer should answer with. None of them are retried: they describe a
failed precondition or bad caller input, not a transient fault.

    CashDeskError
    +-- ConflictError        another session is already OPEN
    +-- NotFoundError        session or movement absent
    +-- AlreadyClosedError   closing a CLOSED session
    +-- ForbiddenError       closing someone else's session
    +-- SessionClosedError   mutating movements of a CLOSED session
    +-- ValidationError      bad amount, description, date range or format
"""


class CashDeskError(Exception):
    code: str = "CASHDESK_ERROR"
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConflictError(CashDeskError):
    code = "CONFLICT"
    status_code = 409


class NotFoundError(CashDeskError):
    code = "NOT_FOUND"
    status_code = 404


class AlreadyClosedError(CashDeskError):
    code = "ALREADY_CLOSED"
    status_code = 409


class ForbiddenError(CashDeskError):
    code = "FORBIDDEN"
    status_code = 403


class SessionClosedError(CashDeskError):
    code = "SESSION_CLOSED"
    status_code = 409


class ValidationError(CashDeskError):
    code = "VALIDATION_ERROR"
    status_code = 422
