from http import HTTPStatus

from fastapi import HTTPException


class LedgerException(HTTPException):
    """Base exception class for ledger errors."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    message = "An error occurred in the fleet ledger."

    def __init__(
        self,
        status_code: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR,
        message: str = "An error occurred in the fleet ledger.",
    ):
        self.status_code = status_code
        self.message = message or self.message
        super().__init__(status_code=status_code, detail=self.message)


class LedgerValidationError(LedgerException):
    """A write was rejected at the boundary; nothing was corrected or stored."""

    status_code = HTTPStatus.UNPROCESSABLE_ENTITY
    message = "Validation failed."

    def __init__(self, message: str = ""):
        if message:
            message = f"{self.message} {message}"
        super().__init__(status_code=self.status_code, message=message or self.message)


class LedgerNotFoundError(LedgerException):
    """A referenced row does not exist."""

    status_code = HTTPStatus.NOT_FOUND
    message = "Not found."

    def __init__(self, message: str = ""):
        super().__init__(status_code=self.status_code, message=message or self.message)
