from http import HTTPStatus
from typing import Optional

from fastapi import HTTPException


class MiddlewareException(HTTPException):
    """Base exception for request-gate errors; subclasses set status and message."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    message = "An error occurred."

    def __init__(self, detail: Optional[str] = None):
        self.message = detail or self.message
        super().__init__(status_code=self.status_code, detail=self.message)


class MissingAPIKeyError(MiddlewareException):
    status_code = HTTPStatus.UNAUTHORIZED
    message = "Missing API key."


class InvalidAPIKeyError(MiddlewareException):
    status_code = HTTPStatus.FORBIDDEN
    message = "Invalid API key provided."

    def __init__(self, api_key: Optional[str] = None):
        super().__init__(f"{self.message} ID: {api_key}" if api_key else None)


class MissingViewerError(MiddlewareException):
    """The acting agent is not identified on the request."""

    status_code = HTTPStatus.BAD_REQUEST
    message = "Missing acting agent header."

    def __init__(self, header: str):
        self.header = header
        super().__init__(f"{self.message} Header: {header}")
