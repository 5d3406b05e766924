"""API error taxonomy shared by every route."""
from typing import Any, Optional

from starlette.status import (
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
    HTTP_503_SERVICE_UNAVAILABLE,
)


class NurseryAPIError(Exception):
    """Error that maps directly onto a JSON error response."""

    status_code = 500

    def __init__(
        self,
        error: str,
        message: Optional[str] = None,
        details: Any = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message or error)
        self.error = error
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        body = {"error": self.error}
        if self.message:
            body["message"] = self.message
        if self.details is not None:
            body["details"] = self.details
        return body


class NotFoundError(NurseryAPIError):
    status_code = HTTP_404_NOT_FOUND


class UnauthorizedError(NurseryAPIError):
    status_code = HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid or missing API key"):
        super().__init__("Unauthorized", message=message)


class ServiceUnavailableError(NurseryAPIError):
    status_code = HTTP_503_SERVICE_UNAVAILABLE

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["success"] = False
        return body
