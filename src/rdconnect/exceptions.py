"""Client exceptions and error classification.

Every error raised to callers derives from ``RDConnectError`` and
carries a single human-readable ``message``.
"""

from enum import Enum
from typing import Optional

from .core.models import CollaborationStatus


class RDConnectError(Exception):
    """Base class for all client errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class HttpError(RDConnectError):
    """The backend answered with a non-success status."""

    def __init__(self, status: int, detail: str):
        super().__init__(detail)
        self.status = status
        self.detail = detail

    def __repr__(self) -> str:
        return f"HttpError(status={self.status}, detail={self.detail!r})"


class NetworkFailureError(RDConnectError):
    """The request never produced a response (DNS, connect, timeout...)."""


class SessionError(RDConnectError):
    """A login, registration or account operation failed."""


class NotAuthenticatedError(SessionError):
    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class NotAuthorizedError(RDConnectError):
    """The current identity may not perform the operation."""


class CollaborationError(RDConnectError):
    """A collaboration request operation was refused before dispatch."""


class InvalidTransitionError(CollaborationError):
    """Raised when a request has already left the pending state."""

    def __init__(self, request_id: int, current: CollaborationStatus, target: CollaborationStatus):
        super().__init__(
            f"Collaboration request {request_id} is already {current.value}; cannot mark it {target.value}"
        )
        self.request_id = request_id
        self.current = current
        self.target = target


class ErrorKind(Enum):
    """Classification of failures as seen by callers."""
    NETWORK_FAILURE = "network_failure"
    AUTH_EXPIRED = "auth_expired"            # 401
    VALIDATION_REJECTED = "validation_rejected"  # other 4xx
    NOT_AUTHORIZED = "not_authorized"        # 403
    NOT_FOUND = "not_found"                  # 404
    UNKNOWN = "unknown"


def classify_error(error: BaseException) -> ErrorKind:
    """
    Classify an error raised by the client.

    Args:
        error: Exception to classify (the ``__cause__`` chain is followed)

    Returns:
        ErrorKind enum value
    """
    current: Optional[BaseException] = error
    while current is not None:
        if isinstance(current, NetworkFailureError):
            return ErrorKind.NETWORK_FAILURE
        if isinstance(current, NotAuthorizedError):
            return ErrorKind.NOT_AUTHORIZED
        if isinstance(current, NotAuthenticatedError):
            return ErrorKind.AUTH_EXPIRED
        if isinstance(current, CollaborationError):
            return ErrorKind.VALIDATION_REJECTED
        if isinstance(current, HttpError):
            if current.status == 401:
                return ErrorKind.AUTH_EXPIRED
            if current.status == 403:
                return ErrorKind.NOT_AUTHORIZED
            if current.status == 404:
                return ErrorKind.NOT_FOUND
            if 400 <= current.status < 500:
                return ErrorKind.VALIDATION_REJECTED
            return ErrorKind.UNKNOWN
        current = current.__cause__
    return ErrorKind.UNKNOWN
