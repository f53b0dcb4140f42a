"""R&D Connect client: session lifecycle and collaboration requests."""

from .app import ConnectApp
from .core.models import (
    CollaborationRequest,
    CollaborationStatus,
    CredentialPair,
    Identity,
    LoginData,
    RegisterData,
    SessionSnapshot,
    SessionState,
)
from .exceptions import (
    CollaborationError,
    ErrorKind,
    HttpError,
    InvalidTransitionError,
    NetworkFailureError,
    NotAuthenticatedError,
    NotAuthorizedError,
    RDConnectError,
    SessionError,
    classify_error,
)

__all__ = [
    "ConnectApp",
    # Models
    "CollaborationRequest",
    "CollaborationStatus",
    "CredentialPair",
    "Identity",
    "LoginData",
    "RegisterData",
    "SessionSnapshot",
    "SessionState",
    # Errors
    "CollaborationError",
    "ErrorKind",
    "HttpError",
    "InvalidTransitionError",
    "NetworkFailureError",
    "NotAuthenticatedError",
    "NotAuthorizedError",
    "RDConnectError",
    "SessionError",
    "classify_error",
]

__version__ = "0.1.0"
