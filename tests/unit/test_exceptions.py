"""Unit tests for error classification."""

import pytest

from rdconnect.core.models import CollaborationStatus
from rdconnect.exceptions import (
    ErrorKind,
    HttpError,
    InvalidTransitionError,
    NetworkFailureError,
    NotAuthenticatedError,
    NotAuthorizedError,
    SessionError,
    classify_error,
)


@pytest.mark.parametrize(
    "status,kind",
    [
        (401, ErrorKind.AUTH_EXPIRED),
        (403, ErrorKind.NOT_AUTHORIZED),
        (404, ErrorKind.NOT_FOUND),
        (400, ErrorKind.VALIDATION_REJECTED),
        (500, ErrorKind.UNKNOWN),
    ],
)
def test_classify_http_status(status, kind) -> None:
    assert classify_error(HttpError(status, "x")) is kind


def test_classify_network_failure() -> None:
    assert classify_error(NetworkFailureError("down")) is ErrorKind.NETWORK_FAILURE


def test_classify_follows_cause() -> None:
    try:
        try:
            raise HttpError(400, "Username taken")
        except HttpError as e:
            raise SessionError(e.message) from e
    except SessionError as wrapped:
        assert classify_error(wrapped) is ErrorKind.VALIDATION_REJECTED


def test_classify_local_errors() -> None:
    assert classify_error(NotAuthenticatedError()) is ErrorKind.AUTH_EXPIRED
    assert classify_error(NotAuthorizedError("no")) is ErrorKind.NOT_AUTHORIZED
    error = InvalidTransitionError(9, CollaborationStatus.ACCEPTED, CollaborationStatus.REJECTED)
    assert classify_error(error) is ErrorKind.VALIDATION_REJECTED
    assert "already accepted" in error.message
    assert classify_error(ValueError("?")) is ErrorKind.UNKNOWN
