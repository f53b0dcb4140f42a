"""HTTP plumbing shared by the session, collaboration and directory layers."""

from .request_client import RequestClient  # noqa: F401
