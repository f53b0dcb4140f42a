"""Session and credential lifecycle.

The ``SessionManager`` is the only writer of the credential pair and the
current identity. Other components read the session through its
properties or ``subscribe`` to transitions, and reach authenticated
endpoints through ``SessionManager.authorized_request``.
"""

from .manager import SessionManager, IdentityResult, FetchOutcome  # noqa: F401
