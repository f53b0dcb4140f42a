"""Session manager: boot, login, renewal and logout.

Boot is a single bounded chain::

    no access secret        -> UNAUTHENTICATED (no network)
    fetch identity ok       -> AUTHENTICATED
    fetch identity failed   -> renew once with the refresh secret
        renew ok + refetch ok -> AUTHENTICATED
        anything else         -> clear secrets, UNAUTHENTICATED

Any failure of the identity fetch is treated as an expired credential.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional

from pydantic import ValidationError

from ..client.request_client import RequestClient
from ..core.models import (
    CredentialPair,
    Identity,
    LoginData,
    RegisterData,
    SessionSnapshot,
    SessionState,
)
from ..exceptions import (
    HttpError,
    NetworkFailureError,
    NotAuthenticatedError,
    RDConnectError,
    SessionError,
)
from ..io.credentials import CredentialStore
from ..utils.logging import get_logger

logger = get_logger(__name__)

Listener = Callable[[SessionSnapshot], None]


class FetchOutcome(Enum):
    OK = "ok"
    EXPIRED = "expired"  # server refused the credential
    FAILED = "failed"    # no usable answer (network, malformed body)


@dataclass(frozen=True)
class IdentityResult:
    """Typed result of one identity fetch."""

    outcome: FetchOutcome
    identity: Optional[Identity] = None
    reason: Optional[str] = None

    @classmethod
    def ok(cls, identity: Identity) -> "IdentityResult":
        return cls(FetchOutcome.OK, identity=identity)

    @classmethod
    def expired(cls, reason: str) -> "IdentityResult":
        return cls(FetchOutcome.EXPIRED, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "IdentityResult":
        return cls(FetchOutcome.FAILED, reason=reason)


class SessionManager:
    """Owns the credential pair, the current identity and the session state."""

    TOKEN_PATH = "/api/token/"
    REFRESH_PATH = "/api/token/refresh/"
    REGISTER_PATH = "/api/auth/register/"
    ME_PATH = "/api/auth/me/"
    DELETE_PATH = "/api/auth/delete/"

    def __init__(self, client: RequestClient, store: CredentialStore) -> None:
        self.client = client
        self.store = store
        self._state = SessionState.LOADING
        self._identity: Optional[Identity] = None
        self._listeners: List[Listener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def is_authenticated(self) -> bool:
        return self._state is SessionState.AUTHENTICATED

    @property
    def is_researcher(self) -> bool:
        return self._identity is not None and self._identity.is_researcher

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(state=self._state, identity=self._identity)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for state transitions; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, state: SessionState, identity: Optional[Identity] = None) -> None:
        self._state = state
        self._identity = identity if state is SessionState.AUTHENTICATED else None
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Session listener failed")

    def _invalidate(self) -> None:
        self.store.clear()
        self._set_state(SessionState.UNAUTHENTICATED)

    async def _fetch_identity(self) -> IdentityResult:
        try:
            payload = await self.client.request("GET", self.ME_PATH, require_auth=True)
        except HttpError as e:
            return IdentityResult.expired(e.detail)
        except NetworkFailureError as e:
            return IdentityResult.failed(e.message)
        try:
            return IdentityResult.ok(Identity.model_validate(payload))
        except ValidationError:
            return IdentityResult.failed("Malformed identity record")

    async def _renew(self, refresh: str) -> bool:
        """Exchange the refresh secret for a new access secret; True on success."""
        try:
            payload = await self.client.request("POST", self.REFRESH_PATH, json={"refresh": refresh})
        except RDConnectError as e:
            logger.warning(f"Credential renewal failed: {e.message}")
            return False
        access = payload.get("access") if isinstance(payload, dict) else None
        if not isinstance(access, str) or not access:
            logger.warning("Credential renewal returned no access secret")
            return False
        self.store.save_access(access)
        logger.info("Access secret renewed")
        return True

    async def boot(self) -> SessionSnapshot:
        """Resolve the stored credentials into a session. Always leaves LOADING."""
        self._set_state(SessionState.LOADING)
        try:
            await self._restore_session()
        finally:
            if self._state is SessionState.LOADING:
                logger.error("Session boot aborted")
                self._set_state(SessionState.INVALID)
        return self.snapshot()

    async def _restore_session(self) -> None:
        if not self.store.access:
            if self.store.refresh:
                logger.info("Dropping refresh secret stored without an access secret")
                self._invalidate()
                return
            logger.info("No stored credentials")
            self._set_state(SessionState.UNAUTHENTICATED)
            return

        result = await self._fetch_identity()
        if result.outcome is not FetchOutcome.OK:
            logger.warning(
                "Identity fetch failed, treating access secret as expired",
                extra={"outcome": result.outcome.value, "reason": result.reason},
            )
            refresh = self.store.refresh
            if not refresh:
                self._invalidate()
                return
            if not await self._renew(refresh):
                self._invalidate()
                return
            result = await self._fetch_identity()

        if result.outcome is FetchOutcome.OK:
            self._set_state(SessionState.AUTHENTICATED, result.identity)
            logger.info("Session restored", extra={"user_id": result.identity.id})
        else:
            logger.warning(f"Identity fetch failed after renewal: {result.reason}")
            self._invalidate()

    async def login(self, credentials: LoginData) -> Identity:
        """
        Exchange username/password for a credential pair and load the identity.

        Returns only once the identity has been fetched.

        Raises:
            SessionError: With the server's message; a failed token request
                leaves any prior session untouched
        """
        try:
            payload = await self.client.request("POST", self.TOKEN_PATH, json=credentials.model_dump())
        except RDConnectError as e:
            logger.warning(f"Login failed for {credentials.username}: {e.message}")
            raise SessionError(e.message) from e
        try:
            pair = CredentialPair.model_validate(payload)
        except ValidationError as e:
            raise SessionError("Malformed token response from server") from e

        self.store.save_pair(pair)
        result = await self._fetch_identity()
        if result.outcome is not FetchOutcome.OK:
            self._invalidate()
            raise SessionError(result.reason or "Unable to load account")
        self._set_state(SessionState.AUTHENTICATED, result.identity)
        logger.info("Logged in", extra={"user_id": result.identity.id})
        return result.identity

    async def register(self, data: RegisterData) -> Identity:
        """Create an account, then log in with the same username and password."""
        try:
            await self.client.request(
                "POST",
                self.REGISTER_PATH,
                json=data.model_dump(),
                error_fallback="Registration failed",
            )
        except RDConnectError as e:
            logger.warning(f"Registration failed for {data.username}: {e.message}")
            raise SessionError(e.message) from e
        logger.info(f"Registered {data.username}")
        return await self.login(LoginData(username=data.username, password=data.password))

    def logout(self) -> None:
        self._invalidate()
        logger.info("Logged out")

    async def delete_account(self) -> None:
        """
        Delete the account remotely, then log out locally.

        The local logout happens whatever the remote outcome. A remote
        failure is logged and re-raised as ``SessionError`` afterwards.
        """
        failure: Optional[RDConnectError] = None
        try:
            await self.authorized_request(
                "DELETE", self.DELETE_PATH, error_fallback="Failed to delete account"
            )
        except RDConnectError as e:
            logger.error(f"Delete account failed: {e.message}")
            failure = e
        finally:
            self.logout()
        if failure is not None:
            raise SessionError(failure.message) from failure

    async def authorized_request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a bearer-authenticated request; only valid while AUTHENTICATED."""
        if not self.is_authenticated:
            raise NotAuthenticatedError()
        return await self.client.request(method, path, require_auth=True, **kwargs)
