"""Shared fixtures: an in-process fake backend and wired client components."""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from rdconnect.client.request_client import RequestClient
from rdconnect.collab.workflow import CollaborationWorkflow
from rdconnect.core.models import CredentialPair
from rdconnect.io.credentials import CredentialStore
from rdconnect.session.manager import SessionManager

BASE_URL = "http://testserver"

# MockTransport awaits handlers that return a coroutine
Handler = Callable[[httpx.Request], Union[httpx.Response, Awaitable[httpx.Response]]]
Entry = Union[Tuple[int, Any, Optional[bytes]], Handler]


class FakeBackend:
    """Routes requests to canned responses and records every call.

    Responses registered for one route are served in order; the last one
    keeps being served once the others are used up.
    """

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], List[Entry]] = {}
        self.calls: List[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Any = None,
        content: Optional[bytes] = None,
    ) -> "FakeBackend":
        self.routes.setdefault((method, path), []).append((status, json, content))
        return self

    def add_handler(self, method: str, path: str, handler: Handler) -> "FakeBackend":
        self.routes.setdefault((method, path), []).append(handler)
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"detail": "Not found."})
        entry = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(entry):
            return entry(request)
        status, body, content = entry
        if content is not None:
            return httpx.Response(status, content=content)
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def count(self, method: str, path: str) -> int:
        return len(self.requests_to(method, path))

    def requests_to(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.calls if r.method == method and r.url.path == path]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def store(tmp_path):
    credential_store = CredentialStore(tmp_path / "credentials.db")
    yield credential_store
    credential_store.close()


@pytest.fixture
def request_client(backend, store) -> RequestClient:
    return RequestClient(BASE_URL, store, transport=backend.transport)


@pytest.fixture
def session(request_client, store) -> SessionManager:
    return SessionManager(request_client, store)


@pytest.fixture
def workflow(session) -> CollaborationWorkflow:
    return CollaborationWorkflow(session)


@pytest.fixture
def sign_in(backend, store, session):
    """Return a coroutine that boots ``session`` as the given identity."""

    async def _sign_in(identity: Dict[str, Any], access: str = "A1", refresh: str = "R1") -> SessionManager:
        store.save_pair(CredentialPair(access=access, refresh=refresh))
        backend.add("GET", "/api/auth/me/", json=identity)
        await session.boot()
        return session

    return _sign_in
