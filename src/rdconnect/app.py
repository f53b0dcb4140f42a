"""Client application wiring."""

from typing import Optional
import httpx

from .client.request_client import RequestClient
from .collab.workflow import CollaborationWorkflow
from .config.settings import Settings, settings as default_settings
from .io.credentials import CredentialStore
from .io.paths import get_state_path
from .researchers.directory import ResearcherDirectory
from .session.manager import SessionManager


class ConnectApp:
    """
    Compose the credential store, request client, session and workflows.

    Entering the async context boots the session from stored credentials:

        >>> async with ConnectApp() as app:
        ...     if app.session.is_authenticated:
        ...         overview = await app.collaboration.refresh()
    """

    CREDENTIALS_FILE = "credentials.db"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[CredentialStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or default_settings
        self.store = store or CredentialStore(
            get_state_path(self.CREDENTIALS_FILE, self.settings.state_dir)
        )
        self.client = RequestClient(
            self.settings.api_base_url,
            self.store,
            timeout=self.settings.request_timeout,
            transport=transport,
        )
        self.session = SessionManager(self.client, self.store)
        self.collaboration = CollaborationWorkflow(self.session)
        self.researchers = ResearcherDirectory(self.client, self.session)

    async def close(self) -> None:
        await self.client.close()
        self.store.close()

    async def __aenter__(self) -> "ConnectApp":
        await self.session.boot()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
