"""Public researcher directory and researcher profile creation."""

import mimetypes
from pathlib import Path
from typing import List, Optional

from ..client.request_client import RequestClient
from ..core.models import CreateProfileData, ResearcherProfile
from ..exceptions import NotAuthorizedError
from ..session.manager import SessionManager
from ..utils.logging import get_logger

logger = get_logger(__name__)


class ResearcherDirectory:
    """Browse researcher profiles; researchers may publish their own."""

    BASE_PATH = "/api/papers/researcher"

    def __init__(self, client: RequestClient, session: SessionManager) -> None:
        self.client = client
        self.session = session

    async def list_researchers(self) -> List[ResearcherProfile]:
        payload = await self.client.request("GET", f"{self.BASE_PATH}/")
        if isinstance(payload, dict):
            payload = payload.get("results", [])
        return [ResearcherProfile.model_validate(item) for item in payload or []]

    async def get_researcher(self, researcher_id: int) -> ResearcherProfile:
        payload = await self.client.request("GET", f"{self.BASE_PATH}/{researcher_id}/")
        return ResearcherProfile.model_validate(payload)

    async def create_profile(
        self,
        data: CreateProfileData,
        photo: Optional[Path] = None,
    ) -> ResearcherProfile:
        """Publish the current researcher's profile as a multipart form."""
        if not self.session.is_researcher:
            raise NotAuthorizedError("Only researcher accounts can create a researcher profile")
        files = None
        if photo is not None:
            content_type = mimetypes.guess_type(photo.name)[0] or "application/octet-stream"
            files = {"photo": (photo.name, photo.read_bytes(), content_type)}
        payload = await self.session.authorized_request(
            "POST",
            f"{self.BASE_PATH}/create/",
            data=data.model_dump(mode="json"),
            files=files,
        )
        profile = ResearcherProfile.model_validate(payload)
        logger.info("Created researcher profile", extra={"profile_id": profile.id})
        return profile
