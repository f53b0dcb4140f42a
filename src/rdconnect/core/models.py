"""Core domain models for accounts, sessions and collaboration requests."""

from datetime import datetime
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field, EmailStr


class CredentialPair(BaseModel):
    """Access/refresh token pair issued by the token endpoint."""

    access: str = Field(..., min_length=1, description="Short-lived bearer credential")
    refresh: str = Field(..., min_length=1, description="Credential exchanged only for a new access secret")

    model_config = {"frozen": True}

    def __repr__(self) -> str:
        return "CredentialPair(access='***', refresh='***')"

    __str__ = __repr__


class Identity(BaseModel):
    """Server-asserted profile of the current account."""

    id: int
    username: str
    email: str
    is_researcher: bool = False

    model_config = {"frozen": True}


class LoginData(BaseModel):
    username: str
    password: str


class RegisterData(BaseModel):
    username: str
    email: EmailStr
    password: str
    is_researcher: bool = False


class SessionState(str, Enum):
    """Lifecycle of the client session."""

    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    INVALID = "invalid"


class SessionSnapshot(BaseModel):
    """Immutable view of the session handed to subscribers."""

    state: SessionState
    identity: Optional[Identity] = None

    model_config = {"frozen": True}


class CollaborationStatus(str, Enum):
    """Collaboration request lifecycle; accepted and rejected are terminal."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not CollaborationStatus.PENDING


class CollaborationRequest(BaseModel):
    """A proposal from one account to a researcher account."""

    id: int
    from_user: int
    to_researcher: int
    message: str
    status: CollaborationStatus = CollaborationStatus.PENDING
    created_at: datetime

    # Display helpers some backend revisions include
    from_user_username: Optional[str] = None
    to_researcher_name: Optional[str] = None

    # Local flag for an optimistic write awaiting the server's answer
    pending_confirmation: bool = Field(False, exclude=True)


class CollaborationOverview(BaseModel):
    """Sent and received requests fetched together."""

    sent: List[CollaborationRequest] = Field(default_factory=list)
    received: List[CollaborationRequest] = Field(default_factory=list)

    @property
    def pending_received(self) -> int:
        return sum(1 for r in self.received if r.status is CollaborationStatus.PENDING)


class ResearchPaper(BaseModel):
    id: int
    file: str
    title: str
    uploaded_at: datetime


class ResearcherProfile(BaseModel):
    """Public researcher profile as listed in the directory."""

    id: int
    user: int
    full_name: str
    qualifications: str = ""
    institution: str = ""
    contact_email: str = ""
    bio: str = ""
    photo: Optional[str] = None
    research_papers: Optional[str] = None
    papers: List[ResearchPaper] = Field(default_factory=list)


class CreateProfileData(BaseModel):
    full_name: str = Field(..., min_length=1)
    qualifications: str
    institution: str
    contact_email: EmailStr
    bio: str
