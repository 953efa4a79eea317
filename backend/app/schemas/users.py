"""Schemas related to users and presence."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, constr

from app.models.enums import PresenceStatus


class PublicUser(BaseModel):
    """Minimal public-facing user information."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str | None = None
    avatar_url: str | None = None
    presence: PresenceStatus = PresenceStatus.OFFLINE


class UserRead(PublicUser):
    """Detailed representation of a user profile."""

    email: str | None = None
    status: str = ""
    status_emoji: str = ""
    last_seen_at: datetime | None = None


class PresenceUpdate(BaseModel):
    """Payload for an explicit presence change."""

    presence: PresenceStatus


class StatusUpdate(BaseModel):
    """Payload for the free-text status line."""

    status: constr(strip_whitespace=True, max_length=255) = ""
    status_emoji: constr(strip_whitespace=True, max_length=32) = ""


class SuccessResponse(BaseModel):
    """Acknowledgement returned by mutations without a payload."""

    success: bool = Field(default=True)
