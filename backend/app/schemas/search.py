"""Schemas for global search results."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.schemas.channels import ChannelRead
from app.schemas.messages import MessageRead
from app.schemas.users import PublicUser


class SearchResults(BaseModel):
    messages: list[MessageRead] = Field(default_factory=list)
    channels: list[ChannelRead] = Field(default_factory=list)
    users: list[PublicUser] = Field(default_factory=list)
