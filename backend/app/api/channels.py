"""Channel-specific API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.database import get_db
from app.models import User
from app.schemas import (
    ChannelCreate,
    ChannelCreated,
    ChannelListItem,
    ChannelMemberAdd,
    ChannelMemberRead,
    ChannelRead,
    SuccessResponse,
)
from app.services import membership
from app.services.feed import public_user
from app.services.unread import count_unread

router = APIRouter(prefix="/channels", tags=["channels"])


@router.get("", response_model=list[ChannelListItem])
def list_channels(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[ChannelListItem]:
    """Return visible, non-archived channels."""

    return [
        ChannelListItem.model_validate(channel, from_attributes=True).model_copy(
            update={"is_member": is_member}
        )
        for channel, is_member in membership.list_channels(db, current_user.id)
    ]


@router.post("", response_model=ChannelCreated, status_code=status.HTTP_201_CREATED)
def create_channel(
    payload: ChannelCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ChannelCreated:
    channel = membership.create_channel(
        db,
        current_user.id,
        payload.name,
        description=payload.description,
        visibility=payload.visibility,
    )
    return ChannelCreated(id=channel.id)


@router.get("/unread", response_model=dict[int, int])
def read_unread_counts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[int, int]:
    """Unread top-level message counts for every joined channel."""

    return count_unread(db, current_user.id)


@router.get("/{channel_id}", response_model=ChannelRead)
def read_channel(
    channel_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ChannelRead:
    channel = membership.get_channel(db, channel_id)
    membership.ensure_channel_access(db, channel, current_user.id)
    return ChannelRead.model_validate(channel)


@router.post("/{channel_id}/join", response_model=SuccessResponse)
def join_channel(
    channel_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SuccessResponse:
    membership.join_channel(db, channel_id, current_user.id)
    return SuccessResponse()


@router.post("/{channel_id}/leave", response_model=SuccessResponse)
def leave_channel(
    channel_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SuccessResponse:
    membership.leave_channel(db, channel_id, current_user.id)
    return SuccessResponse()


@router.post("/{channel_id}/members", response_model=SuccessResponse)
def add_member(
    channel_id: int,
    payload: ChannelMemberAdd,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SuccessResponse:
    membership.add_channel_member(db, channel_id, current_user.id, payload.user_id)
    return SuccessResponse()


@router.get("/{channel_id}/members", response_model=list[ChannelMemberRead])
def list_members(
    channel_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[ChannelMemberRead]:
    channel = membership.get_channel(db, channel_id)
    membership.ensure_channel_access(db, channel, current_user.id)
    return [
        ChannelMemberRead(
            user_id=member.user_id,
            role=member.role,
            joined_at=member.joined_at,
            user=public_user(member.user) if member.user is not None else None,
        )
        for member in membership.list_channel_members(db, channel.id)
    ]


@router.post("/{channel_id}/archive", response_model=ChannelRead)
def archive_channel(
    channel_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ChannelRead:
    channel = membership.archive_channel(db, channel_id, current_user.id)
    return ChannelRead.model_validate(channel)


@router.post("/{channel_id}/read", response_model=SuccessResponse)
def mark_read(
    channel_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SuccessResponse:
    membership.mark_channel_read(db, channel_id, current_user.id)
    return SuccessResponse()
