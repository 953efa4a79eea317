"""User directory and presence endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.database import get_db
from app.models import User
from app.schemas import PresenceUpdate, PublicUser, StatusUpdate, SuccessResponse, UserRead
from app.services import membership

router = APIRouter(prefix="/users", tags=["users"])


def _serialize_user(user: User) -> UserRead:
    return UserRead(
        id=user.id,
        name=user.name,
        avatar_url=user.avatar_url,
        presence=membership.effective_presence(user),
        email=user.email,
        status=user.status,
        status_emoji=user.status_emoji,
        last_seen_at=user.last_seen_at,
    )


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: User = Depends(get_current_user)) -> UserRead:
    return _serialize_user(current_user)


@router.get("", response_model=list[PublicUser])
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[PublicUser]:
    """Return every workspace user with their effective presence."""

    return [
        PublicUser(
            id=user.id,
            name=user.name,
            avatar_url=user.avatar_url,
            presence=membership.effective_presence(user),
        )
        for user in membership.list_users(db)
    ]


@router.post("/me/presence", response_model=SuccessResponse)
def update_presence(
    payload: PresenceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SuccessResponse:
    membership.update_presence(db, current_user.id, payload.presence)
    return SuccessResponse()


@router.post("/me/heartbeat", response_model=SuccessResponse)
def heartbeat(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SuccessResponse:
    membership.heartbeat(db, current_user.id)
    return SuccessResponse()


@router.put("/me/status", response_model=UserRead)
def update_status(
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserRead:
    membership.update_status(db, current_user.id, payload.status, payload.status_emoji)
    db.refresh(current_user)
    return _serialize_user(current_user)
