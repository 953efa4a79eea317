"""Direct message and group conversation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.database import get_db
from app.models import User
from app.schemas import (
    ConversationCreated,
    ConversationRead,
    DirectConversationRequest,
    GroupConversationCreate,
    LastMessagePreview,
    SuccessResponse,
)
from app.services import membership
from app.services.feed import public_user
from app.services.unread import count_unread_conversations

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.post("/dm", response_model=ConversationCreated)
def open_direct_conversation(
    payload: DirectConversationRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ConversationCreated:
    """Find or create the 1:1 conversation with another user."""

    conversation_id = membership.find_or_create_dm(db, current_user.id, payload.user_id)
    return ConversationCreated(id=conversation_id)


@router.post("", response_model=ConversationCreated, status_code=status.HTTP_201_CREATED)
def create_group_conversation(
    payload: GroupConversationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ConversationCreated:
    conversation = membership.create_group_conversation(
        db, current_user.id, payload.participant_ids, name=payload.name
    )
    return ConversationCreated(id=conversation.id)


@router.get("", response_model=list[ConversationRead])
def list_conversations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[ConversationRead]:
    """Return the caller's conversations, most recently active first."""

    conversations = membership.list_user_conversations(db, current_user.id)
    latest = membership.last_messages(db, [conversation.id for conversation in conversations])

    results: list[ConversationRead] = []
    for conversation in conversations:
        others = [
            public_user(participant.user)
            for participant in conversation.participants
            if participant.user_id != current_user.id and participant.user is not None
        ]
        last = latest.get(conversation.id)
        results.append(
            ConversationRead(
                id=conversation.id,
                type=conversation.type,
                name=conversation.name,
                participants=others,
                last_message=(
                    LastMessagePreview(
                        id=last.id,
                        user_id=last.user_id,
                        content=last.content,
                        created_at=last.created_at,
                    )
                    if last is not None
                    else None
                ),
                updated_at=conversation.updated_at,
            )
        )
    return results


@router.get("/unread", response_model=dict[int, int])
def read_unread_counts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[int, int]:
    return count_unread_conversations(db, current_user.id)


@router.post("/{conversation_id}/read", response_model=SuccessResponse)
def mark_read(
    conversation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SuccessResponse:
    membership.mark_conversation_read(db, conversation_id, current_user.id)
    return SuccessResponse()
