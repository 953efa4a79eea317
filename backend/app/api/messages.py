"""Message feed endpoints: send, page, poll, threads, edits and reactions."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, require_post_access, require_read_access
from app.config import get_settings
from app.database import get_db
from app.models import User
from app.schemas import (
    MessageCreate,
    MessageCreated,
    MessageRead,
    MessageUpdate,
    ReactionRequest,
    ReactionToggleResult,
)
from app.services import messages as message_store
from app.services.feed import enrich_messages
from app.services.messages import Attachment, MessageTarget
from app.services.reactions import toggle_reaction

router = APIRouter(prefix="/messages", tags=["messages"])

settings = get_settings()


def _target_of(message) -> MessageTarget:
    return MessageTarget(channel_id=message.channel_id, conversation_id=message.conversation_id)


@router.post("", response_model=MessageCreated, status_code=status.HTTP_201_CREATED)
def send_message(
    payload: MessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageCreated:
    """Append a message to a channel or conversation."""

    target = MessageTarget(channel_id=payload.channel_id, conversation_id=payload.conversation_id)
    require_post_access(target, current_user.id, db)

    attachment = None
    if payload.attachment is not None:
        attachment = Attachment(
            url=payload.attachment.url,
            name=payload.attachment.name,
            mime_type=payload.attachment.mime_type,
            size=payload.attachment.size,
        )
    message_id = message_store.append_message(
        db,
        target,
        current_user.id,
        payload.content,
        parent_id=payload.parent_id,
        attachment=attachment,
    )
    return MessageCreated(id=message_id)


@router.get("", response_model=list[MessageRead])
def read_page(
    channel_id: int | None = Query(default=None),
    conversation_id: int | None = Query(default=None),
    limit: int = Query(default=settings.chat_history_default_limit, ge=1),
    before: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[MessageRead]:
    """Return one page of top-level history, oldest message first."""

    target = MessageTarget(channel_id=channel_id, conversation_id=conversation_id)
    require_read_access(target, current_user.id, db)
    effective_limit = min(limit, settings.chat_history_max_limit)
    page = message_store.get_page(db, target, limit=effective_limit, before=before)
    return enrich_messages(db, page, current_user.id)


@router.get("/poll", response_model=list[MessageRead])
def poll_messages(
    channel_id: int | None = Query(default=None),
    conversation_id: int | None = Query(default=None),
    after: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[MessageRead]:
    """Return top-level messages newer than ``after``."""

    target = MessageTarget(channel_id=channel_id, conversation_id=conversation_id)
    require_read_access(target, current_user.id, db)
    batch = message_store.get_new_since(db, target, after)
    return enrich_messages(db, batch, current_user.id)


@router.get("/{message_id}/thread", response_model=list[MessageRead])
def read_thread(
    message_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[MessageRead]:
    """Return a thread including the root message and all replies."""

    thread = message_store.get_thread(db, message_id)
    if thread:
        require_read_access(_target_of(thread[0]), current_user.id, db)
    return enrich_messages(db, thread, current_user.id)


@router.patch("/{message_id}", response_model=MessageRead)
def edit_message(
    message_id: int,
    payload: MessageUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageRead:
    message = message_store.edit_message(db, message_id, current_user.id, payload.content)
    return enrich_messages(db, [message], current_user.id)[0]


@router.post("/{message_id}/reactions", response_model=ReactionToggleResult)
def toggle_message_reaction(
    message_id: int,
    payload: ReactionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ReactionToggleResult:
    """Add the reaction if the caller has not reacted with it yet, otherwise remove it."""

    message = message_store.get_message(db, message_id)
    require_read_access(_target_of(message), current_user.id, db)
    action = toggle_reaction(db, message.id, current_user.id, payload.emoji)
    return ReactionToggleResult(action=action)
