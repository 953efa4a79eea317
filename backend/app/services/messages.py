"""Append-only message store with one-level threads and cursor reads."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import Select, select, update
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from app.models import Conversation, Message, MessageType, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MessageTarget:
    """Exactly one of a channel or a conversation."""

    channel_id: int | None = None
    conversation_id: int | None = None

    def __post_init__(self) -> None:
        if (self.channel_id is None) == (self.conversation_id is None):
            raise ValidationError("Provide exactly one of channel_id or conversation_id")

    def matches(self, message: Message) -> bool:
        return (
            message.channel_id == self.channel_id
            and message.conversation_id == self.conversation_id
        )

    def filter(self, stmt: Select) -> Select:
        if self.channel_id is not None:
            return stmt.where(Message.channel_id == self.channel_id)
        return stmt.where(Message.conversation_id == self.conversation_id)


@dataclass(frozen=True, slots=True)
class Attachment:
    url: str
    name: str
    mime_type: str = "application/octet-stream"
    size: int | None = None


def _clean_content(content: str, attachment: Attachment | None) -> str:
    cleaned = (content or "").rstrip()
    if not cleaned:
        if attachment is None:
            raise ValidationError("Message content is required")
        cleaned = attachment.name
    if len(cleaned) > get_settings().chat_message_max_length:
        raise ValidationError("Message is too long")
    return cleaned


def get_message(db: Session, message_id: int) -> Message:
    message = db.get(Message, message_id)
    if message is None:
        raise NotFoundError("Message not found")
    return message


def _resolve_parent(db: Session, target: MessageTarget, parent_id: int) -> Message:
    parent = db.get(Message, parent_id)
    if parent is None:
        raise NotFoundError("Parent message not found")
    if not target.matches(parent):
        raise ValidationError("Parent message belongs to another channel or conversation")
    if parent.parent_id is not None:
        # Threads are one level deep; replies to replies attach to the root.
        root = db.get(Message, parent.parent_id)
        if root is None:
            raise NotFoundError("Thread root not found")
        return root
    return parent


def append_message(
    db: Session,
    target: MessageTarget,
    author_id: int,
    content: str,
    parent_id: int | None = None,
    attachment: Attachment | None = None,
) -> int:
    """Persist a message and return its id.

    A reply increments the parent's ``reply_count`` in the same transaction,
    so a failure leaves neither the message nor the counter change behind.
    """

    cleaned = _clean_content(content, attachment)
    parent: Message | None = None
    if parent_id is not None:
        parent = _resolve_parent(db, target, parent_id)

    now = utcnow()
    message = Message(
        channel_id=target.channel_id,
        conversation_id=target.conversation_id,
        user_id=author_id,
        parent_id=parent.id if parent is not None else None,
        content=cleaned,
        type=MessageType.FILE if attachment is not None else MessageType.TEXT,
        created_at=now,
        updated_at=now,
    )
    if attachment is not None:
        message.file_url = attachment.url
        message.file_name = attachment.name
        message.file_mime_type = attachment.mime_type
        message.file_size = attachment.size

    try:
        db.add(message)
        db.flush()
        if parent is not None:
            db.execute(
                update(Message)
                .where(Message.id == parent.id)
                .values(reply_count=Message.reply_count + 1)
                .execution_options(synchronize_session=False)
            )
        if target.conversation_id is not None:
            db.execute(
                update(Conversation)
                .where(Conversation.id == target.conversation_id)
                .values(updated_at=now)
                .execution_options(synchronize_session=False)
            )
        db.commit()
    except Exception:
        db.rollback()
        raise

    if parent is not None:
        db.expire(parent, ["reply_count"])
    logger.debug("Message %s appended by user %s", message.id, author_id)
    return message.id


def _top_level(target: MessageTarget) -> Select:
    return target.filter(select(Message).where(Message.parent_id.is_(None)))


def get_page(
    db: Session, target: MessageTarget, limit: int = 50, before: int | None = None
) -> list[Message]:
    """Most recent top-level messages, returned oldest-first."""

    if limit <= 0:
        return []
    stmt = _top_level(target)
    if before is not None:
        stmt = stmt.where(Message.id < before)
    stmt = stmt.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit)
    messages = list(db.execute(stmt).scalars())
    messages.reverse()
    return messages


def get_new_since(db: Session, target: MessageTarget, after_id: int) -> list[Message]:
    stmt = _top_level(target).where(Message.id > after_id).order_by(Message.id.asc())
    return list(db.execute(stmt).scalars())


def get_thread(db: Session, parent_id: int) -> list[Message]:
    """The parent followed by its replies, or an empty list."""

    parent = db.get(Message, parent_id)
    if parent is None:
        return []
    stmt = (
        select(Message)
        .where(Message.parent_id == parent.id)
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    return [parent, *db.execute(stmt).scalars()]


def edit_message(db: Session, message_id: int, editor_id: int, content: str) -> Message:
    message = get_message(db, message_id)
    if message.user_id != editor_id:
        raise PermissionDeniedError("Only the author can edit a message")

    attachment = None
    if message.file_url is not None:
        attachment = Attachment(url=message.file_url, name=message.file_name or "")
    message.content = _clean_content(content, attachment)
    message.is_edited = True
    db.commit()
    return message


def find_attachment_message(db: Session, file_url: str) -> Message | None:
    """The earliest message carrying ``file_url`` as its attachment."""

    stmt = select(Message).where(Message.file_url == file_url).order_by(Message.id.asc()).limit(1)
    return db.execute(stmt).scalars().first()
