"""Identity and membership store: users, channel memberships, conversations."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.config import get_settings
from app.core.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from app.core.slug import normalize_channel_name
from app.models import (
    Channel,
    ChannelMembership,
    ChannelVisibility,
    Conversation,
    ConversationParticipant,
    ConversationType,
    MemberRole,
    Message,
    PresenceStatus,
    User,
    utcnow,
)

logger = logging.getLogger(__name__)

MANAGER_ROLES: frozenset[MemberRole] = frozenset({MemberRole.OWNER, MemberRole.ADMIN})


# Users -----------------------------------------------------------------


def upsert_user(
    db: Session,
    open_id: str,
    *,
    name: str | None = None,
    email: str | None = None,
    avatar_url: str | None = None,
) -> User:
    """Register or refresh a user record supplied by the identity provider."""

    if not open_id:
        raise ValidationError("User open_id is required")

    user = db.execute(select(User).where(User.open_id == open_id)).scalar_one_or_none()
    if user is None:
        user = User(open_id=open_id, name=name, email=email, avatar_url=avatar_url)
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            user = db.execute(select(User).where(User.open_id == open_id)).scalar_one()
        else:
            return user

    if name is not None:
        user.name = name
    if email is not None:
        user.email = email
    if avatar_url is not None:
        user.avatar_url = avatar_url
    user.last_seen_at = utcnow()
    db.commit()
    return user


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def effective_presence(user: User) -> PresenceStatus:
    """Stored presence, downgraded to offline once heartbeats have stopped."""

    last_seen = user.last_seen_at
    if last_seen is None:
        return PresenceStatus.OFFLINE
    if last_seen.tzinfo is None:
        last_seen = last_seen.replace(tzinfo=utcnow().tzinfo)
    timeout = timedelta(seconds=get_settings().presence_timeout_seconds)
    if utcnow() - last_seen > timeout:
        return PresenceStatus.OFFLINE
    return user.presence


def list_users(db: Session) -> list[User]:
    stmt = select(User).order_by(User.name.asc(), User.id.asc())
    return list(db.execute(stmt).scalars())


def update_presence(db: Session, user_id: int, presence: PresenceStatus) -> None:
    result = db.execute(
        update(User)
        .where(User.id == user_id)
        .values(presence=presence, last_seen_at=utcnow())
    )
    if result.rowcount == 0:
        db.rollback()
        raise NotFoundError("User not found")
    db.commit()


def heartbeat(db: Session, user_id: int) -> None:
    update_presence(db, user_id, PresenceStatus.ONLINE)


def update_status(db: Session, user_id: int, status: str, status_emoji: str) -> None:
    if len(status) > 255 or len(status_emoji) > 32:
        raise ValidationError("Status is too long")
    user = get_user(db, user_id)
    user.status = status
    user.status_emoji = status_emoji
    db.commit()


# Channels --------------------------------------------------------------


def create_channel(
    db: Session,
    creator_id: int,
    name: str,
    *,
    description: str | None = None,
    visibility: ChannelVisibility = ChannelVisibility.PUBLIC,
) -> Channel:
    """Create a channel; the creator joins as owner in the same transaction."""

    normalized = normalize_channel_name(name)
    if not normalized:
        raise ValidationError("Channel name is required")

    channel = Channel(
        name=normalized,
        description=description,
        visibility=visibility,
        created_by_id=creator_id,
    )
    channel.members = [ChannelMembership(user_id=creator_id, role=MemberRole.OWNER)]
    db.add(channel)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(f"Channel #{normalized} already exists") from exc
    logger.debug("Channel %s created by user %s", channel.id, creator_id)
    return channel


def get_channel(db: Session, channel_id: int) -> Channel:
    channel = db.get(Channel, channel_id)
    if channel is None:
        raise NotFoundError("Channel not found")
    return channel


def get_membership(db: Session, channel_id: int, user_id: int) -> ChannelMembership | None:
    stmt = select(ChannelMembership).where(
        ChannelMembership.channel_id == channel_id,
        ChannelMembership.user_id == user_id,
    )
    return db.execute(stmt).scalar_one_or_none()


def is_channel_member(db: Session, channel_id: int, user_id: int) -> bool:
    return get_membership(db, channel_id, user_id) is not None


def ensure_channel_access(db: Session, channel: Channel, user_id: int) -> None:
    """Public channels are readable by everyone; private ones by members only."""

    if channel.is_private and not is_channel_member(db, channel.id, user_id):
        raise PermissionDeniedError("Channel is private")


def list_channels(db: Session, user_id: int) -> list[tuple[Channel, bool]]:
    """Visible, non-archived channels paired with the caller's membership flag."""

    member_ids = set(
        db.execute(
            select(ChannelMembership.channel_id).where(ChannelMembership.user_id == user_id)
        ).scalars()
    )
    stmt = (
        select(Channel)
        .where(Channel.is_archived.is_(False))
        .order_by(Channel.name.asc())
    )
    visible: list[tuple[Channel, bool]] = []
    for channel in db.execute(stmt).scalars():
        is_member = channel.id in member_ids
        if channel.visibility == ChannelVisibility.PUBLIC or is_member:
            visible.append((channel, is_member))
    return visible


def _insert_membership(
    db: Session, channel_id: int, user_id: int, role: MemberRole = MemberRole.MEMBER
) -> None:
    if is_channel_member(db, channel_id, user_id):
        return
    db.add(ChannelMembership(channel_id=channel_id, user_id=user_id, role=role))
    try:
        db.commit()
    except IntegrityError:
        # A concurrent join won; the membership exists either way.
        db.rollback()
        logger.debug("Membership for user %s in channel %s already created", user_id, channel_id)


def join_channel(db: Session, channel_id: int, user_id: int) -> None:
    channel = get_channel(db, channel_id)
    if channel.is_private and not is_channel_member(db, channel.id, user_id):
        raise PermissionDeniedError("Private channels require an invitation")
    _insert_membership(db, channel.id, user_id)


def add_channel_member(db: Session, channel_id: int, actor_id: int, user_id: int) -> None:
    channel = get_channel(db, channel_id)
    actor = get_membership(db, channel.id, actor_id)
    if actor is None or actor.role not in MANAGER_ROLES:
        raise PermissionDeniedError("Only channel owners and admins can add members")
    get_user(db, user_id)
    _insert_membership(db, channel.id, user_id)


def leave_channel(db: Session, channel_id: int, user_id: int) -> None:
    db.execute(
        delete(ChannelMembership).where(
            ChannelMembership.channel_id == channel_id,
            ChannelMembership.user_id == user_id,
        )
    )
    db.commit()


def list_channel_members(db: Session, channel_id: int) -> list[ChannelMembership]:
    get_channel(db, channel_id)
    stmt = (
        select(ChannelMembership)
        .where(ChannelMembership.channel_id == channel_id)
        .order_by(ChannelMembership.joined_at.asc(), ChannelMembership.id.asc())
        .options(selectinload(ChannelMembership.user))
    )
    return list(db.execute(stmt).scalars())


def archive_channel(db: Session, channel_id: int, actor_id: int) -> Channel:
    channel = get_channel(db, channel_id)
    membership = get_membership(db, channel.id, actor_id)
    if membership is None or membership.role not in MANAGER_ROLES:
        raise PermissionDeniedError("Only channel owners and admins can archive")
    channel.is_archived = True
    db.commit()
    return channel


def mark_channel_read(db: Session, channel_id: int, user_id: int) -> None:
    """Advance the member's read cursor to now; it is never rewound."""

    now = utcnow()
    result = db.execute(
        update(ChannelMembership)
        .where(
            ChannelMembership.channel_id == channel_id,
            ChannelMembership.user_id == user_id,
            ChannelMembership.last_read_at < now,
        )
        .values(last_read_at=now)
    )
    if result.rowcount == 0 and not is_channel_member(db, channel_id, user_id):
        db.rollback()
        raise NotFoundError("Not a member of this channel")
    db.commit()


# Conversations ---------------------------------------------------------


def _normalize_pair(user_id: int, other_id: int) -> tuple[int, int]:
    return (user_id, other_id) if user_id < other_id else (other_id, user_id)


def _find_dm(db: Session, user_a_id: int, user_b_id: int) -> int | None:
    stmt = select(Conversation.id).where(
        Conversation.type == ConversationType.DM,
        Conversation.user_a_id == user_a_id,
        Conversation.user_b_id == user_b_id,
    )
    return db.execute(stmt).scalar_one_or_none()


def find_or_create_dm(db: Session, user_id: int, other_id: int) -> int:
    """Return the 1:1 conversation for the unordered pair, creating it once."""

    get_user(db, other_id)
    user_a_id, user_b_id = _normalize_pair(user_id, other_id)
    existing = _find_dm(db, user_a_id, user_b_id)
    if existing is not None:
        return existing

    conversation = Conversation(type=ConversationType.DM, user_a_id=user_a_id, user_b_id=user_b_id)
    conversation.participants = [
        ConversationParticipant(user_id=participant_id)
        for participant_id in sorted({user_a_id, user_b_id})
    ]
    db.add(conversation)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = _find_dm(db, user_a_id, user_b_id)
        if existing is None:
            raise
        logger.debug("DM for %s/%s created concurrently; reusing %s", user_a_id, user_b_id, existing)
        return existing
    return conversation.id


def create_group_conversation(
    db: Session, creator_id: int, participant_ids: Iterable[int], name: str | None = None
) -> Conversation:
    all_participants = sorted({*participant_ids, creator_id})
    if len(all_participants) < 2:
        raise ValidationError("A group needs at least one other participant")

    existing_ids = set(db.execute(select(User.id).where(User.id.in_(all_participants))).scalars())
    if set(all_participants) - existing_ids:
        raise NotFoundError("Some users were not found")

    conversation = Conversation(type=ConversationType.GROUP, name=name)
    conversation.participants = [
        ConversationParticipant(user_id=participant_id) for participant_id in all_participants
    ]
    db.add(conversation)
    db.commit()
    return conversation


def get_conversation(db: Session, conversation_id: int) -> Conversation:
    stmt = (
        select(Conversation)
        .where(Conversation.id == conversation_id)
        .options(selectinload(Conversation.participants))
    )
    conversation = db.execute(stmt).scalar_one_or_none()
    if conversation is None:
        raise NotFoundError("Conversation not found")
    return conversation


def ensure_participant(db: Session, conversation_id: int, user_id: int) -> ConversationParticipant:
    conversation = get_conversation(db, conversation_id)
    participant = next(
        (item for item in conversation.participants if item.user_id == user_id),
        None,
    )
    if participant is None:
        raise PermissionDeniedError("Not a participant of this conversation")
    return participant


def list_user_conversations(db: Session, user_id: int) -> list[Conversation]:
    stmt = (
        select(Conversation)
        .join(ConversationParticipant)
        .where(ConversationParticipant.user_id == user_id)
        .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        .options(
            selectinload(Conversation.participants).selectinload(ConversationParticipant.user)
        )
    )
    return list(db.execute(stmt).scalars().unique())


def last_messages(db: Session, conversation_ids: Iterable[int]) -> dict[int, Message]:
    """Latest top-level or reply message per conversation."""

    ids = list(conversation_ids)
    if not ids:
        return {}
    latest = (
        select(Message.conversation_id, func.max(Message.id).label("max_id"))
        .where(Message.conversation_id.in_(ids))
        .group_by(Message.conversation_id)
        .subquery()
    )
    stmt = select(Message).join(latest, Message.id == latest.c.max_id)
    return {message.conversation_id: message for message in db.execute(stmt).scalars()}


def mark_conversation_read(db: Session, conversation_id: int, user_id: int) -> None:
    now = utcnow()
    result = db.execute(
        update(ConversationParticipant)
        .where(
            ConversationParticipant.conversation_id == conversation_id,
            ConversationParticipant.user_id == user_id,
            ConversationParticipant.last_read_at < now,
        )
        .values(last_read_at=now)
    )
    if result.rowcount == 0:
        exists = db.execute(
            select(ConversationParticipant.id).where(
                ConversationParticipant.conversation_id == conversation_id,
                ConversationParticipant.user_id == user_id,
            )
        ).scalar_one_or_none()
        if exists is None:
            db.rollback()
            raise NotFoundError("Not a participant of this conversation")
    db.commit()


def visible_channel_ids(user_id: int):
    """Select statement of channel ids readable by the user."""

    member_channels = select(ChannelMembership.channel_id).where(
        ChannelMembership.user_id == user_id
    )
    return select(Channel.id).where(
        or_(
            Channel.visibility == ChannelVisibility.PUBLIC,
            Channel.id.in_(member_channels),
        )
    )
