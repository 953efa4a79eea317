"""Unit tests for channel membership and user presence logic."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from app.core.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from app.models import ChannelMembership, ChannelVisibility, MemberRole, PresenceStatus, utcnow
from app.services import membership


@pytest.fixture()
def owner(make_user):
    return make_user("Owner")


def _member_count(db_session, channel_id: int) -> int:
    return db_session.execute(
        select(func.count(ChannelMembership.id)).where(ChannelMembership.channel_id == channel_id)
    ).scalar_one()


def test_create_channel_normalizes_name_and_adds_owner(db_session, owner):
    channel = membership.create_channel(db_session, owner.id, "  Release Planning ")

    assert channel.name == "release-planning"
    members = membership.list_channel_members(db_session, channel.id)
    assert [(member.user_id, member.role) for member in members] == [(owner.id, MemberRole.OWNER)]


def test_create_channel_rejects_duplicates_and_empty_names(db_session, owner):
    membership.create_channel(db_session, owner.id, "general")
    with pytest.raises(ConflictError):
        membership.create_channel(db_session, owner.id, "General")
    with pytest.raises(ValidationError):
        membership.create_channel(db_session, owner.id, "!!!")


def test_join_is_idempotent(db_session, owner, make_user):
    channel = membership.create_channel(db_session, owner.id, "general")
    joiner = make_user("Joiner")

    membership.join_channel(db_session, channel.id, joiner.id)
    membership.join_channel(db_session, channel.id, joiner.id)

    assert _member_count(db_session, channel.id) == 2


def test_private_channel_requires_invitation(db_session, owner, make_user):
    channel = membership.create_channel(
        db_session, owner.id, "secret", visibility=ChannelVisibility.PRIVATE
    )
    guest = make_user("Guest")

    with pytest.raises(PermissionDeniedError):
        membership.join_channel(db_session, channel.id, guest.id)
    with pytest.raises(PermissionDeniedError):
        membership.ensure_channel_access(db_session, channel, guest.id)

    membership.add_channel_member(db_session, channel.id, owner.id, guest.id)
    membership.ensure_channel_access(db_session, channel, guest.id)


def test_only_managers_add_members(db_session, owner, make_user):
    channel = membership.create_channel(db_session, owner.id, "general")
    member = make_user("Member")
    other = make_user("Other")
    membership.join_channel(db_session, channel.id, member.id)

    with pytest.raises(PermissionDeniedError):
        membership.add_channel_member(db_session, channel.id, member.id, other.id)


def test_list_channels_hides_archived_and_foreign_private(db_session, owner, make_user):
    viewer = make_user("Viewer")
    public = membership.create_channel(db_session, owner.id, "public")
    membership.create_channel(db_session, owner.id, "hidden", visibility=ChannelVisibility.PRIVATE)
    archived = membership.create_channel(db_session, owner.id, "old")
    membership.archive_channel(db_session, archived.id, owner.id)
    membership.join_channel(db_session, public.id, viewer.id)

    listed = [(channel.name, is_member) for channel, is_member in membership.list_channels(db_session, viewer.id)]
    assert listed == [("public", True)]


def test_archive_requires_manager(db_session, owner, make_user):
    channel = membership.create_channel(db_session, owner.id, "general")
    member = make_user("Member")
    membership.join_channel(db_session, channel.id, member.id)

    with pytest.raises(PermissionDeniedError):
        membership.archive_channel(db_session, channel.id, member.id)


def test_leave_channel_removes_membership(db_session, owner, make_user):
    channel = membership.create_channel(db_session, owner.id, "general")
    member = make_user("Member")
    membership.join_channel(db_session, channel.id, member.id)

    membership.leave_channel(db_session, channel.id, member.id)

    assert not membership.is_channel_member(db_session, channel.id, member.id)


def test_get_channel_missing(db_session):
    with pytest.raises(NotFoundError):
        membership.get_channel(db_session, 404)


def test_upsert_user_creates_then_refreshes(db_session):
    created = membership.upsert_user(db_session, "idp-1", name="Ada")
    refreshed = membership.upsert_user(db_session, "idp-1", email="ada@example.com")

    assert created.id == refreshed.id
    assert refreshed.name == "Ada"
    assert refreshed.email == "ada@example.com"


def test_heartbeat_and_presence_timeout(db_session, make_user):
    user = make_user("Sleepy")
    membership.heartbeat(db_session, user.id)
    fresh = membership.get_user(db_session, user.id)
    assert membership.effective_presence(fresh) == PresenceStatus.ONLINE

    fresh.last_seen_at = utcnow() - timedelta(hours=1)
    db_session.commit()
    assert membership.effective_presence(fresh) == PresenceStatus.OFFLINE


def test_update_status_validates_length(db_session, make_user):
    user = make_user("Chatty")
    membership.update_status(db_session, user.id, "In a meeting", "📅")
    assert membership.get_user(db_session, user.id).status == "In a meeting"

    with pytest.raises(ValidationError):
        membership.update_status(db_session, user.id, "x" * 256, "")
