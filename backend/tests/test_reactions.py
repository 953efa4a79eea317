"""Reaction toggling and aggregation."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models import Reaction
from app.services import membership
from app.services.reactions import aggregate_reactions, load_reactions, toggle_reaction
from app.services.messages import MessageTarget, append_message


@pytest.fixture()
def message_id(db_session, make_user):
    author = make_user("Author")
    channel = membership.create_channel(db_session, author.id, "general")
    return append_message(db_session, MessageTarget(channel_id=channel.id), author.id, "hello")


def _reaction_rows(db_session) -> int:
    return db_session.execute(select(func.count(Reaction.id))).scalar_one()


def test_toggle_is_an_involution(db_session, message_id, make_user):
    user = make_user("Reactor")

    assert toggle_reaction(db_session, message_id, user.id, "👍") == "added"
    assert _reaction_rows(db_session) == 1
    assert toggle_reaction(db_session, message_id, user.id, "👍") == "removed"
    assert _reaction_rows(db_session) == 0


def test_two_users_scenario(db_session, message_id, make_user):
    first = make_user("First")
    second = make_user("Second")

    toggle_reaction(db_session, message_id, first.id, "👍")
    toggle_reaction(db_session, message_id, second.id, "👍")
    summary = aggregate_reactions(load_reactions(db_session, [message_id])[message_id])
    assert [(item.emoji, item.count, item.user_ids) for item in summary] == [
        ("👍", 2, [first.id, second.id])
    ]

    toggle_reaction(db_session, message_id, first.id, "👍")
    summary = aggregate_reactions(load_reactions(db_session, [message_id])[message_id])
    assert [(item.emoji, item.count, item.user_ids) for item in summary] == [
        ("👍", 1, [second.id])
    ]


def test_toggle_validates_input(db_session, message_id, make_user):
    user = make_user("Reactor")
    with pytest.raises(ValidationError):
        toggle_reaction(db_session, message_id, user.id, "  ")
    with pytest.raises(NotFoundError):
        toggle_reaction(db_session, 9999, user.id, "👍")


def test_toggle_retries_after_concurrent_insert(db_session, message_id, make_user, monkeypatch):
    user = make_user("Reactor")
    original_commit = db_session.commit
    calls = {"count": 0}

    def flaky_commit():
        calls["count"] += 1
        if calls["count"] == 1:
            db_session.rollback()
            raise IntegrityError("INSERT INTO reactions", {}, Exception("duplicate"))
        return original_commit()

    monkeypatch.setattr(db_session, "commit", flaky_commit)

    assert toggle_reaction(db_session, message_id, user.id, "🔥") == "added"
    assert calls["count"] == 2


def test_toggle_gives_up_after_repeated_conflicts(db_session, message_id, make_user, monkeypatch):
    user = make_user("Reactor")

    def always_conflict():
        db_session.rollback()
        raise IntegrityError("INSERT INTO reactions", {}, Exception("duplicate"))

    monkeypatch.setattr(db_session, "commit", always_conflict)

    with pytest.raises(ConflictError):
        toggle_reaction(db_session, message_id, user.id, "🔥")


def test_aggregate_groups_in_first_reaction_order():
    rows = [
        SimpleNamespace(emoji="🎉", user_id=1),
        SimpleNamespace(emoji="👍", user_id=2),
        SimpleNamespace(emoji="🎉", user_id=3),
    ]
    summary = aggregate_reactions(rows, current_user_id=3)

    assert [item.emoji for item in summary] == ["🎉", "👍"]
    assert summary[0].count == 2
    assert summary[0].user_ids == [1, 3]
    assert summary[0].reacted is True
    assert summary[1].reacted is False


def test_aggregate_empty_rows():
    assert aggregate_reactions([]) == []
