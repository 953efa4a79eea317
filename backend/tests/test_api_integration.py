"""Integration tests exercising API endpoints via FastAPI's TestClient."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Any

from fastapi.testclient import TestClient

from app.config import get_settings
from app.core.errors import UpstreamError
from app.main import app
from app.services import messages as message_store
from app.services.assistant import get_assistant
from conftest import auth_headers, issue_token


def create_channel(client: TestClient, user, name: str, **extra: Any) -> int:
    response = client.post(
        "/api/channels", json={"name": name, **extra}, headers=auth_headers(user)
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


def send(client: TestClient, user, **payload: Any) -> int:
    response = client.post("/api/messages", json=payload, headers=auth_headers(user))
    assert response.status_code == 201, response.text
    return response.json()["id"]


def test_health_and_identity(client: TestClient, make_user):
    assert client.get("/health").json()["status"] == "ok"

    assert client.get("/api/users/me").status_code == 401
    assert client.get(
        "/api/users/me", headers={"Authorization": "Bearer not-a-token"}
    ).status_code == 401

    alice = make_user("Alice")
    response = client.get("/api/users/me", headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json()["name"] == "Alice"


def test_expired_identity_token_is_rejected(client: TestClient, make_user):
    alice = make_user("Alice")
    token = issue_token(alice.id, lifetime=timedelta(minutes=-5))
    response = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Token has expired"


def test_feed_page_poll_and_thread_flow(client: TestClient, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    channel_id = create_channel(client, alice, "General")
    assert client.post(f"/api/channels/{channel_id}/join", headers=auth_headers(bob)).status_code == 200

    root = send(client, alice, channel_id=channel_id, content="Kickoff at 10")
    reply_one = send(client, bob, channel_id=channel_id, content="works", parent_id=root)
    reply_two = send(client, alice, channel_id=channel_id, content="great", parent_id=root)
    later = send(client, bob, channel_id=channel_id, content="agenda?")

    page = client.get(
        "/api/messages", params={"channel_id": channel_id}, headers=auth_headers(bob)
    ).json()
    assert [message["id"] for message in page] == [root, later]
    assert page[0]["reply_count"] == 2
    assert page[0]["user"]["name"] == "Alice"

    polled = client.get(
        "/api/messages/poll",
        params={"channel_id": channel_id, "after": root},
        headers=auth_headers(bob),
    ).json()
    assert [message["id"] for message in polled] == [later]

    thread = client.get(f"/api/messages/{root}/thread", headers=auth_headers(bob)).json()
    assert [message["id"] for message in thread] == [root, reply_one, reply_two]


def test_feed_requires_exactly_one_target(client: TestClient, make_user):
    alice = make_user("Alice")
    response = client.get("/api/messages", headers=auth_headers(alice))
    assert response.status_code == 400


def test_posting_requires_membership_and_live_channel(client: TestClient, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    channel_id = create_channel(client, alice, "general")

    response = client.post(
        "/api/messages",
        json={"channel_id": channel_id, "content": "hi"},
        headers=auth_headers(bob),
    )
    assert response.status_code == 403

    assert client.post(f"/api/channels/{channel_id}/archive", headers=auth_headers(alice)).status_code == 200
    response = client.post(
        "/api/messages",
        json={"channel_id": channel_id, "content": "hi"},
        headers=auth_headers(alice),
    )
    assert response.status_code == 400
    channels = client.get("/api/channels", headers=auth_headers(alice)).json()
    assert channels == []


def test_private_channel_feed_is_members_only(client: TestClient, make_user):
    owner = make_user("Owner")
    outsider = make_user("Outsider")
    channel_id = create_channel(client, owner, "secret", visibility="private")
    send(client, owner, channel_id=channel_id, content="classified")

    response = client.get(
        "/api/messages", params={"channel_id": channel_id}, headers=auth_headers(outsider)
    )
    assert response.status_code == 403
    assert client.post(f"/api/channels/{channel_id}/join", headers=auth_headers(outsider)).status_code == 403

    added = client.post(
        f"/api/channels/{channel_id}/members",
        json={"user_id": outsider.id},
        headers=auth_headers(owner),
    )
    assert added.status_code == 200
    response = client.get(
        "/api/messages", params={"channel_id": channel_id}, headers=auth_headers(outsider)
    )
    assert [message["content"] for message in response.json()] == ["classified"]


def test_duplicate_channel_name_conflicts(client: TestClient, make_user):
    alice = make_user("Alice")
    create_channel(client, alice, "Design")
    response = client.post("/api/channels", json={"name": "design"}, headers=auth_headers(alice))
    assert response.status_code == 409


def test_unread_counts_and_mark_read(client: TestClient, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    channel_id = create_channel(client, alice, "general")
    client.post(f"/api/channels/{channel_id}/join", headers=auth_headers(bob))
    send(client, alice, channel_id=channel_id, content="one")
    send(client, alice, channel_id=channel_id, content="two")

    counts = client.get("/api/channels/unread", headers=auth_headers(bob)).json()
    assert counts == {str(channel_id): 2}

    response = client.post(f"/api/channels/{channel_id}/read", headers=auth_headers(bob))
    assert response.json() == {"success": True}
    counts = client.get("/api/channels/unread", headers=auth_headers(bob)).json()
    assert counts == {str(channel_id): 0}


def test_reaction_toggle_flow(client: TestClient, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    channel_id = create_channel(client, alice, "general")
    message_id = send(client, alice, channel_id=channel_id, content="ship it")

    for user in (alice, bob):
        response = client.post(
            f"/api/messages/{message_id}/reactions", json={"emoji": "👍"}, headers=auth_headers(user)
        )
        assert response.json() == {"action": "added"}

    page = client.get(
        "/api/messages", params={"channel_id": channel_id}, headers=auth_headers(bob)
    ).json()
    assert page[0]["reactions"] == [
        {"emoji": "👍", "count": 2, "user_ids": [alice.id, bob.id], "reacted": True}
    ]

    response = client.post(
        f"/api/messages/{message_id}/reactions", json={"emoji": "👍"}, headers=auth_headers(alice)
    )
    assert response.json() == {"action": "removed"}
    page = client.get(
        "/api/messages", params={"channel_id": channel_id}, headers=auth_headers(alice)
    ).json()
    assert page[0]["reactions"] == [
        {"emoji": "👍", "count": 1, "user_ids": [bob.id], "reacted": False}
    ]


def test_direct_conversation_flow(client: TestClient, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    eve = make_user("Eve")

    first = client.post("/api/conversations/dm", json={"user_id": bob.id}, headers=auth_headers(alice))
    second = client.post("/api/conversations/dm", json={"user_id": alice.id}, headers=auth_headers(bob))
    assert first.status_code == 200
    conversation_id = first.json()["id"]
    assert second.json()["id"] == conversation_id

    send(client, alice, conversation_id=conversation_id, content="hey bob")

    listed = client.get("/api/conversations", headers=auth_headers(bob)).json()
    assert listed[0]["id"] == conversation_id
    assert [user["name"] for user in listed[0]["participants"]] == ["Alice"]
    assert listed[0]["last_message"]["content"] == "hey bob"

    unread = client.get("/api/conversations/unread", headers=auth_headers(bob)).json()
    assert unread == {str(conversation_id): 1}
    client.post(f"/api/conversations/{conversation_id}/read", headers=auth_headers(bob))
    unread = client.get("/api/conversations/unread", headers=auth_headers(bob)).json()
    assert unread == {str(conversation_id): 0}

    response = client.get(
        "/api/messages", params={"conversation_id": conversation_id}, headers=auth_headers(eve)
    )
    assert response.status_code == 403


def test_edit_message_flow(client: TestClient, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    channel_id = create_channel(client, alice, "general")
    message_id = send(client, alice, channel_id=channel_id, content="draft")

    forbidden = client.patch(
        f"/api/messages/{message_id}", json={"content": "nope"}, headers=auth_headers(bob)
    )
    assert forbidden.status_code == 403

    response = client.patch(
        f"/api/messages/{message_id}", json={"content": "final"}, headers=auth_headers(alice)
    )
    assert response.status_code == 200
    assert response.json()["content"] == "final"
    assert response.json()["is_edited"] is True


def test_upload_and_send_attachment(client: TestClient, make_user, tmp_path):
    settings = get_settings()
    original_root = settings.media_root
    settings.media_root = tmp_path
    try:
        alice = make_user("Alice")
        channel_id = create_channel(client, alice, "general")

        upload = client.post(
            "/api/files",
            files={"file": ("notes.txt", b"hello world", "text/plain")},
            headers=auth_headers(alice),
        )
        assert upload.status_code == 201, upload.text
        stored = upload.json()
        assert stored["file_name"] == "notes.txt"
        assert stored["size"] == 11

        send(
            client,
            alice,
            channel_id=channel_id,
            content="",
            attachment={"url": stored["url"], "name": stored["file_name"], "mime_type": stored["mime_type"]},
        )
        page = client.get(
            "/api/messages", params={"channel_id": channel_id}, headers=auth_headers(alice)
        ).json()
        assert page[0]["content"] == "notes.txt"
        assert page[0]["type"] == "file"

        download = client.get(stored["url"], headers=auth_headers(alice))
        assert download.status_code == 200
        assert download.content == b"hello world"
    finally:
        settings.media_root = original_root


def test_search_respects_visibility(client: TestClient, make_user):
    owner = make_user("Owner")
    outsider = make_user("Outsider")
    public_id = create_channel(client, owner, "roadmap")
    private_id = create_channel(client, owner, "roadmap-leads", visibility="private")
    send(client, owner, channel_id=public_id, content="Quarterly roadmap draft")
    send(client, owner, channel_id=private_id, content="Roadmap salaries")

    results = client.get(
        "/api/search", params={"query": "roadmap"}, headers=auth_headers(outsider)
    ).json()
    assert [message["content"] for message in results["messages"]] == ["Quarterly roadmap draft"]
    assert [channel["name"] for channel in results["channels"]] == ["roadmap"]

    results = client.get(
        "/api/search", params={"query": "roadmap"}, headers=auth_headers(owner)
    ).json()
    assert len(results["messages"]) == 2
    assert [channel["name"] for channel in results["channels"]] == ["roadmap", "roadmap-leads"]


class FakeAssistant:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.transcripts: list[str] = []

    async def summarize(self, transcript: str) -> str:
        self.transcripts.append(transcript)
        if self.fail:
            raise UpstreamError("down")
        return "summary"

    async def suggest_replies(self, transcript: str) -> list[str]:
        self.transcripts.append(transcript)
        if self.fail:
            raise UpstreamError("down")
        return ["Sure", "Thanks"]


def test_assistant_endpoints(client: TestClient, make_user):
    alice = make_user("Alice")
    channel_id = create_channel(client, alice, "general")

    fake = FakeAssistant()
    app.dependency_overrides[get_assistant] = lambda: fake

    empty = client.post("/api/ai/summarize", json={"channel_id": channel_id}, headers=auth_headers(alice))
    assert empty.json() == {"status": "empty", "summary": None}

    send(client, alice, channel_id=channel_id, content="Let's ship Friday")
    summary = client.post("/api/ai/summarize", json={"channel_id": channel_id}, headers=auth_headers(alice))
    assert summary.json() == {"status": "ok", "summary": "summary"}
    assert fake.transcripts[-1] == "Alice: Let's ship Friday"

    replies = client.post("/api/ai/smart-reply", json={"channel_id": channel_id}, headers=auth_headers(alice))
    assert replies.json() == {"status": "ok", "replies": ["Sure", "Thanks"]}

    app.dependency_overrides[get_assistant] = lambda: FakeAssistant(fail=True)
    degraded = client.post("/api/ai/smart-reply", json={"channel_id": channel_id}, headers=auth_headers(alice))
    assert degraded.status_code == 200
    assert degraded.json() == {"status": "unavailable", "replies": []}


def test_assistant_loads_transcript_off_the_event_loop(client: TestClient, make_user, monkeypatch):
    alice = make_user("Alice")
    channel_id = create_channel(client, alice, "general")
    send(client, alice, channel_id=channel_id, content="Let's ship Friday")

    loop_running: list[bool] = []
    original_get_page = message_store.get_page

    def recording_get_page(*args, **kwargs):
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            loop_running.append(False)
        else:
            loop_running.append(True)
        return original_get_page(*args, **kwargs)

    monkeypatch.setattr(message_store, "get_page", recording_get_page)
    app.dependency_overrides[get_assistant] = lambda: FakeAssistant()

    response = client.post("/api/ai/summarize", json={"channel_id": channel_id}, headers=auth_headers(alice))
    assert response.json() == {"status": "ok", "summary": "summary"}
    assert loop_running == [False]


def test_attachment_download_follows_message_access(client: TestClient, make_user, tmp_path):
    settings = get_settings()
    original_root = settings.media_root
    settings.media_root = tmp_path
    try:
        owner = make_user("Owner")
        outsider = make_user("Outsider")
        channel_id = create_channel(client, owner, "secret", visibility="private")

        stored = client.post(
            "/api/files",
            files={"file": ("plan.txt", b"launch plan", "text/plain")},
            headers=auth_headers(owner),
        ).json()
        send(
            client,
            owner,
            channel_id=channel_id,
            content="",
            attachment={"url": stored["url"], "name": stored["file_name"], "mime_type": stored["mime_type"]},
        )

        assert client.get(stored["url"], headers=auth_headers(outsider)).status_code == 403

        client.post(
            f"/api/channels/{channel_id}/members",
            json={"user_id": outsider.id},
            headers=auth_headers(owner),
        )
        download = client.get(stored["url"], headers=auth_headers(outsider))
        assert download.status_code == 200
        assert download.content == b"launch plan"

        unattached = client.post(
            "/api/files",
            files={"file": ("draft.txt", b"draft", "text/plain")},
            headers=auth_headers(outsider),
        ).json()
        assert client.get(unattached["url"], headers=auth_headers(owner)).status_code == 404
        assert client.get(unattached["url"], headers=auth_headers(outsider)).status_code == 200
    finally:
        settings.media_root = original_root
