"""
Client Session Manager tests

The manager talks to the real app over httpx's ASGI transport and
subscribes through the in-memory broadcast hub.
"""

import asyncio
import json
import re

import httpx
import pytest

from src.api.app import create_app
from src.client import (
    SEND_ERROR_TEXT,
    Attachment,
    ChatSessionManager,
    WorkflowClient,
    new_conversation_id,
)
from src.utils.errors import SessionError, WorkflowError

from helpers import login_token, make_settings

BASE_URL = "http://relay.test"


def _relay_client(hub) -> httpx.AsyncClient:
    app = create_app(make_settings(), provider=hub)
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=BASE_URL)


def _manager(hub, http, conversation_id="abc123", user="alice") -> ChatSessionManager:
    return ChatSessionManager(
        api_base_url=BASE_URL,
        auth_token=login_token(user),
        subscriber=hub.connect(),
        conversation_id=conversation_id,
        http_client=http,
    )


def test_new_conversation_id_format():
    first = new_conversation_id()

    assert re.fullmatch(r"conv_\d+_[0-9a-z]{6}", first)
    assert first != new_conversation_id()


def test_full_round_trip(hub):
    """init_session -> connect -> workflow reply arrives on the private channel"""

    async def scenario():
        async with _relay_client(hub) as http:
            manager = _manager(hub, http, conversation_id="  abc123 ")

            credentials = await manager.init_session()
            assert manager.conversation_id == "abc123"
            assert credentials.conversation_id == "abc123"

            subscription = await manager.connect()
            manager.is_loading = True

            response = await http.post("/receive-response", json={"conversationId": "abc123", "reply": "Hi there"})
            assert response.status_code == 200

            return manager, [message async for message in manager.listen(subscription, limit=1)]

    manager, received = asyncio.run(scenario())

    assert len(received) == 1
    assert received[0].sender == "ai"
    assert received[0].text == "Hi there"
    assert received[0].id.startswith("ai_")
    assert manager.messages == received
    assert manager.is_loading is False


def test_auth_params_before_init_raises(hub):
    manager = ChatSessionManager(api_base_url=BASE_URL, auth_token="x", subscriber=hub.connect())

    with pytest.raises(SessionError):
        manager.auth_params()


def test_init_session_rejected(hub):
    async def scenario():
        async with _relay_client(hub) as http:
            manager = _manager(hub, http)
            manager.auth_token = "garbage"
            await manager.init_session()

    with pytest.raises(SessionError, match="401"):
        asyncio.run(scenario())


def test_connect_rejected_for_other_users_token(hub):
    async def scenario():
        async with _relay_client(hub) as http:
            manager = _manager(hub, http)
            await manager.init_session()
            manager.auth_token = login_token("mallory")
            await manager.connect()

    with pytest.raises(SessionError, match="403"):
        asyncio.run(scenario())


def test_auth_params_are_strings(hub):
    async def scenario():
        async with _relay_client(hub) as http:
            manager = _manager(hub, http)
            await manager.init_session()
            return manager.auth_params()

    params = asyncio.run(scenario())

    assert set(params) == {"conversationId", "conversationToken", "iat"}
    assert all(isinstance(value, str) for value in params.values())
    assert params["iat"].isdigit()


# ===== Workflow webhook =====


def _workflow(handler, url="http://n8n.test/webhook", token=None) -> WorkflowClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WorkflowClient(url, token=token, http_client=http)


def test_workflow_client_posts_message():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"ok": True})

    workflow = _workflow(handler, token="hook-token")
    attachment = Attachment(id="f1", name="a.txt", type="text/plain", size=3, data="YWJj")

    result = asyncio.run(workflow.send_message("abc123", "alice", "hello", [attachment]))

    assert result == {"ok": True}
    assert seen["auth"] == "Bearer hook-token"
    assert seen["body"]["conversationId"] == "abc123"
    assert seen["body"]["username"] == "alice"
    assert seen["body"]["text"] == "hello"
    assert seen["body"]["attachments"][0]["name"] == "a.txt"
    assert isinstance(seen["body"]["timestamp"], int)


def test_workflow_client_non_json_body_is_empty_result():
    workflow = _workflow(lambda request: httpx.Response(200, text="Workflow was started"))

    assert asyncio.run(workflow.send_message("abc123", "alice", "hello")) == {}


def test_workflow_client_error_status():
    workflow = _workflow(lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(WorkflowError, match="500"):
        asyncio.run(workflow.send_message("abc123", "alice", "hello"))


def test_workflow_client_requires_url():
    with pytest.raises(WorkflowError):
        asyncio.run(WorkflowClient("").send_message("abc123", "alice", "hello"))


def test_send_appends_user_message(hub):
    workflow = _workflow(lambda request: httpx.Response(200, json={}))
    manager = ChatSessionManager(api_base_url=BASE_URL, auth_token="x", subscriber=hub.connect())

    assert asyncio.run(manager.send("hello", workflow)) is True

    assert [m.sender for m in manager.messages] == ["user"]
    assert manager.messages[0].text == "hello"
    assert manager.is_loading is True


def test_send_blank_text_is_ignored(hub):
    workflow = _workflow(lambda request: httpx.Response(200, json={}))
    manager = ChatSessionManager(api_base_url=BASE_URL, auth_token="x", subscriber=hub.connect())

    assert asyncio.run(manager.send("   ", workflow)) is False
    assert manager.messages == []


def test_send_failure_appends_error_message(hub):
    workflow = _workflow(lambda request: httpx.Response(500))
    manager = ChatSessionManager(api_base_url=BASE_URL, auth_token="x", subscriber=hub.connect())

    assert asyncio.run(manager.send("hello", workflow)) is False

    assert [m.sender for m in manager.messages] == ["user", "ai"]
    assert manager.messages[1].text == SEND_ERROR_TEXT
    assert manager.messages[1].id.startswith("error_")
    assert manager.is_loading is False

    manager.clear()
    assert manager.messages == []
