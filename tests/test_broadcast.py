"""
Broadcast provider tests (Pusher wrapper and in-memory hub)
"""

import asyncio
import hashlib
import hmac
from unittest.mock import MagicMock

import pytest

from src.services.broadcast import (
    InMemoryBroadcastProvider,
    PusherBroadcastProvider,
    build_broadcast_provider,
)
from src.utils.errors import Forbidden, InvalidInput

from helpers import make_settings

PUSHER_CREDENTIALS = {
    "broadcast_backend": "pusher",
    "pusher_app_id": "12345",
    "pusher_key": "app-key",
    "pusher_secret": "app-secret",
    "pusher_cluster": "eu",
}


def test_build_provider_by_backend():
    assert isinstance(build_broadcast_provider(make_settings(broadcast_backend="memory")), InMemoryBroadcastProvider)
    assert isinstance(build_broadcast_provider(make_settings(**PUSHER_CREDENTIALS)), PusherBroadcastProvider)

    with pytest.raises(ValueError):
        build_broadcast_provider(make_settings(broadcast_backend="carrier-pigeon"))


def test_pusher_configured_only_with_all_credentials():
    assert PusherBroadcastProvider(make_settings(**PUSHER_CREDENTIALS)).is_configured is True

    partial = dict(PUSHER_CREDENTIALS, pusher_cluster="")
    assert PusherBroadcastProvider(make_settings(**partial)).is_configured is False


def test_pusher_authorize_signs_socket_and_channel():
    """Private channel auth is key:hex(hmac_sha256(secret, socket_id:channel))"""
    provider = PusherBroadcastProvider(make_settings(**PUSHER_CREDENTIALS))

    auth = provider.authorize("1234.5678", "private-chat-abc123")

    expected = hmac.new(b"app-secret", b"1234.5678:private-chat-abc123", hashlib.sha256).hexdigest()
    assert auth["auth"] == f"app-key:{expected}"


def test_pusher_authorize_rejects_malformed_socket_id():
    provider = PusherBroadcastProvider(make_settings(**PUSHER_CREDENTIALS))

    with pytest.raises(InvalidInput):
        provider.authorize("not-a-socket", "private-chat-abc123")


def test_pusher_publish_triggers_event():
    provider = PusherBroadcastProvider(make_settings(**PUSHER_CREDENTIALS))
    provider._client = MagicMock()

    payload = {"role": "assistant", "text": "hi", "timestamp": 1}
    asyncio.run(provider.publish("private-chat-abc123", "message", payload))

    provider._client.trigger.assert_called_once_with("private-chat-abc123", "message", payload)


def test_pusher_publish_error_propagates():
    provider = PusherBroadcastProvider(make_settings(**PUSHER_CREDENTIALS))
    provider._client = MagicMock()
    provider._client.trigger.side_effect = RuntimeError("pusher down")

    with pytest.raises(RuntimeError):
        asyncio.run(provider.publish("private-chat-abc123", "message", {}))


def test_in_memory_auth_matches_pusher_format(hub):
    auth = hub.authorize("1.7919", "private-chat-abc123")

    expected = hmac.new(b"test-secret", b"1.7919:private-chat-abc123", hashlib.sha256).hexdigest()
    assert auth == {"auth": f"test-key:{expected}"}
    assert hub.check_auth("1.7919", "private-chat-abc123", auth) is True
    assert hub.check_auth("2.15838", "private-chat-abc123", auth) is False
    assert hub.check_auth("1.7919", "private-chat-other", auth) is False
    assert hub.check_auth("1.7919", "private-chat-abc123", None) is False


def test_private_subscription_requires_auth(hub):
    subscriber = hub.connect()

    with pytest.raises(Forbidden):
        subscriber.subscribe("private-chat-abc123", "message")

    with pytest.raises(Forbidden):
        subscriber.subscribe("private-chat-abc123", "message", auth={"auth": "test-key:bogus"})


def test_subscribers_get_distinct_socket_ids(hub):
    assert hub.connect().socket_id != hub.connect().socket_id


def test_publish_reaches_matching_subscribers_only(hub):
    async def scenario():
        subscriber = hub.connect()
        auth = hub.authorize(subscriber.socket_id, "private-chat-abc123")
        private = subscriber.subscribe("private-chat-abc123", "message", auth=auth)
        public = subscriber.subscribe("chat-abc123", "message")
        other_event = subscriber.subscribe("chat-abc123", "typing")

        await hub.publish("private-chat-abc123", "message", {"text": "one"})
        await hub.publish("chat-abc123", "message", {"text": "two"})

        first = await asyncio.wait_for(private.__anext__(), timeout=1)
        second = await asyncio.wait_for(public.__anext__(), timeout=1)

        assert first == {"text": "one"}
        assert second == {"text": "two"}
        assert other_event._queue.empty()

        other_event.close()
        with pytest.raises(StopAsyncIteration):
            await other_event.__anext__()

    asyncio.run(scenario())
    assert [event.channel for event in hub.published] == ["private-chat-abc123", "chat-abc123"]


def test_closed_subscription_stops_receiving(hub):
    async def scenario():
        subscription = hub.connect().subscribe("chat-abc123", "message")
        subscription.close()
        await hub.publish("chat-abc123", "message", {"text": "late"})
        return [payload async for payload in subscription]

    assert asyncio.run(scenario()) == []


def test_published_log_keeps_only_recent_events():
    hub = InMemoryBroadcastProvider(max_published=2)

    async def scenario():
        for n in range(3):
            await hub.publish(f"chat-room{n}", "message", {"n": n})

    asyncio.run(scenario())
    assert [event.channel for event in hub.published] == ["chat-room1", "chat-room2"]
