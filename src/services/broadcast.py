"""
Broadcast providers (pub/sub push messaging).

The relay treats the broadcast service as an external capability:

- server side: authorize(socket_id, channel) and publish(channel, event, payload)
- client side: subscribe(channel, event) -> stream of payloads

PusherBroadcastProvider talks to Pusher Channels through the official SDK.
InMemoryBroadcastProvider is an in-process hub implementing both sides,
used for local development and tests.
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import itertools
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Tuple

import pusher
from loguru import logger

from src.config.settings import Settings
from src.domain.conversation import is_private_channel
from src.utils.errors import Forbidden, InvalidInput


class BroadcastProvider(ABC):
    """Server-side interface to the broadcast service."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the provider has the credentials it needs."""
        pass

    @abstractmethod
    def authorize(self, socket_id: str, channel: str) -> Dict[str, Any]:
        """Grant a private channel subscription; returns the provider-native auth payload."""
        pass

    @abstractmethod
    async def publish(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        """Deliver one event to every subscriber of a channel."""
        pass


class BroadcastSubscriber(ABC):
    """Client-side interface: one transport connection that can join channels."""

    @property
    @abstractmethod
    def socket_id(self) -> str:
        pass

    @abstractmethod
    def subscribe(self, channel: str, event: str, auth: Optional[Dict[str, Any]] = None) -> "Subscription":
        pass


class Subscription(ABC):
    """Async stream of event payloads for one (channel, event) pair."""

    channel: str
    event: str

    def __aiter__(self):
        return self

    @abstractmethod
    async def __anext__(self) -> Dict[str, Any]:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


# ============================================================================
# Pusher
# ============================================================================


class PusherBroadcastProvider(BroadcastProvider):
    """Pusher Channels via the pusher-http-python SDK."""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._client: Optional[pusher.Pusher] = None

    @property
    def is_configured(self) -> bool:
        return self._settings.pusher_configured

    @property
    def client(self) -> pusher.Pusher:
        if self._client is None:
            self._client = pusher.Pusher(
                app_id=self._settings.pusher_app_id,
                key=self._settings.pusher_key,
                secret=self._settings.pusher_secret,
                cluster=self._settings.pusher_cluster,
                ssl=self._settings.pusher_use_tls,
            )
        return self._client

    def authorize(self, socket_id: str, channel: str) -> Dict[str, Any]:
        # Pure signature computation, no network round trip
        try:
            return self.client.authenticate(channel=channel, socket_id=socket_id)
        except ValueError as exc:
            # SDK validates socket id and channel name formats
            raise InvalidInput(str(exc)) from exc

    async def publish(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        # SDK uses blocking HTTP; keep it off the event loop
        await asyncio.to_thread(self.client.trigger, channel, event, payload)


# ============================================================================
# In-memory hub
# ============================================================================


@dataclass
class PublishedEvent:
    """Record of one publish call on the in-memory hub"""
    channel: str
    event: str
    payload: Dict[str, Any] = field(default_factory=dict)


_CLOSED = object()


class InMemorySubscription(Subscription):

    def __init__(self, hub: "InMemoryBroadcastProvider", channel: str, event: str):
        self.channel = channel
        self.event = event
        self._hub = hub
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    def deliver(self, payload: Dict[str, Any]) -> None:
        self._queue.put_nowait(dict(payload))

    async def __anext__(self) -> Dict[str, Any]:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._hub._unregister(self)
        self._queue.put_nowait(_CLOSED)


class InMemorySubscriber(BroadcastSubscriber):

    def __init__(self, hub: "InMemoryBroadcastProvider", socket_id: str):
        self._hub = hub
        self._socket_id = socket_id

    @property
    def socket_id(self) -> str:
        return self._socket_id

    def subscribe(self, channel: str, event: str, auth: Optional[Dict[str, Any]] = None) -> InMemorySubscription:
        if is_private_channel(channel) and not self._hub.check_auth(self._socket_id, channel, auth):
            logger.warning(f"Subscription to {channel} refused for socket {self._socket_id}")
            raise Forbidden("Subscription not authorized")
        return self._hub._register(InMemorySubscription(self._hub, channel, event))


class InMemoryBroadcastProvider(BroadcastProvider):
    """
    In-process broadcast hub.

    Private channel auth is signed the way Pusher signs it:
    "<key>:<hex hmac-sha256(secret, '<socket_id>:<channel>')>".
    The most recent `max_published` publishes are kept in `published`
    for inspection; older ones are dropped.
    """

    def __init__(
        self,
        key: str = "memory-key",
        secret: str = "memory-secret",
        max_published: int = 1000,
    ):
        self.key = key
        self._secret = secret.encode("utf-8")
        self.published: Deque[PublishedEvent] = deque(maxlen=max_published)
        self._subscriptions: Dict[Tuple[str, str], List[InMemorySubscription]] = {}
        self._socket_ids = itertools.count(1)

    @property
    def is_configured(self) -> bool:
        return True

    def _signature(self, socket_id: str, channel: str) -> str:
        message = f"{socket_id}:{channel}".encode("utf-8")
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def authorize(self, socket_id: str, channel: str) -> Dict[str, Any]:
        return {"auth": f"{self.key}:{self._signature(socket_id, channel)}"}

    def check_auth(self, socket_id: str, channel: str, auth: Optional[Dict[str, Any]]) -> bool:
        presented = (auth or {}).get("auth")
        if not isinstance(presented, str):
            return False
        expected = self.authorize(socket_id, channel)["auth"]
        return hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))

    async def publish(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        self.published.append(PublishedEvent(channel=channel, event=event, payload=dict(payload)))
        for subscription in list(self._subscriptions.get((channel, event), [])):
            subscription.deliver(payload)

    def connect(self) -> InMemorySubscriber:
        """Open a client connection with a fresh Pusher-style socket id."""
        n = next(self._socket_ids)
        return InMemorySubscriber(self, f"{n}.{n * 7919}")

    def _register(self, subscription: InMemorySubscription) -> InMemorySubscription:
        key = (subscription.channel, subscription.event)
        self._subscriptions.setdefault(key, []).append(subscription)
        return subscription

    def _unregister(self, subscription: InMemorySubscription) -> None:
        key = (subscription.channel, subscription.event)
        subscribers = self._subscriptions.get(key, [])
        if subscription in subscribers:
            subscribers.remove(subscription)


def build_broadcast_provider(settings: Settings) -> BroadcastProvider:
    """Select the broadcast provider named by BROADCAST_BACKEND."""
    backend = settings.broadcast_backend.lower()
    if backend == "memory":
        logger.info("Using in-memory broadcast hub")
        return InMemoryBroadcastProvider()
    if backend == "pusher":
        if not settings.pusher_configured:
            logger.warning("Pusher credentials missing; realtime endpoints will answer 503")
        return PusherBroadcastProvider(settings)
    raise ValueError(f"Unknown broadcast backend: {settings.broadcast_backend}")
