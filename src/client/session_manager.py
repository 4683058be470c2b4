"""
Client Session Manager

Client-side controller for one conversation: obtains a session token,
opens the authorized private channel, sends user messages to the
workflow and appends the assistant replies pushed back over the channel.
"""

from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Literal, Optional

import httpx
from loguru import logger

from src.config.constants import BEARER_PREFIX, MESSAGE_EVENT
from src.domain.conversation import private_channel_name
from src.services.broadcast import BroadcastSubscriber, Subscription
from src.client.workflow_client import Attachment, WorkflowClient
from src.utils.errors import RelayError, SessionError, WorkflowError

SEND_ERROR_TEXT = (
    "Sorry, there was an error sending your message. "
    "Please check your n8n webhook URL and try again."
)

_BASE36 = string.digits + string.ascii_lowercase


def _now_millis() -> int:
    return int(time.time() * 1000)


def _random_suffix(length: int = 6) -> str:
    return "".join(random.choice(_BASE36) for _ in range(length))


def new_conversation_id() -> str:
    """Fresh client-side conversation id: conv_<millis>_<base36>."""
    return f"conv_{_now_millis()}_{_random_suffix()}"


@dataclass
class ChatMessage:
    """One line of the visible conversation"""
    id: str
    text: str
    sender: Literal["user", "ai"]
    timestamp: int


@dataclass(frozen=True)
class SessionCredentials:
    conversation_id: str
    token: str
    issued_at_millis: int


@dataclass
class ChatSessionManager:
    """
    Drives the client half of the relay protocol for one conversation.

    Typical flow:

        await manager.init_session()
        subscription = await manager.connect()
        await manager.send("hello", workflow)
        async for message in manager.listen(subscription):
            ...
    """

    api_base_url: str
    auth_token: str
    subscriber: BroadcastSubscriber
    conversation_id: str = field(default_factory=new_conversation_id)
    http_client: Optional[httpx.AsyncClient] = None
    channel_prefix: str = "chat"
    username: str = "User"
    messages: List[ChatMessage] = field(default_factory=list)
    credentials: Optional[SessionCredentials] = None
    is_loading: bool = False

    @property
    def channel_name(self) -> str:
        return private_channel_name(self.conversation_id, self.channel_prefix)

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"{BEARER_PREFIX}{self.auth_token}"}

    async def _post(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        url = f"{self.api_base_url.rstrip('/')}{path}"
        if self.http_client is not None:
            return await self.http_client.post(url, json=payload, headers=self._headers())
        async with httpx.AsyncClient(timeout=30.0) as client:
            return await client.post(url, json=payload, headers=self._headers())

    @staticmethod
    def _error_text(response: httpx.Response) -> str:
        try:
            return response.json().get("error") or response.reason_phrase
        except (ValueError, AttributeError):
            return response.reason_phrase

    async def init_session(self) -> SessionCredentials:
        """
        Request a session token for this conversation.

        Adopts the normalized conversation id the server returns.

        Raises:
            SessionError: The server refused or the request failed
        """
        try:
            response = await self._post("/session-init", {"conversationId": self.conversation_id})
        except httpx.HTTPError as exc:
            raise SessionError(f"Session init request failed: {exc}") from exc

        if not response.is_success:
            raise SessionError(f"Session init failed ({response.status_code}): {self._error_text(response)}")

        data = response.json()
        self.conversation_id = data.get("conversationId", self.conversation_id)
        self.credentials = SessionCredentials(
            conversation_id=self.conversation_id,
            token=data["conversationToken"],
            issued_at_millis=int(data["issuedAtMillis"]),
        )
        logger.debug(f"Session token obtained for {self.conversation_id}")
        return self.credentials

    def auth_params(self) -> Dict[str, str]:
        """Extra parameters the channel authorization request must carry."""
        if self.credentials is None:
            raise SessionError("No session token; call init_session first")
        return {
            "conversationId": self.credentials.conversation_id,
            "conversationToken": self.credentials.token,
            "iat": str(self.credentials.issued_at_millis),
        }

    async def authorize_channel(self) -> Dict[str, Any]:
        """Ask the relay to authorize this connection on the private channel."""
        payload = {
            "socket_id": self.subscriber.socket_id,
            "channel_name": self.channel_name,
            **self.auth_params(),
        }
        try:
            response = await self._post("/pusher-auth", payload)
        except httpx.HTTPError as exc:
            raise SessionError(f"Channel authorization request failed: {exc}") from exc

        if not response.is_success:
            raise SessionError(
                f"Channel authorization failed ({response.status_code}): {self._error_text(response)}"
            )
        return response.json()

    async def connect(self) -> Subscription:
        """Authorize and subscribe to the conversation's private channel."""
        auth = await self.authorize_channel()
        try:
            subscription = self.subscriber.subscribe(self.channel_name, MESSAGE_EVENT, auth=auth)
        except RelayError as exc:
            self.is_loading = False
            raise SessionError(f"Subscription failed: {exc.message}") from exc
        logger.info(f"Subscribed to {self.channel_name}")
        return subscription

    def handle_event(self, payload: Dict[str, Any]) -> ChatMessage:
        """Append an assistant reply event to the conversation."""
        timestamp = int(payload.get("timestamp") or _now_millis())
        message = ChatMessage(
            id=f"ai_{timestamp}_{_random_suffix()}",
            text=str(payload.get("text", "")),
            sender="ai",
            timestamp=timestamp,
        )
        self.messages.append(message)
        self.is_loading = False
        return message

    async def listen(self, subscription: Subscription, limit: Optional[int] = None) -> AsyncIterator[ChatMessage]:
        """
        Yield assistant replies as they arrive.

        Args:
            subscription: Stream returned by connect()
            limit: Stop (and close the subscription) after this many messages
        """
        received = 0
        try:
            async for payload in subscription:
                yield self.handle_event(payload)
                received += 1
                if limit is not None and received >= limit:
                    break
        finally:
            if limit is not None:
                subscription.close()

    async def send(
        self,
        text: str,
        workflow: WorkflowClient,
        attachments: Optional[List[Attachment]] = None,
    ) -> bool:
        """
        Append a user message and forward it to the workflow.

        Returns:
            False if the text was blank or delivery failed (an error
            message is appended in the latter case), True otherwise
        """
        if not text.strip():
            return False

        now = _now_millis()
        self.messages.append(
            ChatMessage(id=f"user_{now}_{_random_suffix()}", text=text, sender="user", timestamp=now)
        )
        self.is_loading = True

        try:
            await workflow.send_message(self.conversation_id, self.username, text, attachments or [])
        except WorkflowError as exc:
            logger.error(f"Error sending message to n8n: {exc}")
            self.is_loading = False
            error_at = _now_millis()
            self.messages.append(
                ChatMessage(id=f"error_{error_at}", text=SEND_ERROR_TEXT, sender="ai", timestamp=error_at)
            )
            return False

        logger.debug("Message sent to n8n successfully")
        return True

    def clear(self) -> None:
        self.messages.clear()
