"""
Inbound Relay

Accepts one reply from the external workflow and publishes it on the
conversation's broadcast channel, plus an optional best-effort public
fallback channel.
"""

import hmac
from dataclasses import dataclass
from typing import Any, Callable, Optional

from loguru import logger

from src.config.constants import ASSISTANT_ROLE, MESSAGE_EVENT
from src.config.settings import Settings
from src.domain.conversation import (
    normalize_conversation_id,
    private_channel_name,
    public_channel_name,
)
from src.services.broadcast import BroadcastProvider
from src.services.session_issuer import now_millis
from src.utils.errors import (
    Forbidden,
    InvalidInput,
    PublishFailed,
    ServiceUnavailable,
    Unauthenticated,
)


@dataclass(frozen=True)
class RelayResult:
    conversation_id: str
    channel: str
    timestamp: int
    fallback_channel: Optional[str] = None
    fallback_delivered: bool = False


class InboundRelay:
    """Forwards workflow replies to subscribed chat clients."""

    def __init__(
        self,
        settings: Settings,
        provider: BroadcastProvider,
        clock: Callable[[], int] = now_millis,
    ):
        self._settings = settings
        self._provider = provider
        self._clock = clock

    def check_caller(self, credential: Optional[str]) -> None:
        """
        Enforce the shared webhook secret when one is configured.

        With no WEBHOOK_SECRET the relay accepts any caller.
        """
        secret = self._settings.webhook_secret
        if not secret:
            return
        if not credential:
            raise Unauthenticated()
        if not hmac.compare_digest(credential.encode("utf-8"), secret.encode("utf-8")):
            logger.warning("Relay call rejected: webhook secret mismatch")
            raise Forbidden()

    async def relay(self, credential: Optional[str], conversation_id: Any, reply: Any) -> RelayResult:
        """
        Publish a workflow reply.

        Raises:
            Unauthenticated / Forbidden: Webhook secret check failed
            InvalidInput: Bad conversationId or empty reply
            ServiceUnavailable: Broadcast provider not configured
            PublishFailed: Primary channel publish failed
        """
        self.check_caller(credential)

        conversation_id = normalize_conversation_id(conversation_id)
        if not isinstance(reply, str) or not reply.strip():
            raise InvalidInput("reply must be a non-empty string")

        if not self._provider.is_configured:
            raise ServiceUnavailable("Realtime not configured")

        prefix = self._settings.channel_prefix
        channel = private_channel_name(conversation_id, prefix)
        timestamp = self._clock()
        payload = {"role": ASSISTANT_ROLE, "text": reply, "timestamp": timestamp}

        primary_error: Optional[Exception] = None
        try:
            await self._provider.publish(channel, MESSAGE_EVENT, payload)
            logger.info(f"Relayed reply to {channel} ({len(reply)} chars)")
        except Exception as exc:
            primary_error = exc
            logger.error(f"Publish to {channel} failed: {exc}")

        fallback_channel = None
        fallback_delivered = False
        if self._settings.publish_public_fallback:
            fallback_channel = public_channel_name(conversation_id, prefix)
            try:
                await self._provider.publish(fallback_channel, MESSAGE_EVENT, payload)
                fallback_delivered = True
            except Exception as exc:
                logger.warning(f"Fallback publish to {fallback_channel} failed: {exc}")

        if primary_error is not None:
            raise PublishFailed() from primary_error

        return RelayResult(
            conversation_id=conversation_id,
            channel=channel,
            timestamp=timestamp,
            fallback_channel=fallback_channel,
            fallback_delivered=fallback_delivered,
        )
