"""
Channel Authorizer

Decides whether a client may subscribe to a conversation's private
broadcast channel. Every check is a hard gate, evaluated in order; the
first failure ends the request.
"""

import re
from typing import Any, Callable, Dict, Optional

from loguru import logger

from src.config.settings import Settings
from src.domain.conversation import private_channel_name
from src.security import token_codec
from src.security.identity import IdentityResolver
from src.services.broadcast import BroadcastProvider
from src.services.session_issuer import now_millis
from src.utils.errors import Forbidden, InvalidInput, ServiceUnavailable, Unauthenticated

# Epoch millis; the digit cap keeps int() clear of its conversion limit
_ISSUED_AT_PATTERN = re.compile(r"-?[0-9]{1,18}")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def parse_issued_at(value: Any) -> int:
    """Accept iat as an int or an ASCII decimal string (form bodies carry strings)."""
    if isinstance(value, bool):
        raise InvalidInput("iat must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _ISSUED_AT_PATTERN.fullmatch(value.strip()):
        return int(value.strip())
    raise InvalidInput("iat must be an integer")


class ChannelAuthorizer:
    """Grants private-channel subscriptions to holders of a valid session token."""

    def __init__(
        self,
        settings: Settings,
        provider: BroadcastProvider,
        identity_resolver: IdentityResolver,
        clock: Callable[[], int] = now_millis,
    ):
        self._settings = settings
        self._provider = provider
        self._identity_resolver = identity_resolver
        self._clock = clock

    def authorize(
        self,
        credential: Optional[str],
        socket_id: Any,
        channel_name: Any,
        conversation_id: Any,
        token: Any,
        issued_at: Any,
    ) -> Dict[str, Any]:
        """
        Authorize one subscription attempt.

        Returns:
            The broadcast provider's auth payload, unchanged

        Raises:
            ServiceUnavailable: Provider credentials or signing secret missing
            Unauthenticated: No bearer credential, or it resolves to nobody
            InvalidInput: A required field is missing or iat is not an integer
            Forbidden: Token, expiry or channel check failed
        """
        if not self._provider.is_configured:
            raise ServiceUnavailable("Realtime not configured")

        if not credential:
            raise Unauthenticated()

        fields = (socket_id, channel_name, conversation_id, token, issued_at)
        if any(_is_blank(value) for value in fields):
            raise InvalidInput("Missing fields")
        if not all(isinstance(value, str) for value in fields[:4]):
            raise InvalidInput("Invalid request body")
        issued_at_millis = parse_issued_at(issued_at)

        if not self._settings.signing_configured:
            logger.error("CONVERSATION_SECRET is not set; cannot verify session tokens")
            raise ServiceUnavailable()

        identity = self._identity_resolver.resolve(credential)
        if not identity:
            raise Unauthenticated()

        if not token_codec.verify(
            token,
            conversation_id,
            issued_at_millis,
            self._settings.conversation_secret,
            subject=identity,
        ):
            logger.warning(f"Token verification failed for conversation={conversation_id} user={identity}")
            raise Forbidden()

        max_age = self._settings.conversation_token_max_age_seconds
        if max_age is not None:
            age_millis = self._clock() - issued_at_millis
            if abs(age_millis) > max_age * 1000:
                logger.info(f"Expired session token for conversation={conversation_id}")
                raise Forbidden("Token expired")

        expected_channel = private_channel_name(conversation_id, self._settings.channel_prefix)
        if channel_name != expected_channel:
            logger.warning(f"Channel mismatch: requested={channel_name} expected={expected_channel}")
            raise Forbidden("Invalid channel")

        auth = self._provider.authorize(socket_id, channel_name)
        logger.info(f"Authorized socket={socket_id} on {channel_name}")
        return auth
