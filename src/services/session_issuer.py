"""
Session Issuer

Mints a signed conversation token for an authenticated caller. Stateless:
nothing is stored, the token carries everything needed to verify it.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from loguru import logger

from src.config.settings import Settings
from src.domain.conversation import normalize_conversation_id
from src.security import token_codec
from src.security.identity import IdentityResolver
from src.utils.errors import ServiceUnavailable, Unauthenticated


def now_millis() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class IssuedSession:
    conversation_id: str
    token: str
    issued_at_millis: int
    identity: str


class SessionIssuer:
    """Issues conversation tokens bound to the caller's identity."""

    def __init__(
        self,
        settings: Settings,
        identity_resolver: IdentityResolver,
        clock: Callable[[], int] = now_millis,
    ):
        self._settings = settings
        self._identity_resolver = identity_resolver
        self._clock = clock

    def issue(self, credential: Optional[str], conversation_id: Any) -> IssuedSession:
        """
        Mint a token for one conversation.

        Args:
            credential: Bearer credential from the Authorization header
            conversation_id: Raw conversationId from the request body

        Returns:
            IssuedSession with the token and its issue time

        Raises:
            ServiceUnavailable: Signing secret not configured
            Unauthenticated: Credential missing or not resolvable
            InvalidInput: conversationId fails validation
        """
        if not self._settings.signing_configured:
            logger.error("CONVERSATION_SECRET is not set; cannot issue session tokens")
            raise ServiceUnavailable()

        if not credential:
            raise Unauthenticated()

        conversation_id = normalize_conversation_id(conversation_id)

        identity = self._identity_resolver.resolve(credential)
        if not identity:
            logger.info(f"Session init rejected for {conversation_id}: credential not recognized")
            raise Unauthenticated()

        issued_at = self._clock()
        token = token_codec.issue(
            conversation_id,
            issued_at,
            self._settings.conversation_secret,
            subject=identity,
        )
        logger.info(f"Issued session token for conversation={conversation_id} user={identity}")
        return IssuedSession(
            conversation_id=conversation_id,
            token=token,
            issued_at_millis=issued_at,
            identity=identity,
        )
