"""
Bearer credential handling.

Resolving a bearer credential to a caller identity belongs to an external
authentication collaborator; IdentityResolver is the seam it plugs into.
"""

import base64
import binascii
from abc import ABC, abstractmethod
from typing import Dict, Optional

from src.config.constants import BEARER_PREFIX


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    """
    Pull the credential out of an Authorization header value.

    Returns:
        The trimmed credential, or None if the header is absent, does not
        use the Bearer scheme, or carries an empty credential
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    credential = authorization[len(BEARER_PREFIX):].strip()
    return credential or None


class IdentityResolver(ABC):
    """Interface for mapping a bearer credential to a caller identity."""

    @abstractmethod
    def resolve(self, credential: str) -> Optional[str]:
        """Return the caller identity, or None if the credential is not recognized."""
        pass


class Base64UsernameResolver(IdentityResolver):
    """
    Identity from login tokens of the form base64("<username>:<rest>").

    This matches the tokens issued by the chat front end's login flow;
    the username is everything before the first colon.
    """

    def resolve(self, credential: str) -> Optional[str]:
        try:
            raw = base64.b64decode(credential, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError, ValueError):
            return None

        username, sep, _ = raw.partition(":")
        if not sep or not username:
            return None
        return username


class StaticIdentityResolver(IdentityResolver):
    """Fixed credential -> identity table, for tests and single-tenant deployments."""

    def __init__(self, identities: Dict[str, str]):
        self._identities = dict(identities)

    def resolve(self, credential: str) -> Optional[str]:
        return self._identities.get(credential)
