"""
Security layer - Session token codec and bearer identity resolution
"""

from src.security.identity import (
    Base64UsernameResolver,
    IdentityResolver,
    StaticIdentityResolver,
    extract_bearer,
)
from src.security.token_codec import DecodedToken, decode, encode, issue, sign, verify

__all__ = [
    "Base64UsernameResolver",
    "IdentityResolver",
    "StaticIdentityResolver",
    "extract_bearer",
    "DecodedToken",
    "decode",
    "encode",
    "issue",
    "sign",
    "verify",
]
