"""
Session token codec.

A token binds a conversation id, its issue time (epoch millis) and the
identity it was issued to, with an HMAC-SHA256 signature over a
canonical JSON payload:

    <b64url(payload)>.<b64url(signature)>

Both segments use URL-safe base64 without padding so tokens can travel
in headers, query strings and form bodies unescaped. Tokens are never
stored; they are verified from their own content plus the shared secret.
"""

import base64
import hashlib
import hmac
import json
from dataclasses import dataclass
from typing import Union

from src.utils.errors import MalformedToken

SEGMENT_SEPARATOR = "."

# Encoded payload segments longer than this are rejected before decoding
MAX_PAYLOAD_SEGMENT_LENGTH = 8192

Secret = Union[str, bytes]


@dataclass(frozen=True)
class DecodedToken:
    """Structural content of a session token"""
    conversation_id: str
    issued_at_millis: int
    signature: bytes
    subject: str = ""


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(segment: str) -> bytes:
    padding = "=" * (-len(segment) % 4)
    return base64.b64decode(segment + padding, altchars=b"-_", validate=True)


def _check_claims(conversation_id, issued_at_millis, subject) -> None:
    if not isinstance(conversation_id, str):
        raise TypeError("conversation_id must be a string")
    # bool is an int subclass; a boolean timestamp is a caller bug
    if isinstance(issued_at_millis, bool) or not isinstance(issued_at_millis, int):
        raise TypeError("issued_at_millis must be an integer")
    if not isinstance(subject, str):
        raise TypeError("subject must be a string")


def canonical_payload(conversation_id: str, issued_at_millis: int, subject: str = "") -> bytes:
    """Compact, key-sorted JSON; signing and verification hash these exact bytes."""
    _check_claims(conversation_id, issued_at_millis, subject)
    claims = {"cid": conversation_id, "iat": issued_at_millis, "sub": subject}
    return json.dumps(claims, sort_keys=True, separators=(",", ":")).encode("utf-8")


def sign(conversation_id: str, issued_at_millis: int, secret: Secret, subject: str = "") -> bytes:
    """
    Compute the HMAC-SHA256 signature for a set of token claims.

    Args:
        conversation_id: Normalized conversation id
        issued_at_millis: Issue time in epoch milliseconds
        secret: Shared signing secret
        subject: Identity the token is issued to

    Returns:
        Raw 32-byte digest
    """
    key = secret.encode("utf-8") if isinstance(secret, str) else secret
    payload = canonical_payload(conversation_id, issued_at_millis, subject)
    return hmac.new(key, payload, hashlib.sha256).digest()


def encode(conversation_id: str, issued_at_millis: int, signature: bytes, subject: str = "") -> str:
    """Serialize claims and signature into a transport-safe token string."""
    payload = canonical_payload(conversation_id, issued_at_millis, subject)
    return f"{_b64encode(payload)}{SEGMENT_SEPARATOR}{_b64encode(signature)}"


def issue(conversation_id: str, issued_at_millis: int, secret: Secret, subject: str = "") -> str:
    """Sign and encode in one step."""
    signature = sign(conversation_id, issued_at_millis, secret, subject)
    return encode(conversation_id, issued_at_millis, signature, subject)


def decode(token: str) -> DecodedToken:
    """
    Split a token into its claims and signature.

    Raises:
        MalformedToken: If the token does not have exactly two non-empty
            segments, the payload segment is oversized, a segment is not
            valid base64url, or the payload is not a well-formed claims object
    """
    if not isinstance(token, str):
        raise MalformedToken("Token must be a string")

    segments = token.split(SEGMENT_SEPARATOR)
    if len(segments) != 2 or not all(segments):
        raise MalformedToken("Token must have exactly two segments")

    payload_segment, signature_segment = segments
    if len(payload_segment) > MAX_PAYLOAD_SEGMENT_LENGTH:
        raise MalformedToken("Token payload is too long")

    try:
        payload = _b64decode(payload_segment)
        signature = _b64decode(signature_segment)
        claims = json.loads(payload.decode("utf-8"))
    except ValueError as exc:
        # binascii.Error, UnicodeDecodeError and JSONDecodeError are all ValueErrors
        raise MalformedToken(f"Token segment could not be decoded: {exc}") from exc
    except RecursionError as exc:
        raise MalformedToken("Token payload is nested too deeply") from exc

    if not isinstance(claims, dict):
        raise MalformedToken("Token payload must be an object")

    conversation_id = claims.get("cid")
    issued_at_millis = claims.get("iat")
    subject = claims.get("sub", "")
    try:
        _check_claims(conversation_id, issued_at_millis, subject)
    except TypeError as exc:
        raise MalformedToken(str(exc)) from exc

    return DecodedToken(
        conversation_id=conversation_id,
        issued_at_millis=issued_at_millis,
        signature=signature,
        subject=subject,
    )


def verify(
    token: str,
    expected_conversation_id: str,
    expected_issued_at_millis: int,
    secret: Secret,
    subject: str = "",
) -> bool:
    """
    Decide whether a token was issued for exactly these claims.

    The expected token is rebuilt from the expected claims and compared
    with the presented one in constant time, so any change to either
    segment fails verification. Never raises.

    Returns:
        True only if the token matches the expected claims and secret
    """
    try:
        decode(token)
        expected = issue(expected_conversation_id, expected_issued_at_millis, secret, subject)
    except (MalformedToken, TypeError, ValueError):
        return False

    return hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))
