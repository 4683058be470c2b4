"""
Session and channel authorization models for the realtime API
"""

from typing import Optional, Union

from pydantic import BaseModel, Field


class SessionInitRequest(BaseModel):
    """Request a session token for one conversation"""
    conversationId: Optional[str] = Field(
        default=None,
        description="Caller-chosen conversation id (3+ chars, at least one alphanumeric)"
    )

    model_config = {
        "json_schema_extra": {
            "examples": [{"conversationId": "conv_1700000000000_k3j9a"}]
        }
    }


class SessionInitResponse(BaseModel):
    """
    Issued session token

    `iat` repeats `issuedAtMillis` under the name the channel
    authorization request expects.
    """
    success: bool = True
    conversationId: str = Field(..., description="Normalized conversation id the token is bound to")
    conversationToken: str = Field(..., description="Signed session token")
    issuedAtMillis: int = Field(..., description="Issue time, epoch milliseconds")
    iat: int = Field(..., description="Alias of issuedAtMillis")


class ChannelAuthRequest(BaseModel):
    """
    Private channel authorization request

    Sent by the broadcast client library, either as JSON or as a
    form-encoded body, with the session parameters added by the chat client.
    Documents the body shape only; the endpoint reads it as a plain dict.
    """
    socket_id: Optional[str] = None
    channel_name: Optional[str] = None
    conversationId: Optional[str] = None
    conversationToken: Optional[str] = None
    iat: Optional[Union[int, str]] = None
