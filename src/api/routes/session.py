"""
Session token issuance and private channel authorization endpoints
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from loguru import logger

from src.api.dependencies import (
    get_bearer_credential,
    get_channel_authorizer,
    get_session_issuer,
)
from src.api.schemas import ChannelAuthRequest, ErrorResponse, SessionInitRequest, SessionInitResponse
from src.services.channel_authorizer import ChannelAuthorizer
from src.services.session_issuer import SessionIssuer

router = APIRouter(tags=["session"])

_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}

_AUTH_BODY_SCHEMA = ChannelAuthRequest.model_json_schema()


@router.post("/session-init", response_model=SessionInitResponse, responses=_ERRORS)
async def session_init(
    payload: SessionInitRequest,
    credential: Optional[str] = Depends(get_bearer_credential),
    issuer: SessionIssuer = Depends(get_session_issuer),
):
    """
    Mint a session token for a conversation.

    The token later unlocks the conversation's private broadcast channel
    through /pusher-auth.
    """
    session = issuer.issue(credential, payload.conversationId)
    return SessionInitResponse(
        conversationId=session.conversation_id,
        conversationToken=session.token,
        issuedAtMillis=session.issued_at_millis,
        iat=session.issued_at_millis,
    )


async def _read_auth_body(request: Request) -> Dict[str, Any]:
    """
    Read a JSON or form-encoded channel authorization body as a plain dict.

    Field types are left to ChannelAuthorizer so its gates keep their order.
    """
    content_type = request.headers.get("content-type", "")
    data: Dict[str, Any] = {}
    if "application/json" in content_type:
        try:
            parsed = await request.json()
        except (ValueError, RecursionError):
            logger.debug("Channel auth body is not valid JSON")
            parsed = {}
        if isinstance(parsed, dict):
            data = parsed
    else:
        form = await request.form()
        data = {key: value for key, value in form.items() if isinstance(value, str)}
    return data


@router.post(
    "/pusher-auth",
    responses=_ERRORS,
    openapi_extra={
        "requestBody": {
            "content": {
                "application/json": {"schema": _AUTH_BODY_SCHEMA},
                "application/x-www-form-urlencoded": {"schema": _AUTH_BODY_SCHEMA},
            }
        }
    },
)
async def pusher_auth(
    request: Request,
    credential: Optional[str] = Depends(get_bearer_credential),
    authorizer: ChannelAuthorizer = Depends(get_channel_authorizer),
):
    """
    Authorize a private channel subscription.

    Returns the broadcast provider's auth payload unchanged.
    """
    body = await _read_auth_body(request)
    return authorizer.authorize(
        credential,
        socket_id=body.get("socket_id"),
        channel_name=body.get("channel_name"),
        conversation_id=body.get("conversationId"),
        token=body.get("conversationToken"),
        issued_at=body.get("iat"),
    )
