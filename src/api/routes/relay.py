"""
Inbound relay endpoint called by the n8n workflow
"""

from typing import Optional

from fastapi import APIRouter, Depends

from src.api.dependencies import get_bearer_credential, get_inbound_relay
from src.api.schemas import ErrorResponse, RelayRequest, RelayResponse, UpdatesResponse
from src.services.inbound_relay import InboundRelay

router = APIRouter(tags=["relay"])


@router.post(
    "/receive-response",
    response_model=RelayResponse,
    responses={code: {"model": ErrorResponse} for code in (400, 401, 403, 500, 503)},
)
async def receive_response(
    payload: RelayRequest,
    credential: Optional[str] = Depends(get_bearer_credential),
    relay: InboundRelay = Depends(get_inbound_relay),
):
    """Publish one workflow reply to the conversation's broadcast channel."""
    await relay.relay(credential, payload.conversationId, payload.reply)
    return RelayResponse()


@router.get("/receive-response")
async def receive_response_info():
    # People open the webhook URL in a browser while wiring up the workflow
    return {"status": "ok", "message": "This endpoint only accepts POST requests from n8n."}


@router.get("/get-updates", response_model=UpdatesResponse)
async def get_updates():
    """Legacy polling endpoint; always empty since replies are pushed."""
    return UpdatesResponse()
