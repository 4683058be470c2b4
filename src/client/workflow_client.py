"""
Client for the n8n workflow webhook that receives user messages.
"""

import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Sequence

import httpx
from loguru import logger

from src.config.constants import BEARER_PREFIX
from src.utils.errors import WorkflowError


@dataclass
class Attachment:
    id: str
    name: str
    type: str
    size: int
    url: Optional[str] = None
    data: Optional[str] = None


class WorkflowClient:
    """Posts chat messages to the workflow webhook."""

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.url = url
        self._token = token
        self._http_client = http_client
        self._timeout = timeout

    async def send_message(
        self,
        conversation_id: str,
        username: str,
        text: str,
        attachments: Sequence[Attachment] = (),
    ) -> Dict[str, Any]:
        """
        Deliver one user message to the workflow.

        The workflow answers asynchronously through /receive-response;
        the webhook's own response body is returned as-is when it is JSON.

        Raises:
            WorkflowError: URL not configured, request failed, or non-2xx status
        """
        if not self.url:
            raise WorkflowError("N8N webhook URL not configured")

        body = {
            "conversationId": conversation_id,
            "username": username,
            "text": text,
            "attachments": [asdict(a) for a in attachments],
            "timestamp": int(time.time() * 1000),
        }
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"{BEARER_PREFIX}{self._token}"

        try:
            if self._http_client is not None:
                response = await self._http_client.post(self.url, json=body, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self.url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise WorkflowError(f"Webhook request failed: {exc}") from exc

        if not response.is_success:
            raise WorkflowError(f"Webhook failed: {response.status_code}")

        try:
            return response.json()
        except ValueError as exc:
            logger.error(f"n8n response JSON parse error: {exc}")
            return {}
