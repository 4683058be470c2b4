"""
Inbound relay models
"""

from typing import Optional

from pydantic import BaseModel, Field


class RelayRequest(BaseModel):
    """
    Reply posted by the external workflow

    This is the only accepted shape; older field names are not aliased.
    """
    conversationId: Optional[str] = Field(default=None, description="Target conversation")
    reply: Optional[str] = Field(default=None, description="Assistant reply text")

    model_config = {
        "json_schema_extra": {
            "examples": [{"conversationId": "conv_1700000000000_k3j9a", "reply": "Here is your answer."}]
        }
    }


class RelayResponse(BaseModel):
    success: bool = True
