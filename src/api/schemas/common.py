"""
Shared response models
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Envelope for every failed request"""
    success: bool = False
    error: str = Field(..., description="Human readable reason")


class HealthResponse(BaseModel):
    """
    Health check response

    Attributes:
        status: Service health status
        service: Service name
        version: API version
        broadcast_configured: Broadcast provider has credentials
        signing_configured: Session token secret is set
    """
    status: str = Field(..., description="Health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="API version")
    broadcast_configured: bool
    signing_configured: bool


class UpdatesResponse(BaseModel):
    """Legacy polling response; replies are pushed over the broadcast channel now"""
    success: bool = True
    message: str = "Using Pusher for real-time updates"
    messages: List[Dict[str, Any]] = Field(default_factory=list)
    count: int = 0
