"""
API schemas for request/response models
"""

from src.api.schemas.common import ErrorResponse, HealthResponse, UpdatesResponse
from src.api.schemas.relay import RelayRequest, RelayResponse
from src.api.schemas.session import ChannelAuthRequest, SessionInitRequest, SessionInitResponse

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "UpdatesResponse",
    "RelayRequest",
    "RelayResponse",
    "ChannelAuthRequest",
    "SessionInitRequest",
    "SessionInitResponse",
]
