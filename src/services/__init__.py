"""
Service layer - Session issuing, channel authorization, inbound relay and broadcast providers
"""

from src.services.broadcast import (
    BroadcastProvider,
    BroadcastSubscriber,
    InMemoryBroadcastProvider,
    PusherBroadcastProvider,
    Subscription,
    build_broadcast_provider,
)
from src.services.channel_authorizer import ChannelAuthorizer
from src.services.inbound_relay import InboundRelay, RelayResult
from src.services.session_issuer import IssuedSession, SessionIssuer

__all__ = [
    "BroadcastProvider",
    "BroadcastSubscriber",
    "InMemoryBroadcastProvider",
    "PusherBroadcastProvider",
    "Subscription",
    "build_broadcast_provider",
    "ChannelAuthorizer",
    "InboundRelay",
    "RelayResult",
    "IssuedSession",
    "SessionIssuer",
]
