"""
Request-scoped accessors for the components built by create_app.
"""

from typing import Optional

from fastapi import Header, Request

from src.config.settings import Settings
from src.security.identity import extract_bearer
from src.services.channel_authorizer import ChannelAuthorizer
from src.services.inbound_relay import InboundRelay
from src.services.session_issuer import SessionIssuer


def get_bearer_credential(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    return extract_bearer(authorization)


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_session_issuer(request: Request) -> SessionIssuer:
    return request.app.state.session_issuer


def get_channel_authorizer(request: Request) -> ChannelAuthorizer:
    return request.app.state.channel_authorizer


def get_inbound_relay(request: Request) -> InboundRelay:
    return request.app.state.inbound_relay
