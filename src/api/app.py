"""
Main FastAPI application for the chat relay

This module creates and configures the FastAPI application with:
- CORS middleware for the browser chat UI
- Session, channel authorization and inbound relay routes
- Structured {success: false, error} responses for every failure
- Health check endpoint
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from src.api.dependencies import get_settings_from_app
from src.api.routes import relay, session
from src.api.schemas import ErrorResponse, HealthResponse
from src.config.settings import Settings, get_settings
from src.security.identity import Base64UsernameResolver, IdentityResolver
from src.services.broadcast import BroadcastProvider, build_broadcast_provider
from src.services.channel_authorizer import ChannelAuthorizer
from src.services.inbound_relay import InboundRelay
from src.services.session_issuer import SessionIssuer
from src.utils.errors import RelayError
from src.utils.logger import setup_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan events

    Nothing to open or close: every component is stateless. Startup only
    reports which capabilities are configured.
    """
    settings: Settings = app.state.settings
    provider: BroadcastProvider = app.state.broadcast_provider

    logger.info(f"🚀 {settings.service_name} starting...")
    if not settings.signing_configured:
        logger.warning("⚠️  CONVERSATION_SECRET not set: /session-init and /pusher-auth will answer 503")
    if not provider.is_configured:
        logger.warning("⚠️  Broadcast provider not configured: /pusher-auth and /receive-response will answer 503")
    if not settings.webhook_secret:
        logger.info("WEBHOOK_SECRET not set: /receive-response accepts any caller")

    yield

    logger.info(f"🛑 {settings.service_name} shutting down...")


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[BroadcastProvider] = None,
    identity_resolver: Optional[IdentityResolver] = None,
) -> FastAPI:
    """
    Build the application around one immutable Settings instance.

    Args:
        settings: Configuration; defaults to the process-wide settings
        provider: Broadcast provider; defaults to the one named by BROADCAST_BACKEND
        identity_resolver: Bearer credential resolver; defaults to Base64UsernameResolver
    """
    settings = settings or get_settings()
    setup_logger(settings.log_level, settings.log_file)

    provider = provider or build_broadcast_provider(settings)
    identity_resolver = identity_resolver or Base64UsernameResolver()

    app = FastAPI(
        title="Chat Relay API",
        description="""
        Relay between a browser chat UI, an n8n workflow and a broadcast
        service.

        * `POST /session-init` issues a signed conversation token
        * `POST /pusher-auth` authorizes a private channel subscription
        * `POST /receive-response` publishes a workflow reply
        """,
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.broadcast_provider = provider
    app.state.session_issuer = SessionIssuer(settings, identity_resolver)
    app.state.channel_authorizer = ChannelAuthorizer(settings, provider, identity_resolver)
    app.state.inbound_relay = InboundRelay(settings, provider)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=exc.message).model_dump(),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path} -> 500: {exc}")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Internal server error").model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.debug(f"{request.method} {request.url.path} -> 400: {exc.errors()}")
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error="Invalid request body").model_dump(),
        )

    app.include_router(session.router)
    app.include_router(relay.router)

    @app.get("/", tags=["root"])
    async def root():
        """
        Root endpoint - API information
        """
        return {
            "service": settings.service_name,
            "version": settings.version,
            "status": "running",
            "docs": "/docs",
            "endpoints": {
                "health": "/health",
                "session_init": "/session-init",
                "pusher_auth": "/pusher-auth",
                "receive_response": "/receive-response",
            },
        }

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health_check(request: Request, app_settings: Settings = Depends(get_settings_from_app)):
        """
        Health check endpoint

        Reports whether signing and broadcast credentials are configured.
        """
        return HealthResponse(
            status="healthy",
            service=app_settings.service_name,
            version=app_settings.version,
            broadcast_configured=request.app.state.broadcast_provider.is_configured,
            signing_configured=app_settings.signing_configured,
        )

    return app


app = create_app()
