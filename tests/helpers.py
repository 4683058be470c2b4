"""
Test helpers shared across modules.
"""

import base64

from src.config.settings import Settings

SECRET = "s3cret"
FIXED_NOW = 1700000000000


def login_token(username: str, password: str = "pw") -> str:
    """Bearer credential in the front end's login token format."""
    return base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")


def bearer(credential: str) -> dict:
    return {"Authorization": f"Bearer {credential}"}


def make_settings(**overrides) -> Settings:
    values = {
        "conversation_secret": SECRET,
        "broadcast_backend": "memory",
        "pusher_app_id": "",
        "pusher_key": "",
        "pusher_secret": "",
        "pusher_cluster": "",
        "channel_prefix": "chat",
        "publish_public_fallback": True,
        "webhook_secret": "",
        "conversation_token_max_age_seconds": None,
        "log_level": "WARNING",
        "log_file": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)
