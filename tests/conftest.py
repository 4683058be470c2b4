"""
Shared fixtures for the relay tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.config.settings import Settings
from src.services.broadcast import InMemoryBroadcastProvider
from helpers import login_token, make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def hub() -> InMemoryBroadcastProvider:
    return InMemoryBroadcastProvider(key="test-key", secret="test-secret")


@pytest.fixture
def alice() -> str:
    return login_token("alice")


@pytest.fixture
def bob() -> str:
    return login_token("bob")
