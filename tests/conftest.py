"""Pytest configuration and fixtures for the integrations service tests."""

import os

# Settings are cached on first import
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.pop("WEBHOOK_SECRET", None)
os.environ.pop("SCHEDULER_API_KEY", None)
os.environ.pop("ENCRYPTION_KEY", None)

from typing import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from ux_integrations.api.dependencies import (
    get_current_user,
    get_integration_repository,
    get_log_repository,
)
from ux_integrations.integrations import create_adapter
from ux_integrations.main import app
from ux_integrations.models import Integration, IntegrationStatus, IntegrationType
from ux_integrations.repositories import InMemoryIntegrationRepository, InMemoryLogRepository

TEST_USER_ID = "user-1"


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """HTTP client whose requests are answered by `handler`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def mock_adapter_factory(handler: Callable[[httpx.Request], httpx.Response]):
    """Adapter factory that routes every provider call to `handler`."""
    def factory(provider_type, config, **options):
        return create_adapter(provider_type, config, http_client=mock_client(handler), **options)
    return factory


def custom_config(endpoint: str = "https://api.example.com/metrics", **overrides):
    config = {"endpoint": endpoint, "method": "GET", "auth": {"type": "none"}}
    config.update(overrides)
    return config


@pytest.fixture
def integration_repo():
    return InMemoryIntegrationRepository()


@pytest.fixture
def log_repo():
    return InMemoryLogRepository()


@pytest.fixture
def make_integration(integration_repo):
    """Store an integration directly, bypassing validation."""
    async def make(
        integration_type: IntegrationType = IntegrationType.CUSTOM,
        config=None,
        status: IntegrationStatus = IntegrationStatus.ACTIVE,
        user_id: str = TEST_USER_ID,
        name: str = "Test Integration",
    ) -> Integration:
        return await integration_repo.create(Integration(
            user_id=user_id,
            integration_type=integration_type,
            name=name,
            status=status,
            config=config if config is not None else custom_config(),
        ))
    return make


@pytest.fixture
def client(integration_repo, log_repo):
    """Test client wired to in-memory storage and a fixed user."""
    app.dependency_overrides[get_current_user] = lambda: {"id": TEST_USER_ID, "email": "user@example.com"}
    app.dependency_overrides[get_integration_repository] = lambda: integration_repo
    app.dependency_overrides[get_log_repository] = lambda: log_repo

    yield TestClient(app)

    app.dependency_overrides.clear()
