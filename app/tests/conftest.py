"""Shared fixtures for the whole test suite."""

import pytest
import structlog

from infrastructure.configuration import Settings
from infrastructure.services import providers


@pytest.fixture(autouse=True)
def clear_logging_context():
    """Start every test without context bound by a previous one."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def clear_provider_caches():
    """Reset the lru-cached providers around a test."""

    def _clear():
        providers.get_settings.cache_clear()
        providers.configure_preference_store(None)
        providers.get_notification_service.cache_clear()

    _clear()
    yield
    _clear()


@pytest.fixture
def settings_factory(monkeypatch):
    """Factory building real Settings from environment overrides.

    Example:
        settings = settings_factory(WHATSAPP_API_URL="https://graph.test/v1/123/messages")
    """

    def _factory(**env) -> Settings:
        for key, value in env.items():
            if value is None:
                monkeypatch.delenv(key, raising=False)
            else:
                monkeypatch.setenv(key, str(value))
        return Settings(_env_file=None)

    return _factory
