"""
Test configuration and fixtures for the insights engine.

- Fixed reference time and default engine thresholds
- Mock Claude service and in-memory narrative cache
- TestClient with service dependency overrides
"""

import pytest
from fastapi.testclient import TestClient

from app.api.insights import get_insights_service, get_narrative_service
from app.main import app
from app.services.insights_config import InsightsConfig
from app.services.insights_service import InsightsService
from app.services.narrative_cache import InMemoryNarrativeCache
from app.services.narrative_service import NarrativeService
from tests.factories import NOW
from tests.fixtures.mocks import MockClaudeService


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def now():
    """Reference time used by every rolling window in a test."""
    return NOW


@pytest.fixture
def config() -> InsightsConfig:
    """Default thresholds, independent of environment settings."""
    return InsightsConfig()


@pytest.fixture
def insights_service(config) -> InsightsService:
    return InsightsService(config)


# =============================================================================
# Narrative Fixtures
# =============================================================================


@pytest.fixture
def mock_claude_service():
    """
    Mock Claude service for testing AI functionality.

    Returns a mock service that can be configured per test.
    """
    return MockClaudeService()


@pytest.fixture
def narrative_cache():
    return InMemoryNarrativeCache()


@pytest.fixture
def narrative_service(mock_claude_service, narrative_cache, insights_service):
    return NarrativeService(
        ai_service=mock_claude_service,
        cache=narrative_cache,
        insights_service=insights_service,
        ttl=3600,
    )


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def client(insights_service, narrative_service):
    """TestClient with engine and narrative services overridden."""
    app.dependency_overrides[get_insights_service] = lambda: insights_service
    app.dependency_overrides[get_narrative_service] = lambda: narrative_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
