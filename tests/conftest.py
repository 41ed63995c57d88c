"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing application modules.
# Storage is left unconfigured; tests patch the Supabase client per module.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("OPENAI_API_KEY", "sk-test-openai-key")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_stripe_secret_key")
os.environ.setdefault("STRIPE_PUBLISHABLE_KEY", "pk_test_stripe_publishable_key")
os.environ.setdefault("FRONTEND_URL", "https://valueslens.test")

from valueslens.assessment import AssessmentSession, MemoryBlobStore  # noqa: E402
from valueslens.schemas.assessment import AssessmentState, SortedValues  # noqa: E402

ORDER = ["A", "B", "C", "D", "E"]
CATALOG_ORDER = ["integrity", "care", "courage", "growth", "honesty"]


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from valueslens.core.config import get_settings

    get_settings.cache_clear()
    settings = get_settings()
    yield settings
    get_settings.cache_clear()


@pytest.fixture
def store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def session(store: MemoryBlobStore) -> AssessmentSession:
    """A session started over the five-card order A..E."""
    assessment = AssessmentSession(store=store, catalog_ids=ORDER)
    assessment.init_session(session_id="session-1", shuffled_value_ids=list(ORDER))
    return assessment


@pytest.fixture
def sorted_state() -> AssessmentState:
    """Five catalog values, all sorted, all very important."""
    return AssessmentState(
        session_id="session-2",
        shuffled_value_ids=list(CATALOG_ORDER),
        current_card_index=len(CATALOG_ORDER),
        sorted_values=SortedValues(very=list(CATALOG_ORDER)),
    )


@pytest.fixture
def ranked_session(sorted_state: AssessmentState, store: MemoryBlobStore) -> AssessmentSession:
    """A session ranked integrity, care, courage, growth, honesty."""
    assessment = AssessmentSession(store=store, state=sorted_state)
    assessment.auto_select()
    assessment.set_ranking(list(CATALOG_ORDER))
    return assessment


@pytest.fixture
def completion_payload() -> dict[str, Any]:
    """camelCase body for POST /sessions/complete."""
    return {
        "sessionId": "session-2",
        "consentResearch": True,
        "sortedValues": {"very": list(CATALOG_ORDER), "somewhat": [], "less": []},
        "rankedValues": list(CATALOG_ORDER),
        "transcript": "A story",
        "definitions": {
            "integrity": {"tagline": "Standing firm", "definition": "You keep your word.", "userEdited": True},
        },
    }


@pytest.fixture
def mock_supabase_client() -> MagicMock:
    """Provide a mocked Supabase client.

    Returns:
        MagicMock: Mocked Supabase client for testing.
    """
    mock_client = MagicMock()
    mock_response = MagicMock()
    mock_response.data = []
    mock_client.table.return_value.select.return_value.limit.return_value.execute.return_value = mock_response
    return mock_client


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Yields:
        TestClient: FastAPI test client.
    """
    from valueslens.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def patch_openai() -> Generator[MagicMock, None, None]:
    """Configured OpenAI client for both generation services."""
    mock_client = MagicMock()
    with (
        patch("valueslens.services.definition_service.get_openai_client", return_value=mock_client),
        patch("valueslens.services.voop_service.get_openai_client", return_value=mock_client),
    ):
        yield mock_client
