"""Pytest fixtures and configuration for mangovoice tests."""

import os

# Keep the app's module-level engine off the working directory
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from unittest.mock import MagicMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from mangovoice.database.database import Base
from mangovoice.database import models  # noqa: F401
from mangovoice.engine.analytics import VoiceAnalyticsLogger
from mangovoice.engine.background import InlineExecutor
from mangovoice.engine.events import AttributionSlot, SearchChannel
from mangovoice.engine.intent_router import IntentRouter
from mangovoice.engine.self_healing import SelfHealingService
from mangovoice.engine.speech import RecordingSpeaker
from mangovoice.integrations.openai_client import OpenAIClient
from mangovoice.models.voice_event import SelfHealingAnalysis


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def test_engine():
    """Create a fresh in-memory engine shared by every session in one test.

    StaticPool keeps a single connection so sessions opened by the analytics
    logger and the remediation service see the same database.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session factory bound to the test engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def db_session(session_factory):
    """Create a database session for testing."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def speaker():
    return RecordingSpeaker()


@pytest.fixture
def search_channel():
    return SearchChannel()


@pytest.fixture
def attribution_slot():
    return AttributionSlot()


@pytest.fixture
def sample_analysis():
    """Analysis the mocked LLM returns for a misheard watchlist command."""
    return SelfHealingAnalysis(
        intent="markWatched",
        confidence=0.9,
        reasoning="User says they already watched the movie.",
        suggested_patterns=["i watched {movie}", "actually i watched {movie}"],
    )


@pytest.fixture
def mock_openai_client(sample_analysis):
    """OpenAIClient stand-in that never touches the network."""
    client = MagicMock(spec=OpenAIClient)
    client.analyze_failed_utterance.return_value = sample_analysis
    return client


@pytest.fixture
def self_healing_service(mock_openai_client, session_factory):
    return SelfHealingService(mock_openai_client, session_factory=session_factory)


@pytest.fixture
def analytics(session_factory):
    return VoiceAnalyticsLogger(session_factory, executor=InlineExecutor())


@pytest.fixture
def router(speaker, search_channel, attribution_slot, analytics, self_healing_service):
    """IntentRouter with inline execution so side effects are observable immediately."""
    return IntentRouter(
        search_channel=search_channel,
        attribution_slot=attribution_slot,
        speaker=speaker,
        analytics=analytics,
        self_healing=self_healing_service,
        executor=InlineExecutor(),
    )


@pytest.fixture
def test_client(db_session: Session, router: IntentRouter):
    """Create a FastAPI test client with overridden database and router dependencies."""
    from mangovoice.api.app import app, get_router
    from mangovoice.database.database import get_db

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_router] = lambda: router

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
