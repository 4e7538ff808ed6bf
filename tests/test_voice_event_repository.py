"""Tests for voice event persistence and the analytics logger."""

import uuid
from datetime import datetime, timedelta

import pytest

from mangovoice.database.repository import PatternSuggestionRepository, VoiceEventRepository
from mangovoice.engine.analytics import VoiceAnalyticsLogger
from mangovoice.engine.background import InlineExecutor
from mangovoice.models.command import HandlerOutcome, SearchType, VoiceSource
from mangovoice.models.voice_event import PatternSuggestion, RouterStatus, SelfHealingAnalysis, VoiceEvent


@pytest.fixture
def voice_event_repository(db_session):
    return VoiceEventRepository(db_session)


def _voice_event(**overrides) -> VoiceEvent:
    data = {
        "id": str(uuid.uuid4()),
        "utterance": "Sally recommends Heat",
        "source": VoiceSource.VOICE,
        "command_type": "recommender_search",
        "command_attribution": "Sally",
        "command_target": "Heat",
        "final_command_type": "recommender_search",
        "normalized_attribution": "Sally",
        "search_type": SearchType.DIRECT,
        "router_status": RouterStatus.DISPATCHED,
    }
    data.update(overrides)
    return VoiceEvent(**data)


class TestVoiceEventRepository:
    """Test VoiceEventRepository operations."""

    def test_create_and_get(self, voice_event_repository):
        voice_event = _voice_event()
        created = voice_event_repository.create(voice_event)

        assert created.id == voice_event.id
        fetched = voice_event_repository.get(voice_event.id)
        assert fetched.utterance == "Sally recommends Heat"
        assert fetched.search_type == SearchType.DIRECT
        assert fetched.source == VoiceSource.VOICE
        assert fetched.self_healing_triggered is False

    def test_get_missing(self, voice_event_repository):
        assert voice_event_repository.get("missing") is None

    def test_update_result(self, voice_event_repository):
        voice_event = voice_event_repository.create(_voice_event())

        updated = voice_event_repository.update_result(
            voice_event.id,
            HandlerOutcome.NO_RESULTS,
            result_count=0,
            self_healing_triggered=True,
        )

        assert updated.handler_result == HandlerOutcome.NO_RESULTS
        assert updated.result_count == 0
        assert updated.self_healing_triggered is True

    def test_update_missing_returns_none(self, voice_event_repository):
        assert voice_event_repository.update_result("missing", HandlerOutcome.SUCCESS) is None

    def test_record_secondary_result(self, voice_event_repository):
        voice_event = voice_event_repository.create(_voice_event())
        updated = voice_event_repository.record_secondary_result(voice_event.id, "markWatched", 0.7)
        assert updated.secondary_intent == "markWatched"
        assert updated.secondary_confidence == 0.7
        assert updated.self_healing_triggered is True

    def test_list_recent_newest_first(self, voice_event_repository):
        base = datetime.utcnow()
        for offset, utterance in enumerate(["add Heat", "add Alien", "add Jaws"]):
            created_at = base + timedelta(seconds=offset)
            voice_event_repository.create(_voice_event(utterance=utterance, created_at=created_at))

        recent = voice_event_repository.list_recent(limit=2)
        assert [e.utterance for e in recent] == ["add Jaws", "add Alien"]


class TestPatternSuggestionRepository:
    """Test PatternSuggestionRepository operations."""

    def test_list_pending_oldest_first(self, db_session):
        repository = PatternSuggestionRepository(db_session)
        base = datetime.utcnow()
        repository.create(PatternSuggestion(id="s1", utterance="I watched Heat", created_at=base))
        repository.create(
            PatternSuggestion(id="s2", utterance="old", status="accepted", created_at=base + timedelta(seconds=1))
        )
        repository.create(PatternSuggestion(id="s3", utterance="save Alien", created_at=base + timedelta(seconds=2)))

        assert [s.id for s in repository.list_pending()] == ["s1", "s3"]
        assert [s.id for s in repository.list_recent()] == ["s3", "s2", "s1"]

    def test_list_by_status(self, db_session):
        repository = PatternSuggestionRepository(db_session)
        repository.create(PatternSuggestion(id="s1", utterance="I watched Heat"))
        repository.create(PatternSuggestion(id="s2", utterance="old", status="accepted"))

        assert [s.id for s in repository.list_by_status("accepted")] == ["s2"]
        assert repository.list_by_status("rejected") == []


class TestVoiceAnalyticsLogger:
    """Test best-effort analytics writes."""

    def test_event_outcome_and_secondary_result(self, session_factory, db_session):
        analytics = VoiceAnalyticsLogger(session_factory, executor=InlineExecutor())
        voice_event = _voice_event(utterance="add Heat", command_type="movie_search", command_attribution=None)

        analytics.log_event(voice_event)
        analytics.log_outcome(voice_event.id, HandlerOutcome.SUCCESS, result_count=2, self_healing_triggered=True)
        analytics.log_secondary_result(
            voice_event.id,
            SelfHealingAnalysis(intent="addToWatchlist", confidence=0.6),
        )

        stored = VoiceEventRepository(db_session).get(voice_event.id)
        assert stored.handler_result == HandlerOutcome.SUCCESS
        assert stored.result_count == 2
        assert stored.secondary_intent == "addToWatchlist"
        assert stored.secondary_confidence == 0.6

    def test_failed_analysis_recorded_as_empty(self, session_factory, db_session):
        analytics = VoiceAnalyticsLogger(session_factory, executor=InlineExecutor())
        voice_event = _voice_event()
        analytics.log_event(voice_event)
        analytics.log_secondary_result(voice_event.id, None)

        stored = VoiceEventRepository(db_session).get(voice_event.id)
        assert stored.self_healing_triggered is True
        assert stored.secondary_intent is None

    def test_duplicate_event_swallowed(self, session_factory, db_session):
        """Test that a failing write is logged, not raised."""
        analytics = VoiceAnalyticsLogger(session_factory, executor=InlineExecutor())
        voice_event = _voice_event()
        analytics.log_event(voice_event)
        analytics.log_event(voice_event)

        assert len(VoiceEventRepository(db_session).list_recent()) == 1
