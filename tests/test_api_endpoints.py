"""Integration tests for API endpoints.

These tests verify API endpoints work correctly end-to-end against the
inline router and in-memory database from conftest.
"""

from fastapi.testclient import TestClient


def _handle(test_client: TestClient, utterance: str, source: str = "voice") -> dict:
    response = test_client.post("/voice/handle", json={"utterance": utterance, "source": source})
    assert response.status_code == 200
    return response.json()


class TestHealth:
    """Test health endpoint."""

    def test_health(self, test_client):
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestVoiceHandle:
    """Test POST /voice/handle."""

    def test_dispatch(self, test_client):
        data = _handle(test_client, "Sally recommends The Matrix")
        assert data["status"] == "dispatched"
        assert data["target_phrase"] == "The Matrix"
        assert data["normalized_attribution"] == "Sally"
        assert data["search_type"] == "direct"
        assert data["voice_event_id"]

    def test_rejected(self, test_client):
        data = _handle(test_client, "hello there")
        assert data["status"] == "rejected"
        assert data["reason"] == "parse_error"

    def test_typed_query(self, test_client):
        data = _handle(test_client, "funny movies for kids", source="search_bar")
        assert data["status"] == "dispatched"
        assert data["search_type"] == "semantic"

    def test_empty_utterance(self, test_client):
        response = test_client.post("/voice/handle", json={"utterance": "  "})
        assert response.status_code == 400

    def test_invalid_source(self, test_client):
        response = test_client.post("/voice/handle", json={"utterance": "add Heat", "source": "radio"})
        assert response.status_code == 422


class TestVoiceOutcome:
    """Test POST /voice/outcome."""

    def test_report_no_results(self, test_client):
        dispatched = _handle(test_client, "Sally recommends I watch Heat")

        response = test_client.post(
            "/voice/outcome",
            json={"voice_event_id": dispatched["voice_event_id"], "result_count": 0, "screen": "Search"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["outcome"] == "no_results"
        assert data["should_escalate"] is True
        assert data["screen"] == "Search"
        assert data["command"]["target_phrase"] == "I watch Heat"

    def test_explicit_outcome(self, test_client):
        dispatched = _handle(test_client, "Sally recommends Heat")
        response = test_client.post(
            "/voice/outcome",
            json={"voice_event_id": dispatched["voice_event_id"], "outcome": "ambiguous"},
        )
        assert response.status_code == 200
        assert response.json()["should_escalate"] is False

    def test_unknown_event(self, test_client):
        response = test_client.post("/voice/outcome", json={"voice_event_id": "missing", "outcome": "success"})
        assert response.status_code == 404


class TestSearchClassify:
    """Test POST /search/classify."""

    def test_classify(self, test_client):
        response = test_client.post("/search/classify", json={"query": "the movie Jaws"})
        assert response.status_code == 200
        assert response.json() == {"query": "the movie Jaws", "search_type": "direct"}

    def test_empty_query(self, test_client):
        response = test_client.post("/search/classify", json={"query": ""})
        assert response.status_code == 400


class TestVoiceState:
    """Test the read endpoints."""

    def test_search_requests_drained(self, test_client):
        _handle(test_client, "add Heat")
        _handle(test_client, "Keo suggested Alien")

        data = test_client.get("/voice/search-requests").json()
        assert data["count"] == 2
        assert [r["target_phrase"] for r in data["requests"]] == ["Heat", "Alien"]
        assert test_client.get("/voice/search-requests").json()["count"] == 0

    def test_attribution(self, test_client):
        _handle(test_client, "kayo suggested Alien")
        assert test_client.get("/voice/attribution").json() == {"attribution": "Keo"}

    def test_events(self, test_client):
        dispatched = _handle(test_client, "Sally recommends Heat")

        data = test_client.get("/voice/events").json()
        assert data["total"] == 1
        assert data["events"][0]["id"] == dispatched["voice_event_id"]

    def test_event_by_id(self, test_client):
        dispatched = _handle(test_client, "Sally recommends Heat")
        response = test_client.get(f"/voice/events/{dispatched['voice_event_id']}")
        assert response.status_code == 200
        assert response.json()["router_status"] == "dispatched"

    def test_event_not_found(self, test_client):
        assert test_client.get("/voice/events/missing").status_code == 404

    def test_pending_pattern_suggestions(self, test_client):
        rejected = _handle(test_client, "actually I watched this already")

        data = test_client.get("/voice/pattern-suggestions", params={"status": "pending"}).json()
        assert data["total"] == 1
        suggestion = data["suggestions"][0]
        assert suggestion["voice_event_id"] == rejected["voice_event_id"]
        assert suggestion["suggested_intent"] == "markWatched"

    def test_pattern_suggestions_filtered_by_other_status(self, test_client):
        """Test that a status other than pending filters instead of listing everything."""
        _handle(test_client, "actually I watched this already")

        rejected = test_client.get("/voice/pattern-suggestions", params={"status": "rejected"}).json()
        assert rejected["total"] == 0
        assert test_client.get("/voice/pattern-suggestions").json()["total"] == 1
