"""API tests with the pipeline dependencies overridden."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from backend.app import app, get_orchestrator, get_sentiment_collector, get_storage
from backend.auth import CurrentUser, get_auth_client, get_current_user, resolve_user
from radar.errors import AuthError, UnreachableError
from radar.models import AnalysisRecord


@pytest.fixture
def client(orchestrator, storage):
    app.dependency_overrides[get_current_user] = lambda: CurrentUser(id="user-1")
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestAuth:
    def test_missing_token_is_401(self):
        app.dependency_overrides[get_auth_client] = lambda: MagicMock()
        app.dependency_overrides[get_storage] = lambda: MagicMock()
        try:
            response = TestClient(app).get("/v1/analyses")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_resolve_user(self):
        auth = MagicMock()
        auth.auth.get_user.return_value = SimpleNamespace(
            user=SimpleNamespace(id="user-1", email="a@example.com")
        )
        user = resolve_user(auth, "token")
        assert user == CurrentUser(id="user-1", email="a@example.com")
        auth.auth.get_user.assert_called_once_with("token")

    def test_resolve_user_rejects_bad_token(self):
        auth = MagicMock()
        auth.auth.get_user.side_effect = RuntimeError("invalid JWT")
        with pytest.raises(AuthError):
            resolve_user(auth, "token")

    def test_resolve_user_without_user(self):
        auth = MagicMock()
        auth.auth.get_user.return_value = SimpleNamespace(user=None)
        with pytest.raises(AuthError):
            resolve_user(auth, "token")


class TestAnalyses:
    def test_invalid_domain_is_400(self, client, storage):
        response = client.post("/v1/analyses", json={"domain": "example"})

        assert response.status_code == 400
        assert "Invalid domain" in response.json()["error"]
        assert storage.records == {}

    def test_completed_analysis(self, client):
        response = client.post("/v1/analyses", json={"domain": "https://example.com"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "completed"
        assert body["domain"] == "https://example.com"
        assert body["record"]["summary"].startswith("Summary details")
        assert "owner_id" not in body["record"]

    def test_failed_analysis_still_returns_record(self, client, reachability):
        reachability.check.side_effect = UnreachableError("Domain returned non-success status code: 503")

        response = client.post("/v1/analyses", json={"domain": "https://example.com"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "failed"
        assert "503" in body["message"]
        assert body["record"]["error_message"] == body["message"]

    def test_list_and_get(self, client):
        created = client.post("/v1/analyses", json={"domain": "https://example.com"}).json()

        listing = client.get("/v1/analyses")
        assert listing.status_code == 200
        assert listing.json()[0]["id"] == created["analysisId"]

        detail = client.get(f"/v1/analyses/{created['analysisId']}")
        assert detail.status_code == 200
        assert detail.json()["url"] == "https://example.com"

    def test_get_unknown_is_404(self, client):
        assert client.get("/v1/analyses/999").status_code == 404

    def test_legacy_status_row_is_handled_error(self, client):
        legacy = MagicMock()
        legacy.get_analysis.side_effect = lambda analysis_id, owner_id: AnalysisRecord.from_row(
            {"id": analysis_id, "user_id": owner_id, "url": "https://example.com", "status": "queued"}
        )
        app.dependency_overrides[get_storage] = lambda: legacy

        response = client.get("/v1/analyses/5")

        assert response.status_code == 500
        assert "unknown status" in response.json()["error"]


class TestSentiment:
    def test_trigger(self, client):
        collector = MagicMock()
        collector.trigger_collection.return_value = "s_1"
        app.dependency_overrides[get_sentiment_collector] = lambda: collector

        response = client.post("/v1/sentiment", json={"keywords": [" acme ", "widgets"]})

        assert response.status_code == 200
        assert response.json() == {"snapshotId": "s_1", "keywords": ["acme", "widgets"]}

    def test_result_not_ready(self, client):
        collector = MagicMock()
        collector.fetch_snapshot.return_value = None
        app.dependency_overrides[get_sentiment_collector] = lambda: collector

        response = client.get("/v1/sentiment/s_1")

        assert response.status_code == 200
        assert response.json()["ready"] is False

    def test_result_ready(self, client):
        collector = MagicMock()
        collector.fetch_snapshot.return_value = [{"title": "Love it"}]
        collector.summarize_sentiment.return_value = "Positive."
        app.dependency_overrides[get_sentiment_collector] = lambda: collector

        body = client.get("/v1/sentiment/s_1").json()

        assert body["ready"] is True
        assert body["titles"] == ["Love it"]
        assert body["sentiment"] == "Positive."


def test_health():
    response = TestClient(app).get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] in {"ok", "degraded"}
    assert set(body["dependencies"]) == {"supabase", "supabaseAuth", "tavily", "gemini", "brightdata"}
