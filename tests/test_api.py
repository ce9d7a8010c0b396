import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from portfolio.dependencies.services import get_services
from portfolio.errors import DependencyUnavailable, Forbidden
from portfolio.main import app
from portfolio.schemas import RecommendationRead
from portfolio.services.recommendation_service import Recommendation, RecommendationReason
from portfolio.services.search_engine import SearchHits
from portfolio.services.search_projection import SearchProjection

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def project_row(**overrides):
    row = dict(
        id=uuid.uuid4(),
        creator_id=uuid.uuid4(),
        title="Dashboard",
        description=None,
        content=None,
        cover_image=None,
        tags=["react"],
        tech_stack=[],
        is_published=True,
        view_count=0,
        engagement_score=0.0,
        created_at=NOW,
        updated_at=NOW,
    )
    row.update(overrides)
    return SimpleNamespace(**row)


class StubOrchestrator:
    def __init__(self):
        self.calls = []

    async def create_project(self, creator_id, data):
        self.calls.append(("create", creator_id, data))
        return SimpleNamespace(project=project_row(creator_id=creator_id, title=data.title))

    async def update_project(self, project_id, actor_id, data):
        raise Forbidden("Only the creator can modify this project")

    async def health_check(self):
        return {"status": "degraded", "timestamp": NOW.isoformat(), "checks": {}}


class StubRecommendations:
    async def personalized_recommendations(self, user_id, limit):
        return [Recommendation(project=project_row(), score=0.8, reason=RecommendationReason.FOLLOWED_CREATOR)]

    async def trending_projects(self, time_window, limit):
        raise DependencyUnavailable("trending_projects is temporarily unavailable")


class StubSearchEngine:
    async def search(self, request):
        return SearchHits(hits=[], total=0, facets={})


@pytest.fixture
def client():
    services = SimpleNamespace(
        orchestrator=StubOrchestrator(),
        recommendations=StubRecommendations(),
        search=SearchProjection(StubSearchEngine()),
    )
    app.dependency_overrides[get_services] = lambda: services
    try:
        yield TestClient(app), services
    finally:
        app.dependency_overrides.clear()


def test_create_project_wraps_data_in_envelope(client):
    http, services = client
    user_id = uuid.uuid4()

    response = http.post("/api/v1/projects", json={"title": "Dashboard"}, headers={"X-User-Id": str(user_id)})

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["title"] == "Dashboard"
    assert body["data"]["creator_id"] == str(user_id)
    assert services.orchestrator.calls[0][1] == user_id


def test_missing_identity_is_unauthorized(client):
    http, _ = client
    response = http.post("/api/v1/projects", json={"title": "Dashboard"})
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": {"code": "UNAUTHORIZED", "message": "Login required"}}


def test_invalid_body_is_validation_error(client):
    http, _ = client
    response = http.post(
        "/api/v1/projects",
        json={"title": "x", "tags": ["<script>"]},
        headers={"X-User-Id": str(uuid.uuid4())},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["details"]


def test_portfolio_errors_map_to_codes(client):
    http, _ = client
    forbidden = http.patch(
        f"/api/v1/projects/{uuid.uuid4()}", json={"title": "x"}, headers={"X-User-Id": str(uuid.uuid4())}
    )
    unavailable = http.get("/api/v1/recommendations/trending")

    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["code"] == "FORBIDDEN"
    assert unavailable.status_code == 503
    assert unavailable.json()["error"]["code"] == "DEPENDENCY_UNAVAILABLE"


def test_personalized_recommendations(client):
    http, _ = client
    response = http.get("/api/v1/recommendations/personalized", headers={"X-User-Id": str(uuid.uuid4())})
    assert response.status_code == 200
    [item] = response.json()["data"]
    assert item["reason"] == "followed_creator"
    assert item["score"] == 0.8
    assert RecommendationRead.model_validate(item).reason == RecommendationReason.FOLLOWED_CREATOR


def test_search_validates_parameters(client):
    http, _ = client
    ok = http.get("/api/v1/search", params={"query": "dash", "sort_by": "date"})
    bad = http.get("/api/v1/search", params={"sort_by": "random"})
    too_deep = http.get("/api/v1/search", params={"page": 1000, "limit": 50})

    assert ok.status_code == 200
    assert ok.json()["data"]["total_count"] == 0
    assert bad.status_code == 400
    assert bad.json()["error"]["code"] == "VALIDATION_ERROR"
    assert too_deep.status_code == 400
    assert too_deep.json()["error"]["code"] == "VALIDATION_ERROR"


def test_health_reports_status(client):
    http, _ = client
    response = http.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
