"""Search API tests."""

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from tasklens.api.deps import get_search_service
from tasklens.main import app
from tasklens.search.errors import EmbeddingUnavailable, InvalidQuery, StorageUnavailable
from tasklens.search.hydrator import hydrate
from tasklens.search.merger import merge
from tasklens.search.models import MatchedMessage, MessageHit, TaskHit
from tasklens.search.ranking import rank

from factories import build_message, build_task


@pytest.fixture
def mock_service():
    """Search service whose search() is an AsyncMock."""
    service = AsyncMock()
    app.dependency_overrides[get_search_service] = lambda: service
    yield service
    app.dependency_overrides.pop(get_search_service, None)


@pytest.fixture
async def client():
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


def _sample_results():
    candidates = merge(
        [TaskHit(build_task("T1", name="Fix login", description="Login fails after reset"), 0.2)],
        [
            MessageHit(build_message("M1", "T1", content="login is broken again"), 0.3),
            MessageHit(build_message("M2", "T2", content="deploy failed on login step"), 0.1),
        ],
        "login",
    )
    candidates = hydrate(candidates, lambda ids: [build_task(task_id) for task_id in ids])
    return rank(candidates.values(), "login")


class TestSearchEndpoint:
    """Tests for GET /api/search."""

    async def test_returns_enriched_results(self, client, mock_service):
        mock_service.search.return_value = _sample_results()

        response = await client.get("/api/search", params={"q": " login "})

        assert response.status_code == 200
        data = response.json()
        assert data["query"] == "login"
        assert data["total"] == 2
        first, second = data["results"]
        assert first["id"] == "T2"
        assert first["match_source"] == "message"
        assert first["task_context_snippet"] is None
        assert first["relevant_messages"][0]["id"] == "M2"
        assert second["id"] == "T1"
        assert second["match_source"] == "task_and_message"
        assert second["task_context_snippet"] == "Login fails after reset"
        mock_service.search.assert_awaited_once_with(" login ")

    async def test_result_payload_fields(self, client, mock_service):
        mock_service.search.return_value = _sample_results()

        response = await client.get("/api/search", params={"q": "login"})

        result = response.json()["results"][1]
        for key in (
            "id",
            "name",
            "description",
            "tags",
            "category",
            "created_at",
            "updated_at",
            "best_overall_distance",
            "match_source",
            "relevant_messages",
            "task_context_snippet",
        ):
            assert key in result
        assert set(result["relevant_messages"][0]) == set(MatchedMessage.model_fields)

    async def test_no_matches_returns_empty_list(self, client, mock_service):
        mock_service.search.return_value = []

        response = await client.get("/api/search", params={"q": "nothing here"})

        assert response.status_code == 200
        assert response.json() == {"query": "nothing here", "results": [], "total": 0}

    async def test_invalid_query_returns_400(self, client, mock_service):
        mock_service.search.side_effect = InvalidQuery(
            "Search query must be at least 2 characters long"
        )

        response = await client.get("/api/search", params={"q": "a"})

        assert response.status_code == 400
        assert "at least 2 characters" in response.json()["detail"]

    async def test_missing_query_returns_400(self, client, mock_service):
        mock_service.search.side_effect = InvalidQuery("too short")

        response = await client.get("/api/search")

        assert response.status_code == 400
        mock_service.search.assert_awaited_once_with("")

    async def test_embedding_failure_returns_503(self, client, mock_service):
        mock_service.search.side_effect = EmbeddingUnavailable("model failed to load")

        response = await client.get("/api/search", params={"q": "login"})

        assert response.status_code == 503
        assert "model failed" not in response.json()["detail"]

    async def test_storage_failure_returns_generic_500(self, client, mock_service):
        mock_service.search.side_effect = StorageUnavailable(
            "sqlite3.OperationalError: database is locked", stage="hydration"
        )

        response = await client.get("/api/search", params={"q": "login"})

        assert response.status_code == 500
        detail = response.json()["detail"]
        assert "sqlite3" not in detail
        assert "locked" not in detail


async def test_health_check(client):
    """GET /health reports healthy."""
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
