"""Integration tests for API endpoints."""

from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from constellation.config import Settings
from constellation.models.schemas import KeywordCreate, KeywordUpdate, StoredKeyword
from constellation.services.keyword_store import KeywordStoreError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _sample_keywords() -> list[StoredKeyword]:
    return [
        StoredKeyword(id="a1", term="Trust", source="P1", weight=0.9,
                      orientation="exploratory", artifact_role="probe",
                      pipeline_role="rq_trigger"),
        StoredKeyword(id="a2", term="trust ", source="P1", weight=0.5,
                      orientation="exploratory", artifact_role="probe"),
        StoredKeyword(id="b1", term="Privacy", source="P1", weight=0.7,
                      orientation="critical", artifact_role="probe"),
        StoredKeyword(id="c1", term="Repair", weight=0.4,
                      orientation="problem_solving", artifact_role="solution_system"),
    ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

class FakeKeywordStore:
    """In-memory fake keyword store for testing."""

    def __init__(self, keywords: list[StoredKeyword] | None = None):
        self.keywords = list(keywords or [])
        self.created: list[KeywordCreate] = []
        self.updates: list[tuple[str, KeywordUpdate]] = []
        self.fail = False

    async def fetch_keywords(self) -> list[StoredKeyword]:
        if self.fail:
            raise KeywordStoreError("Notion API returned 503")
        return list(self.keywords)

    async def create_keywords(self, keywords: list[KeywordCreate]) -> list[str]:
        if self.fail:
            raise KeywordStoreError("Notion API returned 503")
        self.created.extend(keywords)
        return [f"page-{i}" for i in range(len(keywords))]

    async def update_keyword(self, page_id: str, update: KeywordUpdate) -> None:
        if self.fail:
            raise KeywordStoreError("Notion API returned 503")
        self.updates.append((page_id, update))

    async def close(self) -> None:
        pass


@pytest.fixture
def fake_store():
    return FakeKeywordStore(_sample_keywords())


@pytest.fixture
def test_settings():
    """Provide test settings that don't require real API keys."""
    settings = Settings(
        notion_api_key="test-key",
        notion_keywords_db_id="test-db",
        cors_origins="http://localhost:5173",
        environment="test",
    )
    with patch("constellation.api.routes.get_settings", return_value=settings), \
         patch("constellation.main.get_settings", return_value=settings):
        yield settings


@pytest.fixture
def app(fake_store, test_settings):
    """Create a test FastAPI app with the fake keyword store."""
    from constellation.main import create_app

    test_app = create_app()
    test_app.state.keyword_store = fake_store
    return test_app


@pytest_asyncio.fixture
async def client(app):
    """Create an async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# GET /api/health
# ---------------------------------------------------------------------------

class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "timestamp" in data


# ---------------------------------------------------------------------------
# GET /api/graph
# ---------------------------------------------------------------------------

class TestGraphEndpoint:
    """Tests for GET /api/graph."""

    @pytest.mark.asyncio
    async def test_graph_nodes_and_edges(self, client):
        response = await client.get("/api/graph")
        assert response.status_code == 200
        data = response.json()

        assert [n["id"] for n in data["nodes"]] == ["a1", "b1", "c1"]
        trust = data["nodes"][0]
        assert trust["frequency"] == 2
        assert trust["weight"] == 0.9
        assert trust["sourcePapers"] == ["P1"]

        [edge] = data["edges"]
        assert (edge["source"], edge["target"]) == ("a1", "b1")
        assert edge["weights"]["coOccurrence"] == 1.0
        assert edge["weights"]["rolePrior"] == 0.3
        assert edge["finalWeight"] == pytest.approx(0.445, abs=1e-6)
        assert edge["edgeType"] == "contextualizes"

    @pytest.mark.asyncio
    async def test_graph_uses_configured_engine_settings(self, client, test_settings):
        test_settings.graph_min_weight = 0.5
        response = await client.get("/api/graph")
        assert response.status_code == 200
        assert response.json()["edges"] == []

    @pytest.mark.asyncio
    async def test_graph_empty_store(self, client, fake_store):
        fake_store.keywords = []
        response = await client.get("/api/graph")
        assert response.status_code == 200
        assert response.json() == {"nodes": [], "edges": []}

    @pytest.mark.asyncio
    async def test_graph_store_failure_returns_502(self, client, fake_store):
        fake_store.fail = True
        response = await client.get("/api/graph")
        assert response.status_code == 502
        assert "Keyword store unavailable" in response.json()["detail"]


# ---------------------------------------------------------------------------
# GET /api/graph/neighbors/{node_id}
# ---------------------------------------------------------------------------

class TestNeighborsEndpoint:
    """Tests for GET /api/graph/neighbors/{node_id}."""

    @pytest.mark.asyncio
    async def test_neighbors(self, client):
        response = await client.get("/api/graph/neighbors/a1", params={"k": 3})
        assert response.status_code == 200
        data = response.json()

        assert data["nodeId"] == "a1"
        assert data["neighbors"] == [
            {"neighborId": "b1", "weight": pytest.approx(0.445, abs=1e-6),
             "edgeType": "contextualizes"},
        ]

    @pytest.mark.asyncio
    async def test_unknown_node_returns_empty_list(self, client):
        response = await client.get("/api/graph/neighbors/nope")
        assert response.status_code == 200
        assert response.json() == {"nodeId": "nope", "neighbors": []}

    @pytest.mark.asyncio
    async def test_invalid_k_falls_back_to_default(self, client, fake_store):
        fake_store.keywords = [
            StoredKeyword(id=f"n{i}", term=f"Term {i}", source="P1",
                          orientation="critical", artifact_role="probe")
            for i in range(8)
        ]
        response = await client.get("/api/graph/neighbors/n0", params={"k": "many"})
        assert response.status_code == 200
        assert len(response.json()["neighbors"]) == 5

    @pytest.mark.asyncio
    async def test_k_limits_results(self, client, fake_store):
        fake_store.keywords = [
            StoredKeyword(id=f"n{i}", term=f"Term {i}", source="P1",
                          orientation="critical", artifact_role="probe")
            for i in range(8)
        ]
        response = await client.get("/api/graph/neighbors/n0", params={"k": 2})
        neighbors = response.json()["neighbors"]
        assert len(neighbors) == 2
        assert neighbors[0]["weight"] >= neighbors[1]["weight"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw, expected", [("2.5", 2), ("3abc", 3), (" 1", 1), ("0", 5)])
    async def test_k_uses_leading_integer(self, client, fake_store, raw, expected):
        fake_store.keywords = [
            StoredKeyword(id=f"n{i}", term=f"Term {i}", source="P1",
                          orientation="critical", artifact_role="probe")
            for i in range(8)
        ]
        response = await client.get("/api/graph/neighbors/n0", params={"k": raw})
        assert response.status_code == 200
        assert len(response.json()["neighbors"]) == expected

    @pytest.mark.asyncio
    async def test_store_failure_returns_502(self, client, fake_store):
        fake_store.fail = True
        response = await client.get("/api/graph/neighbors/a1")
        assert response.status_code == 502


# ---------------------------------------------------------------------------
# /api/keywords
# ---------------------------------------------------------------------------

class TestKeywordEndpoints:
    """Tests for the keyword CRUD endpoints."""

    @pytest.mark.asyncio
    async def test_list_keywords(self, client):
        response = await client.get("/api/keywords")
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 4
        assert data["keywords"][0]["artifact_role"] == "probe"
        assert data["keywords"][0]["pipeline_role"] == "rq_trigger"

    @pytest.mark.asyncio
    async def test_create_keywords(self, client, fake_store):
        response = await client.post("/api/keywords", json={"keywords": [
            {"term": "Care", "orientation": "critical", "artifact_role": "probe"},
        ]})
        assert response.status_code == 200
        assert response.json() == {"created": 1, "pageIds": ["page-0"]}
        assert fake_store.created[0].term == "Care"

    @pytest.mark.asyncio
    async def test_create_requires_keywords(self, client):
        response = await client.post("/api/keywords", json={"keywords": []})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_rejects_invalid_orientation(self, client):
        response = await client.post("/api/keywords", json={"keywords": [
            {"term": "Care", "orientation": "speculative", "artifact_role": "probe"},
        ]})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_update_keyword(self, client, fake_store):
        response = await client.patch("/api/keywords/a1", json={"active": False, "weight": 0.2})
        assert response.status_code == 200
        assert response.json() == {"updated": True, "id": "a1"}

        [(page_id, update)] = fake_store.updates
        assert page_id == "a1"
        assert update.active is False
        assert update.weight == 0.2
        assert update.notes is None

    @pytest.mark.asyncio
    async def test_update_store_failure_returns_502(self, client, fake_store):
        fake_store.fail = True
        response = await client.patch("/api/keywords/a1", json={"active": True})
        assert response.status_code == 502
