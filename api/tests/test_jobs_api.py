from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from jobtracker.core.errors import StoreUnavailableError, UpstreamFailureError
from jobtracker.main import app
from jobtracker.schemas.search import SearchQuery, SearchResponse, SearchResult
from jobtracker.services.repository import get_repository
from jobtracker.services.search_provider import get_search_provider
from jobtracker.services.store import InMemoryStore


class FakeSearchProvider:
    def __init__(self, results: list[SearchResult] | None = None, error: Exception | None = None) -> None:
        self.results = results or []
        self.error = error
        self.queries: list[SearchQuery] = []

    async def search(self, query: SearchQuery) -> SearchResponse:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return SearchResponse(count=len(self.results), jobs=self.results)


class UnavailableStore(InMemoryStore):
    async def list_jobs(self, **kwargs):
        raise StoreUnavailableError("database unavailable")


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def provider() -> FakeSearchProvider:
    return FakeSearchProvider([SearchResult(job_title="SWE", job_url="https://x/1", company_name="Acme")])


@pytest.fixture
def api_client(store: InMemoryStore, provider: FakeSearchProvider) -> TestClient:
    app.dependency_overrides[get_repository] = lambda: store
    app.dependency_overrides[get_search_provider] = lambda: provider

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


def _create(client: TestClient, **overrides) -> dict:
    payload = {"job_title": "Backend Engineer", "job_url": "https://boards.example.com/1", **overrides}
    response = client.post("/api/jobs", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_and_get_job(api_client: TestClient) -> None:
    created = _create(api_client, company_name="Acme", job_type="", is_remote=True)

    assert created["status"] == "new"
    assert created["source"] == "manual"
    assert created["job_type"] is None

    response = api_client.get(f"/api/jobs/{created['id']}")
    assert response.status_code == 200
    assert response.json()["company_name"] == "Acme"
    assert response.json()["is_remote"] is True


@pytest.mark.parametrize("payload", [{"job_title": "", "job_url": "https://x"}, {"job_title": "SWE"}])
def test_create_rejects_missing_required_fields(api_client: TestClient, store: InMemoryStore, payload: dict) -> None:
    response = api_client.post("/api/jobs", json=payload)

    assert response.status_code == 422
    assert store.jobs == {}


def test_create_rejects_unknown_job_type(api_client: TestClient) -> None:
    response = api_client.post("/api/jobs", json={"job_title": "SWE", "job_url": "https://x", "job_type": "gig"})

    assert response.status_code == 422


def test_list_jobs_filters_by_status(api_client: TestClient) -> None:
    first = _create(api_client, job_url="https://x/a")
    _create(api_client, job_url="https://x/b")
    api_client.patch(f"/api/jobs/{first['id']}/status", json={"status": "applied"})

    applied = api_client.get("/api/jobs", params={"status": "applied"}).json()
    everything = api_client.get("/api/jobs").json()

    assert [job["id"] for job in applied] == [first["id"]]
    assert len(everything) == 2


def test_list_jobs_rejects_unknown_status_filter(api_client: TestClient) -> None:
    assert api_client.get("/api/jobs", params={"status": "ghosted"}).status_code == 422


def test_replace_job(api_client: TestClient) -> None:
    created = _create(api_client, notes="first call")

    response = api_client.put(
        f"/api/jobs/{created['id']}",
        json={"job_title": "Staff Engineer", "job_url": "https://boards.example.com/1", "salary": "200k"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["job_title"] == "Staff Engineer"
    assert body["salary"] == "200k"
    assert body["notes"] is None
    assert body["status"] == "new"


def test_replace_unknown_job_returns_404(api_client: TestClient) -> None:
    response = api_client.put("/api/jobs/missing", json={"job_title": "SWE", "job_url": "https://x"})

    assert response.status_code == 404


def test_patch_status_in_any_direction(api_client: TestClient) -> None:
    created = _create(api_client)

    for status in ("rejected", "new", "shortlisted", "viewed", "applied"):
        response = api_client.patch(f"/api/jobs/{created['id']}/status", json={"status": status})
        assert response.status_code == 200
        assert response.json()["status"] == status
        assert response.json()["job_title"] == "Backend Engineer"


def test_patch_status_rejects_unknown_value(api_client: TestClient) -> None:
    created = _create(api_client)

    response = api_client.patch(f"/api/jobs/{created['id']}/status", json={"status": "hired"})

    assert response.status_code == 422
    assert "invalid status" in response.json()["detail"]


def test_patch_status_unknown_job_returns_404(api_client: TestClient) -> None:
    response = api_client.patch("/api/jobs/missing/status", json={"status": "viewed"})

    assert response.status_code == 404


def test_delete_job(api_client: TestClient) -> None:
    created = _create(api_client)

    assert api_client.delete(f"/api/jobs/{created['id']}").status_code == 204
    assert api_client.get(f"/api/jobs/{created['id']}").status_code == 404
    assert api_client.delete(f"/api/jobs/{created['id']}").status_code == 404


def test_search_then_promote_marks_result_saved(api_client: TestClient, provider: FakeSearchProvider) -> None:
    first = api_client.post("/api/jobs/search", json={"search_term": "swe"})
    assert first.status_code == 200
    assert first.json()["count"] == 1
    assert first.json()["jobs"][0]["is_saved"] is False
    assert provider.queries[0].site_names == ["indeed", "linkedin"]

    promoted = api_client.post("/api/jobs/promote", json=first.json()["jobs"][0])
    assert promoted.status_code == 201
    assert promoted.json()["source"] == "mcp"

    second = api_client.post("/api/jobs/search", json={"search_term": "swe"})
    assert second.json()["jobs"][0]["is_saved"] is True


def test_promote_twice_creates_duplicate_jobs(api_client: TestClient) -> None:
    result = {"job_title": "SWE", "job_url": "https://x/1"}

    first = api_client.post("/api/jobs/promote", json=result).json()
    second = api_client.post("/api/jobs/promote", json=result).json()

    assert first["id"] != second["id"]
    assert len(api_client.get("/api/jobs", params={"source": "mcp"}).json()) == 2


def test_search_failure_returns_502(api_client: TestClient, provider: FakeSearchProvider) -> None:
    provider.error = UpstreamFailureError("search provider returned status 500")

    response = api_client.post("/api/jobs/search", json={"search_term": "swe"})

    assert response.status_code == 502


def test_search_requires_search_term(api_client: TestClient) -> None:
    assert api_client.post("/api/jobs/search", json={"search_term": ""}).status_code == 422


def test_unavailable_store_returns_503(provider: FakeSearchProvider) -> None:
    app.dependency_overrides[get_repository] = lambda: UnavailableStore()
    try:
        with TestClient(app) as client:
            response = client.get("/api/jobs")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 503
