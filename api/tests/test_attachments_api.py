from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from jobtracker.api.dependencies import get_attachment_controller
from jobtracker.core.files import filename_from_content_disposition
from jobtracker.main import app
from jobtracker.services.attachments import AttachmentController
from jobtracker.services.repository import get_repository
from jobtracker.services.store import InMemoryStore


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def api_client(store: InMemoryStore) -> TestClient:
    app.dependency_overrides[get_repository] = lambda: store

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def job_id(api_client: TestClient) -> str:
    response = api_client.post("/api/jobs", json={"job_title": "SWE", "job_url": "https://x/1"})
    assert response.status_code == 201
    return response.json()["id"]


def _upload(client: TestClient, job_id: str, name: str = "cv.pdf", file_type: str | None = "resume", **kwargs):
    data = {"file_type": file_type} if file_type is not None else {}
    return client.post(
        f"/api/jobs/{job_id}/attachments",
        files={"file": (name, kwargs.get("content", b"%PDF-1.7"), kwargs.get("mime_type", "application/pdf"))},
        data=data,
    )


def test_upload_list_and_get_metadata(api_client: TestClient, job_id: str) -> None:
    uploaded = _upload(api_client, job_id)

    assert uploaded.status_code == 201
    body = uploaded.json()
    assert body["job_id"] == job_id
    assert body["file_name"] == "cv.pdf"
    assert body["file_type"] == "resume"
    assert body["mime_type"] == "application/pdf"
    assert body["file_size"] == len(b"%PDF-1.7")
    assert "content" not in body

    listed = api_client.get(f"/api/jobs/{job_id}/attachments").json()
    assert [row["id"] for row in listed] == [body["id"]]

    metadata = api_client.get(f"/api/jobs/{job_id}/attachments/{body['id']}")
    assert metadata.status_code == 200
    assert metadata.json()["file_name"] == "cv.pdf"


def test_upload_defaults_file_type_to_resume(api_client: TestClient, job_id: str) -> None:
    response = _upload(api_client, job_id, file_type=None)

    assert response.status_code == 201
    assert response.json()["file_type"] == "resume"


def test_upload_rejects_unknown_file_type(api_client: TestClient, store: InMemoryStore, job_id: str) -> None:
    response = _upload(api_client, job_id, file_type="portfolio")

    assert response.status_code == 422
    assert store.attachments == {}


def test_upload_rejects_disallowed_mime_type(api_client: TestClient, job_id: str) -> None:
    response = _upload(api_client, job_id, name="photo.png", mime_type="image/png", content=b"\x89PNG")

    assert response.status_code == 422


def test_upload_to_unknown_job_returns_404(api_client: TestClient) -> None:
    assert _upload(api_client, "missing").status_code == 404


def test_upload_over_configured_limit_returns_422(store: InMemoryStore) -> None:
    app.dependency_overrides[get_repository] = lambda: store
    app.dependency_overrides[get_attachment_controller] = lambda: AttachmentController(store, store, max_bytes=8)
    try:
        with TestClient(app) as client:
            job_id = client.post("/api/jobs", json={"job_title": "SWE", "job_url": "https://x/1"}).json()["id"]
            exact = _upload(client, job_id, content=b"12345678")
            over = _upload(client, job_id, content=b"123456789")
    finally:
        app.dependency_overrides.clear()

    assert exact.status_code == 201
    assert over.status_code == 422
    assert "too large" in over.json()["detail"]
    assert len(store.attachments) == 1


def test_download_returns_bytes_and_attachment_headers(api_client: TestClient, job_id: str) -> None:
    uploaded = _upload(api_client, job_id, name="cover letter (final).pdf", content=b"%PDF-1.7 body").json()

    response = api_client.get(f"/api/jobs/{job_id}/attachments/{uploaded['id']}/download")

    assert response.status_code == 200
    assert response.content == b"%PDF-1.7 body"
    assert response.headers["content-type"].startswith("application/pdf")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith("attachment;")
    assert filename_from_content_disposition(disposition) == "cover letter (final).pdf"


def test_download_through_another_job_returns_404(api_client: TestClient, job_id: str) -> None:
    uploaded = _upload(api_client, job_id).json()
    other = api_client.post("/api/jobs", json={"job_title": "PM", "job_url": "https://x/2"}).json()

    response = api_client.get(f"/api/jobs/{other['id']}/attachments/{uploaded['id']}/download")

    assert response.status_code == 404


def test_delete_attachment_twice(api_client: TestClient, job_id: str) -> None:
    uploaded = _upload(api_client, job_id).json()

    first = api_client.delete(f"/api/jobs/{job_id}/attachments/{uploaded['id']}")
    second = api_client.delete(f"/api/jobs/{job_id}/attachments/{uploaded['id']}")

    assert first.status_code == 204
    assert second.status_code == 404
    assert api_client.get(f"/api/jobs/{job_id}/attachments").json() == []


def test_delete_attachment_by_id_only(api_client: TestClient, store: InMemoryStore, job_id: str) -> None:
    uploaded = _upload(api_client, job_id).json()

    assert api_client.delete(f"/api/attachments/{uploaded['id']}").status_code == 204
    assert store.attachments == {}
    assert api_client.delete(f"/api/attachments/{uploaded['id']}").status_code == 404


def test_deleting_job_removes_attachments(api_client: TestClient, store: InMemoryStore, job_id: str) -> None:
    _upload(api_client, job_id)
    _upload(api_client, job_id, name="letter.pdf", file_type="cover_letter")

    assert api_client.delete(f"/api/jobs/{job_id}").status_code == 204
    assert store.attachments == {}
    assert api_client.get(f"/api/jobs/{job_id}/attachments").status_code == 404
