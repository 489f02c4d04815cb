from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

import httpx

from jobtracker.core.config import get_settings
from jobtracker.core.errors import NotFoundError, StoreUnavailableError, TrackerValidationError, UpstreamFailureError
from jobtracker.core.files import DEFAULT_MIME_TYPE, filename_from_content_disposition
from jobtracker.schemas.attachments import DownloadedAttachment
from jobtracker.schemas.search import SearchQuery, SearchResponse

logger = logging.getLogger(__name__)


class TrackerClient:
    """Job store, attachment store and search provider backed by the tracker HTTP API."""

    cascades_attachments = True

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def list_jobs(self, *, status: str | None = None, source: str | None = None) -> list[dict[str, Any]]:
        params = {key: value for key, value in {"status": status, "source": source}.items() if value}
        return await self._request_json("GET", "/api/jobs", params=params)

    async def get_job(self, job_id: str) -> dict[str, Any]:
        return await self._request_json("GET", f"/api/jobs/{job_id}")

    async def create_job(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request_json("POST", "/api/jobs", json=payload)

    async def replace_job(self, job_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request_json("PUT", f"/api/jobs/{job_id}", json=payload)

    async def patch_job_status(self, job_id: str, status: str) -> dict[str, Any]:
        return await self._request_json("PATCH", f"/api/jobs/{job_id}/status", json={"status": status})

    async def delete_job(self, job_id: str) -> None:
        await self._request("DELETE", f"/api/jobs/{job_id}")

    async def search(self, query: SearchQuery) -> SearchResponse:
        body = await self._request_json("POST", "/api/jobs/search", json=query.model_dump(mode="json"))
        return SearchResponse.model_validate(body)

    async def list_attachments(self, job_id: str) -> list[dict[str, Any]]:
        return await self._request_json("GET", f"/api/jobs/{job_id}/attachments")

    async def create_attachment(
        self,
        *,
        job_id: str,
        file_name: str,
        file_type: str,
        mime_type: str,
        content: bytes,
    ) -> dict[str, Any]:
        return await self._request_json(
            "POST",
            f"/api/jobs/{job_id}/attachments",
            files={"file": (file_name, content, mime_type)},
            data={"file_type": file_type},
        )

    async def get_attachment(self, *, job_id: str, attachment_id: str) -> dict[str, Any]:
        row = await self._request_json("GET", f"/api/jobs/{job_id}/attachments/{attachment_id}")
        downloaded = await self.download_attachment(job_id=job_id, attachment_id=attachment_id)
        row["content"] = downloaded.content
        return row

    async def download_attachment(self, *, job_id: str, attachment_id: str) -> DownloadedAttachment:
        response = await self._request("GET", f"/api/jobs/{job_id}/attachments/{attachment_id}/download")
        content_type = response.headers.get("content-type") or DEFAULT_MIME_TYPE
        return DownloadedAttachment(
            content=response.content,
            file_name=filename_from_content_disposition(response.headers.get("content-disposition")),
            mime_type=content_type.split(";")[0].strip(),
        )

    async def delete_attachment(self, attachment_id: str, *, job_id: str | None = None) -> None:
        if job_id is None:
            await self._request("DELETE", f"/api/attachments/{attachment_id}")
            return
        await self._request("DELETE", f"/api/jobs/{job_id}/attachments/{attachment_id}")

    async def _request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._request(method, path, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamFailureError(f"{method} {path} returned invalid JSON") from exc

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("tracker api unreachable method=%s path=%s error=%s", method, path, exc)
            raise UpstreamFailureError(f"tracker api unreachable: {exc}") from exc
        _raise_for_status(response)
        return response


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    detail = _error_detail(response)
    if response.status_code == httpx.codes.NOT_FOUND:
        raise NotFoundError(detail)
    if response.status_code in {httpx.codes.BAD_REQUEST, httpx.codes.UNPROCESSABLE_ENTITY}:
        raise TrackerValidationError(detail)
    if response.status_code == httpx.codes.SERVICE_UNAVAILABLE:
        raise StoreUnavailableError(detail)
    raise UpstreamFailureError(f"tracker api returned status {response.status_code}: {detail}")


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return str(body)


@lru_cache
def get_tracker_client() -> TrackerClient:
    settings = get_settings()
    return TrackerClient(settings.api_base_url, timeout_seconds=settings.api_timeout_seconds)
