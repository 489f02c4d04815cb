"""Collaborator contracts the controllers are written against.

Stores hand back plain row dicts using the field names of ``JobOut`` and
``AttachmentOut``; attachment rows fetched through ``get_attachment`` also carry
the blob under ``content``. Every call may suspend and fail independently.
"""

from __future__ import annotations

from typing import Any, Protocol

from jobtracker.schemas.search import SearchQuery, SearchResponse


class JobStore(Protocol):
    async def list_jobs(self, *, status: str | None = None, source: str | None = None) -> list[dict[str, Any]]: ...

    async def get_job(self, job_id: str) -> dict[str, Any]: ...

    async def create_job(self, payload: dict[str, Any]) -> dict[str, Any]: ...

    async def replace_job(self, job_id: str, payload: dict[str, Any]) -> dict[str, Any]: ...

    async def patch_job_status(self, job_id: str, status: str) -> dict[str, Any]: ...

    async def delete_job(self, job_id: str) -> None: ...


class AttachmentStore(Protocol):
    async def list_attachments(self, job_id: str) -> list[dict[str, Any]]: ...

    async def create_attachment(
        self,
        *,
        job_id: str,
        file_name: str,
        file_type: str,
        mime_type: str,
        content: bytes,
    ) -> dict[str, Any]: ...

    async def get_attachment(self, *, job_id: str, attachment_id: str) -> dict[str, Any]: ...

    async def delete_attachment(self, attachment_id: str, *, job_id: str | None = None) -> None: ...


class SearchProvider(Protocol):
    async def search(self, query: SearchQuery) -> SearchResponse: ...
