from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from jobtracker.core.errors import NotFoundError
from jobtracker.schemas.jobs import DEFAULT_JOB_STATUS, MANUAL_SOURCE, JobOut

JOB_EDITABLE_FIELDS = (
    "job_title",
    "company_name",
    "location",
    "job_url",
    "description",
    "salary",
    "job_type",
    "is_remote",
    "notes",
)


class InMemoryStore:
    """Process-local job and attachment store used when no database is configured."""

    cascades_attachments = True

    def __init__(self) -> None:
        self.jobs: dict[str, dict[str, Any]] = {}
        self.attachments: dict[str, dict[str, Any]] = {}

    async def list_jobs(self, *, status: str | None = None, source: str | None = None) -> list[dict[str, Any]]:
        rows = list(self.jobs.values())
        if status:
            rows = [row for row in rows if row["status"] == status]
        if source:
            rows = [row for row in rows if row["source"] == source]
        rows.sort(key=lambda row: row["created_at"], reverse=True)
        return [dict(row) for row in rows]

    async def get_job(self, job_id: str) -> dict[str, Any]:
        return dict(self._job_row(job_id))

    async def create_job(self, payload: dict[str, Any]) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        fields = {key: payload.get(key) for key in JOB_EDITABLE_FIELDS}
        fields["is_remote"] = bool(fields["is_remote"])
        job = JobOut(
            id=str(uuid4()),
            source=payload.get("source") or MANUAL_SOURCE,
            status=payload.get("status") or DEFAULT_JOB_STATUS,
            created_at=now,
            updated_at=now,
            **fields,
        ).model_dump()
        self.jobs[job["id"]] = job
        return dict(job)

    async def replace_job(self, job_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        job = self._job_row(job_id)
        for key in JOB_EDITABLE_FIELDS:
            job[key] = payload.get(key)
        job["is_remote"] = bool(job["is_remote"])
        job["updated_at"] = datetime.now(timezone.utc)
        return dict(job)

    async def patch_job_status(self, job_id: str, status: str) -> dict[str, Any]:
        job = self._job_row(job_id)
        job["status"] = status
        job["updated_at"] = datetime.now(timezone.utc)
        return dict(job)

    async def delete_job(self, job_id: str) -> None:
        if self.jobs.pop(job_id, None) is None:
            raise NotFoundError("job not found")
        for attachment_id in [key for key, row in self.attachments.items() if row["job_id"] == job_id]:
            del self.attachments[attachment_id]

    async def list_attachments(self, job_id: str) -> list[dict[str, Any]]:
        self._job_row(job_id)
        rows = [row for row in self.attachments.values() if row["job_id"] == job_id]
        rows.sort(key=lambda row: row["created_at"])
        return [_without_content(row) for row in rows]

    async def create_attachment(
        self,
        *,
        job_id: str,
        file_name: str,
        file_type: str,
        mime_type: str,
        content: bytes,
    ) -> dict[str, Any]:
        self._job_row(job_id)
        attachment = {
            "id": str(uuid4()),
            "job_id": job_id,
            "file_name": file_name,
            "file_type": file_type,
            "mime_type": mime_type,
            "file_size": len(content),
            "content": bytes(content),
            "created_at": datetime.now(timezone.utc),
        }
        self.attachments[attachment["id"]] = attachment
        return _without_content(attachment)

    async def get_attachment(self, *, job_id: str, attachment_id: str) -> dict[str, Any]:
        attachment = self.attachments.get(attachment_id)
        if attachment is None or attachment["job_id"] != job_id:
            raise NotFoundError("attachment not found")
        return dict(attachment)

    async def delete_attachment(self, attachment_id: str, *, job_id: str | None = None) -> None:
        attachment = self.attachments.get(attachment_id)
        if attachment is None or (job_id is not None and attachment["job_id"] != job_id):
            raise NotFoundError("attachment not found")
        del self.attachments[attachment_id]

    async def close(self) -> None:
        return None

    def _job_row(self, job_id: str) -> dict[str, Any]:
        job = self.jobs.get(job_id)
        if job is None:
            raise NotFoundError("job not found")
        return job


def _without_content(row: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in row.items() if key != "content"}
