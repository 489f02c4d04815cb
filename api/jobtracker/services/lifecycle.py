from __future__ import annotations

import logging

from jobtracker.core.errors import CascadeDeleteError, InvalidStatusError, TrackerError, TrackerValidationError
from jobtracker.schemas.jobs import JOB_STATUSES, MANUAL_SOURCE, JobCreate, JobFields, JobOut, JobReplace
from jobtracker.services.ports import AttachmentStore, JobStore

logger = logging.getLogger(__name__)


def validate_job_fields(payload: JobFields) -> None:
    missing = [name for name in ("job_title", "job_url") if not (getattr(payload, name) or "").strip()]
    if missing:
        raise TrackerValidationError(f"required fields missing: {', '.join(missing)}")


def validate_status(status: str) -> str:
    if status not in JOB_STATUSES:
        raise InvalidStatusError(f"invalid status: {status!r} (must be one of: {', '.join(JOB_STATUSES)})")
    return status


class LifecycleController:
    """Job CRUD plus the status state machine.

    Statuses form a free-form board: every status can be set from every other
    status and none is terminal. Payloads are validated before the store is
    called, so a rejected request never costs a round trip.
    """

    def __init__(self, job_store: JobStore, attachment_store: AttachmentStore | None = None) -> None:
        self.job_store = job_store
        self.attachment_store = attachment_store

    async def list_jobs(self, *, status: str | None = None, source: str | None = None) -> list[JobOut]:
        if status:
            validate_status(status)
        rows = await self.job_store.list_jobs(status=status or None, source=source or None)
        return [JobOut(**row) for row in rows]

    async def get_job(self, job_id: str) -> JobOut:
        return JobOut(**await self.job_store.get_job(job_id))

    async def create_job(self, payload: JobCreate) -> JobOut:
        validate_job_fields(payload)
        data = payload.model_dump()
        data["source"] = (payload.source or "").strip() or MANUAL_SOURCE
        job = JobOut(**await self.job_store.create_job(data))
        logger.info("job created id=%s source=%s", job.id, job.source)
        return job

    async def replace_job(self, job_id: str, payload: JobReplace) -> JobOut:
        validate_job_fields(payload)
        job = JobOut(**await self.job_store.replace_job(job_id, payload.model_dump()))
        logger.info("job replaced id=%s", job.id)
        return job

    async def set_status(self, job_id: str, new_status: str) -> JobOut:
        validate_status(new_status)
        job = JobOut(**await self.job_store.patch_job_status(job_id, new_status))
        logger.info("job status set id=%s status=%s", job.id, job.status)
        return job

    async def delete_job(self, job_id: str) -> None:
        if getattr(self.job_store, "cascades_attachments", False) or self.attachment_store is None:
            await self.job_store.delete_job(job_id)
            logger.info("job deleted id=%s", job_id)
            return
        await self._delete_job_sequentially(job_id, self.attachment_store)

    async def _delete_job_sequentially(self, job_id: str, attachment_store: AttachmentStore) -> None:
        rows = await attachment_store.list_attachments(job_id)
        remaining = [row["id"] for row in rows]
        for attachment_id in list(remaining):
            try:
                await attachment_store.delete_attachment(attachment_id, job_id=job_id)
            except TrackerError as exc:
                logger.warning("cascade delete stopped job_id=%s attachment_id=%s", job_id, attachment_id)
                raise CascadeDeleteError(
                    f"failed to delete attachment {attachment_id} of job {job_id}",
                    job_id=job_id,
                    remaining_attachment_ids=remaining,
                ) from exc
            remaining.remove(attachment_id)
        await self.job_store.delete_job(job_id)
        logger.info("job deleted id=%s attachments=%s", job_id, len(rows))
