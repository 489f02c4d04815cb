from __future__ import annotations

import logging
from collections.abc import Collection

from jobtracker.core.config import DEFAULT_ALLOWED_MIME_TYPES, DEFAULT_ATTACHMENT_MAX_BYTES
from jobtracker.core.errors import TrackerValidationError
from jobtracker.core.files import DEFAULT_MIME_TYPE, format_file_size, guess_mime_type
from jobtracker.schemas.attachments import ATTACHMENT_TYPES, AttachmentOut, DownloadedAttachment
from jobtracker.services.ports import AttachmentStore, JobStore

logger = logging.getLogger(__name__)


class AttachmentController:
    def __init__(
        self,
        job_store: JobStore,
        attachment_store: AttachmentStore,
        *,
        max_bytes: int = DEFAULT_ATTACHMENT_MAX_BYTES,
        allowed_mime_types: Collection[str] | None = None,
    ) -> None:
        self.job_store = job_store
        self.attachment_store = attachment_store
        self.max_bytes = max_bytes
        self.allowed_mime_types = set(DEFAULT_ALLOWED_MIME_TYPES if allowed_mime_types is None else allowed_mime_types)

    async def list(self, job_id: str) -> list[AttachmentOut]:
        await self.job_store.get_job(job_id)
        rows = await self.attachment_store.list_attachments(job_id)
        return [AttachmentOut(**row) for row in rows]

    async def upload(
        self,
        job_id: str,
        content: bytes,
        file_name: str,
        declared_type: str,
        mime_type: str | None = None,
    ) -> AttachmentOut:
        """Validate and persist one file for ``job_id``.

        Every check runs before the first store call, so a rejected upload leaves
        nothing behind. ``mime_type`` is taken from the transport when present and
        guessed from ``file_name`` otherwise.
        """
        resolved_mime_type = self.validate_upload(content, file_name, declared_type, mime_type)
        await self.job_store.get_job(job_id)
        row = await self.attachment_store.create_attachment(
            job_id=job_id,
            file_name=file_name.strip(),
            file_type=declared_type,
            mime_type=resolved_mime_type,
            content=content,
        )
        attachment = AttachmentOut(**row)
        logger.info(
            "attachment uploaded id=%s job_id=%s type=%s size=%s",
            attachment.id,
            job_id,
            attachment.file_type,
            format_file_size(attachment.file_size),
        )
        return attachment

    def validate_upload(self, content: bytes, file_name: str, declared_type: str, mime_type: str | None) -> str:
        if declared_type not in ATTACHMENT_TYPES:
            raise TrackerValidationError(
                f"invalid file type: {declared_type!r} (must be 'resume' or 'cover_letter')",
            )
        if len(content) > self.max_bytes:
            raise TrackerValidationError(f"file too large: max size is {format_file_size(self.max_bytes)}")
        if not (file_name or "").strip():
            raise TrackerValidationError("file name is required")

        resolved = (mime_type or "").split(";")[0].strip().lower()
        if not resolved or resolved == DEFAULT_MIME_TYPE:
            resolved = guess_mime_type(file_name)
        if self.allowed_mime_types and resolved not in self.allowed_mime_types:
            raise TrackerValidationError(
                f"invalid MIME type: {resolved} (allowed: {', '.join(sorted(self.allowed_mime_types))})",
            )
        return resolved

    async def get(self, job_id: str, attachment_id: str) -> AttachmentOut:
        row = await self.attachment_store.get_attachment(job_id=job_id, attachment_id=attachment_id)
        return AttachmentOut(**row)

    async def download(self, job_id: str, attachment_id: str) -> DownloadedAttachment:
        row = await self.attachment_store.get_attachment(job_id=job_id, attachment_id=attachment_id)
        return DownloadedAttachment(
            content=bytes(row["content"]),
            file_name=row["file_name"],
            mime_type=row.get("mime_type") or guess_mime_type(row["file_name"]),
        )

    async def delete(self, attachment_id: str, *, job_id: str | None = None) -> None:
        await self.attachment_store.delete_attachment(attachment_id, job_id=job_id)
        logger.info("attachment deleted id=%s job_id=%s", attachment_id, job_id)
