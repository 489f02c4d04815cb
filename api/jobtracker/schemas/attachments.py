from dataclasses import dataclass
from datetime import datetime
from typing import Literal, get_args

from pydantic import BaseModel

AttachmentType = Literal["resume", "cover_letter"]

ATTACHMENT_TYPES: tuple[str, ...] = get_args(AttachmentType)
DEFAULT_ATTACHMENT_TYPE: AttachmentType = "resume"


class AttachmentOut(BaseModel):
    id: str
    job_id: str
    file_name: str
    file_type: AttachmentType
    mime_type: str | None = None
    file_size: int
    created_at: datetime


@dataclass(slots=True)
class DownloadedAttachment:
    content: bytes
    file_name: str
    mime_type: str
