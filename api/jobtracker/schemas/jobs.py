from datetime import datetime
from typing import Literal, get_args

from pydantic import BaseModel, field_validator

JobStatus = Literal["new", "viewed", "applied", "rejected", "shortlisted"]
JobType = Literal["fulltime", "parttime", "contract", "internship"]

JOB_STATUSES: tuple[str, ...] = get_args(JobStatus)
JOB_TYPES: tuple[str, ...] = get_args(JobType)
DEFAULT_JOB_STATUS: JobStatus = "new"
MANUAL_SOURCE = "manual"
SEARCH_SOURCE = "mcp"


class JobFields(BaseModel):
    """Editable job fields shared by create and replace payloads."""

    job_title: str = ""
    company_name: str | None = None
    location: str | None = None
    job_url: str = ""
    description: str | None = None
    salary: str | None = None
    job_type: JobType | None = None
    is_remote: bool = False
    notes: str | None = None

    @field_validator("job_type", mode="before")
    @classmethod
    def blank_job_type_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class JobCreate(JobFields):
    source: str | None = None


class JobReplace(JobFields):
    pass


class JobStatusPatch(BaseModel):
    status: str


class JobOut(BaseModel):
    id: str
    job_title: str
    company_name: str | None = None
    location: str | None = None
    job_url: str
    description: str | None = None
    salary: str | None = None
    job_type: JobType | None = None
    is_remote: bool = False
    notes: str | None = None
    source: str = MANUAL_SOURCE
    status: JobStatus = DEFAULT_JOB_STATUS
    created_at: datetime
    updated_at: datetime
