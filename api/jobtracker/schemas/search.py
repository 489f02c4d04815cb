from typing import Literal

from pydantic import BaseModel, Field, field_validator

from jobtracker.schemas.jobs import JobType

SearchSite = Literal["indeed", "linkedin", "zip_recruiter", "glassdoor", "google"]


class SearchQuery(BaseModel):
    search_term: str = Field(min_length=1)
    location: str = ""
    site_names: list[SearchSite] = Field(default_factory=lambda: ["indeed", "linkedin"], min_length=1)
    job_type: JobType | None = None
    is_remote: bool = False
    results_wanted: int = Field(default=20, ge=1, le=200)
    hours_old: int = Field(default=72, ge=1)
    country_indeed: str | None = "usa"
    distance: int = Field(default=50, ge=0)

    @field_validator("site_names", mode="before")
    @classmethod
    def split_site_names(cls, value: object) -> object:
        if isinstance(value, str):
            return [chunk.strip() for chunk in value.split(",") if chunk.strip()]
        return value

    @field_validator("job_type", mode="before")
    @classmethod
    def blank_job_type_is_any(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SearchResult(BaseModel):
    job_title: str
    company_name: str | None = None
    location: str | None = None
    job_url: str = ""
    description: str | None = None
    salary: str | None = None
    job_type: JobType | None = None
    is_remote: bool = False
    source: str | None = None
    is_saved: bool = False


class SearchResponse(BaseModel):
    count: int
    jobs: list[SearchResult] = Field(default_factory=list)
