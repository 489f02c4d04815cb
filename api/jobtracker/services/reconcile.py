"""Merge ephemeral search results with tracked jobs.

A result counts as saved when a tracked job carries the identical ``job_url``.
URLs are compared as exact strings: trailing slashes, scheme and query-string
order are not normalized, so ``https://x/1`` and ``https://x/1/`` are different
postings here.

Nothing in this module enforces uniqueness. ``is_saved`` only tells the caller
that promoting again would create a second job with the same URL.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from jobtracker.schemas.jobs import SEARCH_SOURCE, JobCreate, JobOut
from jobtracker.schemas.search import SearchResult

PROMOTED_FIELDS = (
    "job_title",
    "company_name",
    "location",
    "job_url",
    "description",
    "salary",
    "job_type",
    "is_remote",
)


def reconcile(
    search_results: Sequence[SearchResult],
    existing_jobs: Iterable[JobOut | Mapping[str, Any]],
) -> list[SearchResult]:
    saved_urls = {_job_url(job) for job in existing_jobs}
    return [result.model_copy(update={"is_saved": result.job_url in saved_urls}) for result in search_results]


def promote(result: SearchResult) -> JobCreate:
    fields = {key: getattr(result, key) for key in PROMOTED_FIELDS}
    return JobCreate(source=SEARCH_SOURCE, **fields)


def mark_saved(search_results: Sequence[SearchResult], job_url: str) -> list[SearchResult]:
    """Locally flag results with ``job_url`` as saved after a confirmed promotion."""
    return [
        result.model_copy(update={"is_saved": True}) if result.job_url == job_url else result
        for result in search_results
    ]


def _job_url(job: JobOut | Mapping[str, Any]) -> str | None:
    if isinstance(job, JobOut):
        return job.job_url
    return job.get("job_url")
