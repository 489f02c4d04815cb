from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from jobtracker.core.errors import TrackerError, TrackerValidationError
from jobtracker.schemas.jobs import JOB_STATUSES, JobCreate, JobOut, JobReplace
from jobtracker.schemas.search import SearchQuery, SearchResult
from jobtracker.services.lifecycle import LifecycleController
from jobtracker.services.ports import SearchProvider
from jobtracker.services.reconcile import mark_saved, promote, reconcile

logger = logging.getLogger(__name__)

NoticeKind = Literal["success", "error"]
DEFAULT_NOTICE_TTL_SECONDS = 3.0


@dataclass(slots=True, frozen=True)
class Notice:
    text: str
    kind: NoticeKind
    expires_at: float


@dataclass(slots=True, frozen=True)
class StatusSelector:
    owner_id: str
    anchor: tuple[float, float]


class TrackerSession:
    """State one interactive user works against.

    Holds the tracked job list, the current search results, at most one open
    status selector and at most one transient notice. Local changes are only
    applied after the store confirms them, and list refreshes that resolve
    out of order are dropped. A reload that fails after a confirmed write keeps
    the success notice and only sets ``jobs_stale``.
    """

    def __init__(
        self,
        lifecycle: LifecycleController,
        search_provider: SearchProvider,
        *,
        notice_ttl_seconds: float = DEFAULT_NOTICE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.lifecycle = lifecycle
        self.search_provider = search_provider
        self.notice_ttl_seconds = notice_ttl_seconds
        self._clock = clock
        self.jobs: list[JobOut] = []
        self.status_filter: str | None = None
        self.search_results: list[SearchResult] = []
        self.active_selector: StatusSelector | None = None
        self._notice: Notice | None = None
        self._refresh_generation = 0
        self.jobs_stale = False

    @property
    def notice(self) -> Notice | None:
        if self._notice is not None and self._clock() >= self._notice.expires_at:
            self._notice = None
        return self._notice

    def notify(self, text: str, kind: NoticeKind = "success") -> Notice:
        self._notice = Notice(text=text, kind=kind, expires_at=self._clock() + self.notice_ttl_seconds)
        return self._notice

    async def refresh(self) -> bool:
        """Reload the job list; returns False when a newer refresh overtook this one."""
        try:
            return await self._reload_jobs()
        except TrackerError as exc:
            self.notify(f"Failed to fetch jobs: {exc}", "error")
            raise

    async def _reload_jobs(self) -> bool:
        self._refresh_generation += 1
        generation = self._refresh_generation
        jobs = await self.lifecycle.list_jobs(status=self.status_filter)
        if generation != self._refresh_generation:
            logger.debug("dropping stale job list generation=%s latest=%s", generation, self._refresh_generation)
            return False
        self.jobs = jobs
        self.jobs_stale = False
        return True

    async def _refresh_after_write(self) -> None:
        # The write is already confirmed; a failed reload only leaves the list stale.
        try:
            await self._reload_jobs()
        except TrackerError as exc:
            self.jobs_stale = True
            logger.warning("job list refresh failed after confirmed write error=%s", exc)

    async def set_status_filter(self, status: str | None) -> bool:
        self.status_filter = status or None
        return await self.refresh()

    async def run_search(self, query: SearchQuery) -> list[SearchResult]:
        try:
            response = await self.search_provider.search(query)
            existing = await self.lifecycle.list_jobs()
        except TrackerError as exc:
            self.notify(f"Search failed: {exc}", "error")
            raise
        self.search_results = reconcile(response.jobs, existing)
        self.notify(f"Found {response.count} jobs")
        return self.search_results

    def clear_search_results(self) -> None:
        self.search_results = []

    async def add_from_search(self, result: SearchResult) -> JobOut:
        try:
            job = await self.lifecycle.create_job(promote(result))
        except TrackerError as exc:
            self.notify(f"Failed to add job: {exc}", "error")
            raise
        self.search_results = mark_saved(self.search_results, result.job_url)
        self.notify("Job added to tracker")
        await self._refresh_after_write()
        return job

    async def save_job(self, payload: JobCreate | JobReplace, *, job_id: str | None = None) -> JobOut:
        try:
            if job_id is None:
                job = await self.lifecycle.create_job(JobCreate.model_validate(payload.model_dump()))
            else:
                job = await self.lifecycle.replace_job(job_id, JobReplace.model_validate(payload.model_dump()))
        except TrackerError as exc:
            self.notify(f"Failed to save job: {exc}", "error")
            raise
        self.notify("Job updated successfully" if job_id else "Job added successfully")
        await self._refresh_after_write()
        return job

    async def delete_job(self, job_id: str) -> None:
        try:
            await self.lifecycle.delete_job(job_id)
        except TrackerError as exc:
            self.notify(f"Failed to delete job: {exc}", "error")
            raise
        if self.active_selector is not None and self.active_selector.owner_id == job_id:
            self.active_selector = None
        self.notify("Job deleted successfully")
        await self._refresh_after_write()

    def open_status_selector(self, owner_id: str, anchor: tuple[float, float]) -> StatusSelector:
        self.active_selector = StatusSelector(owner_id=owner_id, anchor=anchor)
        return self.active_selector

    def dismiss_status_selector(self) -> None:
        """Close the selector after an outside interaction or a cancel key."""
        self.active_selector = None

    def status_options(self, current_status: str) -> list[str]:
        return [status for status in JOB_STATUSES if status != current_status]

    async def select_status(self, new_status: str) -> JobOut:
        selector = self.active_selector
        if selector is None:
            raise TrackerValidationError("no status selector is open")
        self.active_selector = None
        return await self.change_status(selector.owner_id, new_status)

    async def change_status(self, job_id: str, new_status: str) -> JobOut:
        try:
            job = await self.lifecycle.set_status(job_id, new_status)
        except TrackerError as exc:
            self.notify(f"Failed to update status: {exc}", "error")
            raise
        await self._refresh_after_write()
        return job
