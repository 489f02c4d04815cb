from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from jobtracker.schemas.jobs import JobOut
from jobtracker.schemas.search import SearchResult
from jobtracker.services.lifecycle import LifecycleController
from jobtracker.services.reconcile import mark_saved, promote, reconcile
from jobtracker.services.store import InMemoryStore


def test_reconcile_marks_only_exact_url_matches() -> None:
    results = [
        _result("https://boards.example.com/jobs/1"),
        _result("https://boards.example.com/jobs/1/"),
        _result("http://boards.example.com/jobs/1"),
        _result("https://boards.example.com/jobs/2?a=1&b=2"),
    ]
    existing = [
        _job("https://boards.example.com/jobs/1"),
        _job("https://boards.example.com/jobs/2?b=2&a=1"),
    ]

    reconciled = reconcile(results, existing)

    assert [result.is_saved for result in reconciled] == [True, False, False, False]


def test_reconcile_accepts_row_dicts_and_keeps_order() -> None:
    results = [_result("https://x/3"), _result("https://x/1"), _result("https://x/2")]

    reconciled = reconcile(results, [{"job_url": "https://x/2"}, {"job_url": "https://x/3"}])

    assert [result.job_url for result in reconciled] == ["https://x/3", "https://x/1", "https://x/2"]
    assert [result.is_saved for result in reconciled] == [True, False, True]


def test_reconcile_clears_stale_saved_flags_and_leaves_inputs_untouched() -> None:
    stale = _result("https://x/gone").model_copy(update={"is_saved": True})

    reconciled = reconcile([stale], [])

    assert reconciled[0].is_saved is False
    assert stale.is_saved is True


def test_promote_copies_posting_fields_and_forces_search_source() -> None:
    result = SearchResult(
        job_title="Backend Engineer",
        company_name="Acme",
        location="Sydney, NSW",
        job_url="https://boards.example.com/jobs/9",
        description="Python services",
        salary="120000-150000",
        job_type="contract",
        is_remote=True,
        source="linkedin",
        is_saved=True,
    )

    payload = promote(result)

    assert payload.source == "mcp"
    assert payload.job_title == "Backend Engineer"
    assert payload.company_name == "Acme"
    assert payload.location == "Sydney, NSW"
    assert payload.job_url == "https://boards.example.com/jobs/9"
    assert payload.description == "Python services"
    assert payload.salary == "120000-150000"
    assert payload.job_type == "contract"
    assert payload.is_remote is True
    assert payload.notes is None


def test_promoting_the_same_result_twice_creates_two_jobs() -> None:
    store = InMemoryStore()
    lifecycle = LifecycleController(store, store)
    result = _result("https://x/1")

    async def run() -> tuple[JobOut, JobOut, list[JobOut]]:
        first = await lifecycle.create_job(promote(result))
        second = await lifecycle.create_job(promote(result))
        return first, second, await lifecycle.list_jobs()

    first, second, jobs = asyncio.run(run())

    assert first.id != second.id
    assert len(jobs) == 2
    assert {job.job_url for job in jobs} == {"https://x/1"}


def test_mark_saved_flags_every_result_with_the_url() -> None:
    results = [_result("https://x/1"), _result("https://x/2"), _result("https://x/1")]

    marked = mark_saved(results, "https://x/1")

    assert [result.is_saved for result in marked] == [True, False, True]
    assert all(result.is_saved is False for result in results)


def _result(job_url: str) -> SearchResult:
    return SearchResult(job_title="SWE", job_url=job_url)


def _job(job_url: str) -> JobOut:
    now = datetime.now(timezone.utc)
    return JobOut(id=job_url, job_title="SWE", job_url=job_url, created_at=now, updated_at=now)
