from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

import httpx

from jobtracker.core.config import get_settings
from jobtracker.core.errors import UpstreamFailureError
from jobtracker.schemas.jobs import JOB_TYPES
from jobtracker.schemas.search import SearchQuery, SearchResponse, SearchResult

logger = logging.getLogger(__name__)

SEARCH_METHOD = "search_jobs"


class McpSearchProvider:
    """Calls the MCP job-search server and maps its postings onto ``SearchResult``.

    The server scrapes external boards on demand; nothing is persisted here.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def search(self, query: SearchQuery) -> SearchResponse:
        payload = {"method": SEARCH_METHOD, "params": build_search_params(query)}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(f"{self.base_url}/api", json=payload)
        except httpx.HTTPError as exc:
            logger.warning("search provider unreachable url=%s error=%s", self.base_url, exc)
            raise UpstreamFailureError(f"failed to call search provider: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            raise UpstreamFailureError(
                f"search provider returned status {response.status_code}: {response.text[:500]}",
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamFailureError("search provider returned invalid JSON") from exc

        if not isinstance(body, dict):
            raise UpstreamFailureError("search provider returned an unexpected payload")
        raw_jobs = body.get("jobs")
        if raw_jobs is None:
            raw_jobs = []
        if not isinstance(raw_jobs, list):
            raise UpstreamFailureError("search provider returned an unexpected jobs field")

        results = map_search_results(raw_jobs)
        logger.info(
            "search completed term=%r sites=%s upstream=%s kept=%s",
            query.search_term,
            ",".join(query.site_names),
            len(raw_jobs),
            len(results),
        )
        return SearchResponse(count=len(results), jobs=results)


def build_search_params(query: SearchQuery) -> dict[str, Any]:
    params: dict[str, Any] = {
        "site_names": ",".join(query.site_names),
        "search_term": query.search_term,
        "location": query.location,
        "distance": query.distance,
        "results_wanted": query.results_wanted,
        "hours_old": query.hours_old,
        "is_remote": query.is_remote,
        "format": "json",
    }
    if query.job_type:
        params["job_type"] = query.job_type
    if query.country_indeed:
        params["country_indeed"] = query.country_indeed
    return params


def map_search_results(raw_jobs: list[Any]) -> list[SearchResult]:
    """Map raw postings, skipping untitled ones and repeated URLs within one response."""
    results: list[SearchResult] = []
    seen_urls: set[str] = set()
    for raw in raw_jobs:
        if not isinstance(raw, dict):
            continue

        job_url = _first_text(raw, "jobUrl", "jobUrlDirect", "url") or ""
        if job_url:
            if job_url in seen_urls:
                continue
            seen_urls.add(job_url)

        job_title = _first_text(raw, "jobTitle", "title", "summary")
        if not job_title:
            continue

        results.append(
            SearchResult(
                job_title=job_title,
                company_name=_first_text(raw, "companyName", "company"),
                location=_first_text(raw, "location"),
                job_url=job_url,
                description=_first_text(raw, "description"),
                salary=_salary_text(raw),
                job_type=_coerce_job_type(raw.get("jobType")),
                is_remote=raw.get("isRemote") is True,
                source=_first_text(raw, "source"),
            )
        )
    return results


def _first_text(raw: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _salary_text(raw: dict[str, Any]) -> str | None:
    salary = _first_text(raw, "salary")
    if salary:
        return salary
    min_amount = _coerce_amount(raw.get("minAmount"))
    max_amount = _coerce_amount(raw.get("maxAmount"))
    if min_amount > 0 or max_amount > 0:
        return f"{min_amount:.0f}-{max_amount:.0f}"
    return None


def _coerce_amount(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _coerce_job_type(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    normalized = value.strip().lower().replace("-", "").replace("_", "").replace(" ", "")
    if normalized in JOB_TYPES:
        return normalized
    return None


@lru_cache
def get_search_provider() -> McpSearchProvider:
    settings = get_settings()
    return McpSearchProvider(settings.search_provider_url, timeout_seconds=settings.search_timeout_seconds)
