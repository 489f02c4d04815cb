import logging

from fastapi import APIRouter, Depends, Query, Response, status as http_status

from jobtracker.api.dependencies import get_lifecycle_controller, http_error
from jobtracker.core.errors import TrackerError
from jobtracker.schemas.jobs import JobCreate, JobOut, JobReplace, JobStatusPatch
from jobtracker.schemas.search import SearchQuery, SearchResponse, SearchResult
from jobtracker.services.lifecycle import LifecycleController
from jobtracker.services.reconcile import promote, reconcile
from jobtracker.services.search_provider import get_search_provider

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=list[JobOut])
async def list_jobs(
    job_status: str | None = Query(default=None, alias="status"),
    source: str | None = Query(default=None),
    lifecycle: LifecycleController = Depends(get_lifecycle_controller),
) -> list[JobOut]:
    try:
        return await lifecycle.list_jobs(status=job_status, source=source)
    except TrackerError as exc:
        raise http_error(exc) from exc


@router.post("", response_model=JobOut, status_code=http_status.HTTP_201_CREATED)
async def create_job(
    payload: JobCreate,
    lifecycle: LifecycleController = Depends(get_lifecycle_controller),
) -> JobOut:
    try:
        return await lifecycle.create_job(payload)
    except TrackerError as exc:
        raise http_error(exc) from exc


@router.post("/search", response_model=SearchResponse)
async def search_jobs(
    query: SearchQuery,
    lifecycle: LifecycleController = Depends(get_lifecycle_controller),
    search_provider=Depends(get_search_provider),
) -> SearchResponse:
    try:
        response = await search_provider.search(query)
        existing = await lifecycle.list_jobs()
    except TrackerError as exc:
        logger.warning("job search failed term=%r error=%s", query.search_term, exc)
        raise http_error(exc) from exc
    return SearchResponse(count=response.count, jobs=reconcile(response.jobs, existing))


@router.post("/promote", response_model=JobOut, status_code=http_status.HTTP_201_CREATED)
async def promote_search_result(
    result: SearchResult,
    lifecycle: LifecycleController = Depends(get_lifecycle_controller),
) -> JobOut:
    try:
        return await lifecycle.create_job(promote(result))
    except TrackerError as exc:
        raise http_error(exc) from exc


@router.get("/{job_id}", response_model=JobOut)
async def get_job(job_id: str, lifecycle: LifecycleController = Depends(get_lifecycle_controller)) -> JobOut:
    try:
        return await lifecycle.get_job(job_id)
    except TrackerError as exc:
        raise http_error(exc) from exc


@router.put("/{job_id}", response_model=JobOut)
async def replace_job(
    job_id: str,
    payload: JobReplace,
    lifecycle: LifecycleController = Depends(get_lifecycle_controller),
) -> JobOut:
    try:
        return await lifecycle.replace_job(job_id, payload)
    except TrackerError as exc:
        raise http_error(exc) from exc


@router.patch("/{job_id}/status", response_model=JobOut)
async def patch_job_status(
    job_id: str,
    payload: JobStatusPatch,
    lifecycle: LifecycleController = Depends(get_lifecycle_controller),
) -> JobOut:
    try:
        return await lifecycle.set_status(job_id, payload.status)
    except TrackerError as exc:
        raise http_error(exc) from exc


@router.delete("/{job_id}", status_code=http_status.HTTP_204_NO_CONTENT)
async def delete_job(job_id: str, lifecycle: LifecycleController = Depends(get_lifecycle_controller)) -> Response:
    try:
        await lifecycle.delete_job(job_id)
    except TrackerError as exc:
        raise http_error(exc) from exc
    return Response(status_code=http_status.HTTP_204_NO_CONTENT)
