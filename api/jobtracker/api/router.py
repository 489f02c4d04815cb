from fastapi import APIRouter

from jobtracker.api.routes import attachments, health, jobs

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
api_router.include_router(attachments.router, prefix="/api/jobs/{job_id}/attachments", tags=["attachments"])
api_router.include_router(attachments.attachment_router, prefix="/api/attachments", tags=["attachments"])
