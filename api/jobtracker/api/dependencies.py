from fastapi import Depends, HTTPException, status

from jobtracker.core.config import Settings, get_settings
from jobtracker.core.errors import NotFoundError, StoreUnavailableError, TrackerError, TrackerValidationError
from jobtracker.services.attachments import AttachmentController
from jobtracker.services.lifecycle import LifecycleController
from jobtracker.services.repository import get_repository


def get_lifecycle_controller(repository=Depends(get_repository)) -> LifecycleController:
    return LifecycleController(repository, repository)


def get_attachment_controller(
    settings: Settings = Depends(get_settings),
    repository=Depends(get_repository),
) -> AttachmentController:
    return AttachmentController(
        repository,
        repository,
        max_bytes=settings.attachment_max_bytes,
        allowed_mime_types=settings.attachment_allowed_mime_types,
    )


def http_error(exc: TrackerError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, TrackerValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    if isinstance(exc, StoreUnavailableError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
