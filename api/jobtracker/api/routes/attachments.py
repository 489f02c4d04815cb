from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status as http_status

from jobtracker.api.dependencies import get_attachment_controller, http_error
from jobtracker.core.errors import TrackerError
from jobtracker.core.files import build_content_disposition
from jobtracker.schemas.attachments import DEFAULT_ATTACHMENT_TYPE, AttachmentOut
from jobtracker.services.attachments import AttachmentController

router = APIRouter()
attachment_router = APIRouter()


@router.get("", response_model=list[AttachmentOut])
async def list_attachments(
    job_id: str,
    controller: AttachmentController = Depends(get_attachment_controller),
) -> list[AttachmentOut]:
    try:
        return await controller.list(job_id)
    except TrackerError as exc:
        raise http_error(exc) from exc


@router.post("", response_model=AttachmentOut, status_code=http_status.HTTP_201_CREATED)
async def upload_attachment(
    job_id: str,
    file: UploadFile = File(...),
    file_type: str = Form(default=DEFAULT_ATTACHMENT_TYPE),
    controller: AttachmentController = Depends(get_attachment_controller),
) -> AttachmentOut:
    # one byte past the limit is enough for the controller to reject oversize files
    content = await file.read(controller.max_bytes + 1)
    try:
        return await controller.upload(
            job_id,
            content,
            file.filename or "",
            file_type or DEFAULT_ATTACHMENT_TYPE,
            mime_type=file.content_type,
        )
    except TrackerError as exc:
        raise http_error(exc) from exc


@router.get("/{attachment_id}", response_model=AttachmentOut)
async def get_attachment(
    job_id: str,
    attachment_id: str,
    controller: AttachmentController = Depends(get_attachment_controller),
) -> AttachmentOut:
    try:
        return await controller.get(job_id, attachment_id)
    except TrackerError as exc:
        raise http_error(exc) from exc


@router.get("/{attachment_id}/download")
async def download_attachment(
    job_id: str,
    attachment_id: str,
    controller: AttachmentController = Depends(get_attachment_controller),
) -> Response:
    try:
        downloaded = await controller.download(job_id, attachment_id)
    except TrackerError as exc:
        raise http_error(exc) from exc
    return Response(
        content=downloaded.content,
        media_type=downloaded.mime_type,
        headers={"Content-Disposition": build_content_disposition(downloaded.file_name)},
    )


@router.delete("/{attachment_id}", status_code=http_status.HTTP_204_NO_CONTENT)
async def delete_job_attachment(
    job_id: str,
    attachment_id: str,
    controller: AttachmentController = Depends(get_attachment_controller),
) -> Response:
    try:
        await controller.delete(attachment_id, job_id=job_id)
    except TrackerError as exc:
        raise http_error(exc) from exc
    return Response(status_code=http_status.HTTP_204_NO_CONTENT)


@attachment_router.delete("/{attachment_id}", status_code=http_status.HTTP_204_NO_CONTENT)
async def delete_attachment(
    attachment_id: str,
    controller: AttachmentController = Depends(get_attachment_controller),
) -> Response:
    try:
        await controller.delete(attachment_id)
    except TrackerError as exc:
        raise http_error(exc) from exc
    return Response(status_code=http_status.HTTP_204_NO_CONTENT)
