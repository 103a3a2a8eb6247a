from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from ..core.errors import PipelineError
from ..core.models import DeleteResponse, ErrorResponse, UploadResponse
from ..dependencies import get_pipeline
from ..pipeline import UploadPipeline

router = APIRouter(prefix="/api/upload", tags=["upload"])

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


@router.post(
    "",
    response_model=UploadResponse,
    status_code=201,
    responses=_ERRORS,
    summary="Upload a review image",
    description=(
        "Multipart form-data upload of a JPEG, PNG or WEBP image.\n\n"
        "Fields:\n"
        "- `image` (required): the image file.\n"
        "- `type` (required): ANIME, MANGA or LIGHT_NOVEL.\n"
        "- `entity_id` (required): id of the owning anime, manga or light novel.\n\n"
        "Images over the size limit are re-encoded at lower quality; if they still do not fit the upload is rejected with 413."
    ),
)
async def upload_image(
    image: UploadFile = File(...),
    type: str = Form(...),
    entity_id: str = Form(...),
    pipeline: UploadPipeline = Depends(get_pipeline),
):
    try:
        data = await image.read()
        # Compression is CPU bound, keep it off the event loop
        record = await run_in_threadpool(
            pipeline.upload,
            data,
            image.filename or "",
            image.content_type or "application/octet-stream",
            type,
            entity_id,
        )
        return UploadResponse(id=record.id, url=record.url, owner=record.owner, created_at=record.created_at)
    except PipelineError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"upload_failed {e}")


@router.delete(
    "/{image_id}",
    response_model=DeleteResponse,
    responses=_ERRORS,
    summary="Delete a review image",
    description=(
        "Removes the stored file and the image record.\n"
        "Returns 404 if the image id does not exist. A stored file that cannot be removed is logged and the record is deleted anyway."
    ),
)
def delete_image(image_id: str, pipeline: UploadPipeline = Depends(get_pipeline)):
    try:
        pipeline.delete(image_id)
        return DeleteResponse(deleted=image_id)
    except PipelineError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"delete_failed {e}")
