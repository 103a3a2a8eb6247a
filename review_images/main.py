import logging

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from .core.config import settings
from .routers.uploads import router as uploads_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

tags_metadata = [
    {
        "name": "upload",
        "description": (
            "Endpoints to upload and delete review images for anime, manga and light novels.\n\n"
            "- Upload via multipart.\n"
            "- JPEG/PNG/WEBP only, re-encoded to fit the configured size limit.\n"
            "- Stored on local disk in development and in S3 in production."
        ),
    }
]

app = FastAPI(
    title="Review Image Service",
    description=(
        "How to Use:\n\n"
        "1) Upload an image: POST /api/upload with the `image` file, its media `type` and the owning `entity_id`.\n"
        "2) Use the returned `url` to display the image.\n"
        "3) Delete: DELETE /api/upload/{image_id} removes both the file and its record."
    ),
    openapi_tags=tags_metadata,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.include_router(uploads_router)

if not settings.is_production:
    # Local backend URLs point here
    app.mount("/uploads", StaticFiles(directory=settings.local_upload_dir, check_dir=False), name="uploads")
