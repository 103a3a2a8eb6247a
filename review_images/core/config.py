import os
from pydantic import BaseModel
from typing import Optional

class Settings(BaseModel):
    """Environment-driven configuration.

    Defaults suit local development: images land on disk and records go to a
    LocalStack/DynamoDB-local table. Set APP_ENV=production to store images in
    the S3 bucket instead.
    """
    environment: str = os.getenv("APP_ENV", "development")
    port: int = int(os.getenv("PORT", "8000"))
    max_upload_size: int = int(os.getenv("MAX_UPLOAD_SIZE", str(2 * 1024 * 1024)))
    local_upload_dir: str = os.getenv("LOCAL_UPLOAD_DIR", "uploads")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    aws_access_key_id: str = os.getenv("AWS_ACCESS_KEY_ID", "test")
    aws_secret_access_key: str = os.getenv("AWS_SECRET_ACCESS_KEY", "test")
    aws_region: str = os.getenv("AWS_REGION", "us-east-1")
    aws_endpoint_url: Optional[str] = os.getenv("AWS_ENDPOINT_URL")
    bucket_name: str = os.getenv("BUCKET_NAME", "review-images")
    public_base_url: Optional[str] = os.getenv("PUBLIC_BASE_URL")
    table_name: str = os.getenv("TABLE_NAME", "review_images")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

settings = Settings()
