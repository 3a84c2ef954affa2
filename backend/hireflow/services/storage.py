"""
Resume blob storage - local disk or Cloudinary.

Both stores expose ``put(data, content_type, filename) -> locator`` and
``cleanup(locator)``. The locator is what gets saved as ``resume_url``.
"""
import asyncio
import logging
import os
import re
import uuid
from typing import Optional

import aiofiles
import cloudinary
import cloudinary.uploader

from ..config import Settings
from ..errors import HireFlowError

logger = logging.getLogger(__name__)

LOCAL_URL_PREFIX = "/uploads/resumes"


class StorageError(HireFlowError):
    """Raised when a resume blob cannot be stored."""

    UPLOAD_FAILED = "upload failed"
    NOT_CONFIGURED = "not configured"


def safe_filename(filename: Optional[str]) -> str:
    """Sanitize an uploaded filename for storage."""
    name = (filename or "resume").replace(" ", "_").replace("/", "_").replace("\\", "_")
    name = re.sub(r'[\[\]\(\)\{\}<>\'\"#%&\+\=\|\^]', '', name)
    name = re.sub(r'_+', '_', name)
    name = re.sub(r'[^\w\-_\.]', '', name)
    return name or "resume"


class LocalDiskStore:
    def __init__(self, upload_dir: str, url_prefix: str = LOCAL_URL_PREFIX):
        self.upload_dir = upload_dir
        self.url_prefix = url_prefix.rstrip("/")

    async def put(self, data: bytes, content_type: Optional[str], filename: str) -> str:
        unique_id = str(uuid.uuid4())
        local_filename = f"{unique_id[:12]}_{safe_filename(filename)}"
        local_path = os.path.join(self.upload_dir, local_filename)

        try:
            os.makedirs(self.upload_dir, exist_ok=True)
            async with aiofiles.open(local_path, "wb") as f:
                await f.write(data)
        except OSError as e:
            raise StorageError(StorageError.UPLOAD_FAILED, str(e)) from e

        logger.info(f"Resume saved to local storage: {local_path}")
        return f"{self.url_prefix}/{local_filename}"

    def path_for(self, locator: str) -> Optional[str]:
        if not locator or not locator.startswith(self.url_prefix + "/"):
            return None
        return os.path.join(self.upload_dir, os.path.basename(locator))

    async def cleanup(self, locator: str) -> None:
        """Best-effort removal; failures are logged, never raised."""
        path = self.path_for(locator)
        if path is None:
            return
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to remove stored resume {path}: {e}")


class CloudinaryStore:
    def __init__(self, cloud_name: str, api_key: str, api_secret: str, folder: str = "hireflow/resumes"):
        if not all([cloud_name, api_key, api_secret]):
            raise StorageError(StorageError.NOT_CONFIGURED, "Cloudinary credentials not configured")
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )
        self.folder = folder
        logger.info(f"Cloudinary initialized: {cloud_name}")

    async def put(self, data: bytes, content_type: Optional[str], filename: str) -> str:
        public_id = f"{uuid.uuid4().hex[:12]}_{safe_filename(filename)}"
        try:
            # The SDK is blocking; keep it off the event loop
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                data,
                folder=self.folder,
                public_id=public_id,
                resource_type="raw",  # For non-image/video files
            )
        except Exception as e:
            logger.error(f"Failed to upload resume to Cloudinary: {e}")
            raise StorageError(StorageError.UPLOAD_FAILED, str(e)) from e

        url = result.get("secure_url")
        if not url:
            raise StorageError(StorageError.UPLOAD_FAILED, "Cloudinary returned no URL")
        return url

    async def cleanup(self, locator: str) -> None:
        # Remote copies are kept; deletion is handled in the Cloudinary console
        return None


def build_blob_store(settings: Settings):
    driver = (settings.resume_storage_driver or "disk").lower()
    if driver == "cloudinary":
        return CloudinaryStore(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            folder=settings.cloudinary_folder,
        )
    if driver != "disk":
        logger.warning(f"Unknown resume storage driver {driver!r}, using local disk")
    return LocalDiskStore(settings.upload_dir)
