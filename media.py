import logging
from typing import Optional

import requests
from fastapi.concurrency import run_in_threadpool

from errors import UploadFailed

log = logging.getLogger(__name__)

CLOUDINARY_API = "https://api.cloudinary.com/v1_1"


class MediaUploader:
    """Unsigned uploads to Cloudinary using an upload preset."""

    def __init__(self, cloud_name: Optional[str], upload_preset: Optional[str], folder: str = "Blogging"):
        self.cloud_name = cloud_name
        self.upload_preset = upload_preset
        self.folder = folder

    def _upload(self, image: str) -> str:
        if not (self.cloud_name and self.upload_preset):
            log.error("Image upload requested but Cloudinary is not configured")
            raise UploadFailed()
        try:
            resp = requests.post(
                f"{CLOUDINARY_API}/{self.cloud_name}/image/upload",
                data={"file": image, "upload_preset": self.upload_preset, "folder": self.folder},
                timeout=10,
            )
        except requests.RequestException as err:
            log.error("Error uploading image: %s", err)
            raise UploadFailed() from err
        if resp.status_code != 200:
            log.error("Error uploading image: HTTP %s %s", resp.status_code, resp.text[:200])
            raise UploadFailed()
        url = resp.json().get("secure_url")
        if not url:
            raise UploadFailed()
        return url

    async def upload(self, image: str) -> str:
        return await run_in_threadpool(self._upload, image)
