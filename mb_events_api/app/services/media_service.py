"""
Image uploads to the media host.

Uploads go to a Cloudinary-compatible ``image/upload`` endpoint as a
signed multipart request.  The signature is the SHA-1 of the sorted
signed parameters followed by the API secret.  The service returns the
durable ``secure_url`` of the stored image.  Failures are reported once
as ``UpstreamError``; nothing is retried.
"""

import hashlib
import logging
import time
from typing import Dict

import httpx

from ..core.config import Settings
from ..core.errors import UpstreamError

logger = logging.getLogger(__name__)


def sign_params(params: Dict[str, str], api_secret: str) -> str:
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class MediaService:
    """Client for the media host."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    def configured(self) -> bool:
        s = self.settings
        return bool(s.media_cloud_name and s.media_api_key and s.media_api_secret)

    async def upload_image(self, filename: str, content: bytes, content_type: str) -> str:
        """Upload one image and return its public HTTPS URL."""
        if not self.configured:
            raise UpstreamError("Media host is not configured")
        s = self.settings
        params = {
            "folder": s.media_folder,
            "timestamp": str(int(time.time())),
            "use_filename": "true",
        }
        data = dict(params, api_key=s.media_api_key, signature=sign_params(params, s.media_api_secret))
        url = f"{s.media_upload_url.rstrip('/')}/{s.media_cloud_name}/image/upload"
        files = {"file": (filename, content, content_type)}
        try:
            async with httpx.AsyncClient(timeout=s.media_timeout_seconds) as client:
                response = await client.post(url, data=data, files=files)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Image upload of %s failed: %s", filename, exc)
            raise UpstreamError("Image upload failed") from exc
        secure_url = payload.get("secure_url")
        if not secure_url:
            logger.error("Media host response for %s carried no secure_url", filename)
            raise UpstreamError("Image upload failed")
        logger.info("Uploaded image %s to %s", filename, secure_url)
        return secure_url
