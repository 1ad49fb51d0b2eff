"""
Image store client (Cloudinary upload API).

Accepts a base64 data URL and returns the durable HTTPS URL of the stored
image. URLs that are already hosted pass through unchanged.
"""
import hashlib
import logging
import time
from typing import Optional
import httpx
from eventchat.core.config import settings
from eventchat.core.exceptions import UpstreamUnavailableError, ValidationError

logger = logging.getLogger(__name__)


def _signature(params: dict) -> str:
    """Cloudinary signature: sorted key=value pairs joined by & plus the API secret."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{to_sign}{settings.CLOUDINARY_API_SECRET}".encode("utf-8")).hexdigest()


async def upload_image(data: Optional[str]) -> str:
    """Store an image and return its URL; empty input yields an empty string."""
    if not data:
        return ""
    if data.startswith("https://") or data.startswith("http://"):
        return data
    if not data.startswith("data:image/"):
        raise ValidationError("Image must be a data URL")
    if len(data) > settings.MAX_UPLOAD_SIZE:
        raise ValidationError("Image is too large")

    if not (settings.CLOUDINARY_CLOUD_NAME and settings.CLOUDINARY_API_KEY and settings.CLOUDINARY_API_SECRET):
        logger.error("Cloudinary credentials are not configured. Please set them in .env file.")
        raise UpstreamUnavailableError("Image uploads are not configured")

    params = {"timestamp": int(time.time())}
    payload = {
        "file": data,
        "api_key": settings.CLOUDINARY_API_KEY,
        "signature": _signature(params),
        **params,
    }
    url = f"https://api.cloudinary.com/v1_1/{settings.CLOUDINARY_CLOUD_NAME}/image/upload"

    try:
        async with httpx.AsyncClient(timeout=settings.IMAGE_UPLOAD_TIMEOUT) as client:
            response = await client.post(url, data=payload)
            response.raise_for_status()
            secure_url = response.json().get("secure_url")
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Image upload failed: {e}")
        raise UpstreamUnavailableError("Image upload failed") from e

    if not secure_url:
        raise UpstreamUnavailableError("Image upload failed")
    return secure_url
