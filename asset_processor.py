"""Image byte utilities: HTTP fetching, content sniffing and JPEG compression"""

import logging
from io import BytesIO
from typing import Any, Dict

import requests
from PIL import Image, UnidentifiedImageError

from exceptions import AssetUnavailableError, UnsupportedContentError

logger = logging.getLogger("AssetProcessor")

OCTET_STREAM = "application/octet-stream"
DEFAULT_FETCH_TIMEOUT = 30


def fetch_asset_bytes(asset_url: str, timeout: float = DEFAULT_FETCH_TIMEOUT) -> bytes:
    """Fetch raw bytes over HTTP(S).

    The URL must already have passed the SSRF check; this function does not
    look at where the host resolves. Redirects are refused.
    """
    try:
        response = requests.get(asset_url, timeout=timeout, allow_redirects=False)
        response.raise_for_status()
        if response.is_redirect:
            raise AssetUnavailableError(
                f"Refusing to follow redirect from {asset_url} to {response.headers.get('location')}"
            )
        return response.content
    except requests.RequestException as e:
        logger.error(f"Failed to fetch asset from {asset_url}: {e}")
        raise AssetUnavailableError(f"Failed to fetch {asset_url}: {e}") from e


def sniff_mime_type(data: bytes) -> str:
    """Detect the MIME type of image bytes from their content.

    Returns "application/octet-stream" for anything Pillow cannot identify
    and for images over Pillow's decompression bomb pixel limit.
    File names and server headers are never consulted.
    """
    if not data:
        return OCTET_STREAM
    try:
        with Image.open(BytesIO(data)) as img:
            return Image.MIME.get(img.format, OCTET_STREAM)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
        return OCTET_STREAM


def is_image_mime(mime_type: str) -> bool:
    return mime_type.startswith("image/")


def get_image_metadata(image_bytes: bytes) -> Dict[str, Any]:
    """Extract width, height, format from image bytes"""
    try:
        with Image.open(BytesIO(image_bytes)) as img:
            return {
                "width": img.width,
                "height": img.height,
                "format": img.format
            }
    except Exception as e:
        logger.warning(f"Failed to extract image metadata: {e}")
        return {"width": None, "height": None, "format": None}


def compress_to_jpeg(image_bytes: bytes, quality: int = 75) -> bytes:
    """Re-encode any Pillow-readable raster image as JPEG.

    Args:
        image_bytes: Source image in any format Pillow can decode (PNG, GIF, WebP, JPEG, ...)
        quality: JPEG quality, 1-100

    Returns:
        JPEG bytes

    Raises:
        ValueError: If quality is out of range
        UnsupportedContentError: If the bytes cannot be decoded as an image or
            exceed the decompression bomb pixel limit
    """
    if not 1 <= quality <= 100:
        raise ValueError(f"JPEG quality must be between 1 and 100, got {quality}")

    try:
        with Image.open(BytesIO(image_bytes)) as img:
            img.load()
            # JPEG has no alpha channel; flatten onto white
            if img.mode in ("RGBA", "LA", "P"):
                if img.mode == "P":
                    img = img.convert("RGBA")
                background = Image.new("RGB", img.size, (255, 255, 255))
                background.paste(img, mask=img.split()[-1])
                img = background
            elif img.mode != "RGB":
                img = img.convert("RGB")

            output = BytesIO()
            img.save(output, format="JPEG", quality=quality)
            return output.getvalue()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise UnsupportedContentError(f"Not recognizable as an image: {e}") from e
