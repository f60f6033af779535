"""Turn reference image URIs into generation request parts"""

import logging
from typing import Iterable, List, Optional

from asset_processor import compress_to_jpeg, is_image_mime, sniff_mime_type
from exceptions import ImagePipelineError, UnsupportedContentError
from managers.asset_cache import AssetCache, bytes_key, registration_key
from managers.asset_fetcher import AssetFetcher
from managers.config_manager import PipelineConfig
from managers.url_validator import UrlValidator
from models.asset import AssetReference, RemoteAssetHandle
from models.parts import InlineImagePart, Part, RemoteHandlePart

logger = logging.getLogger("MCP_Server")


class PartAssembler:
    """Best-effort conversion of references into parts.

    Resolution order per reference:
    1. registered remote handle in cache -> RemoteHandlePart
    2. raw bytes in cache -> InlineImagePart
    3. validate, fetch, compress, sniff, cache -> InlineImagePart

    Any failure drops only that reference; a request with fewer images is
    still a valid request.
    """

    def __init__(
        self,
        cache: AssetCache,
        fetcher: AssetFetcher,
        validator: UrlValidator,
        config: PipelineConfig,
    ):
        self.cache = cache
        self.fetcher = fetcher
        self.validator = validator
        self.config = config

    def prepare_asset_part(self, source_uri: str, timeout: Optional[float] = None) -> Optional[Part]:
        """Return a part for source_uri, or None if the reference must be skipped"""
        if not source_uri or not source_uri.strip():
            return None
        reference = AssetReference.from_uri(source_uri)
        uri = reference.source_uri

        handle, found = self.cache.get(registration_key(uri))
        if found and isinstance(handle, RemoteAssetHandle):
            logger.debug(f"Using registered handle {handle.handle_uri} for {uri}")
            return RemoteHandlePart(uri=handle.handle_uri, mime_type=handle.mime_type)

        cached, found = self.cache.get(bytes_key(uri))
        if found:
            if isinstance(cached, bytes):
                logger.debug(f"Using cached image bytes for {uri}")
                return self._to_inline_part(cached, uri)
            logger.warning(f"Cached value for {uri} is {type(cached).__name__}, not bytes; refetching")

        try:
            data = self._acquire(reference, timeout)
        except ImagePipelineError as e:
            logger.warning(f"Skipping reference image {uri}: {e}")
            return None

        part = self._to_inline_part(data, uri)
        if part is None:
            return None

        self.cache.set(bytes_key(uri), data, self.config.cache_ttl_seconds)
        return part

    def prepare_asset_parts(self, source_uris: Iterable[str], timeout: Optional[float] = None) -> List[Part]:
        """Prepare parts for several references, preserving caller order"""
        parts: List[Part] = []
        for index, uri in enumerate(source_uris):
            part = self.prepare_asset_part(uri, timeout)
            if part is None:
                if uri and uri.strip():
                    logger.warning(f"Reference image {index} could not be loaded: {uri}")
                continue
            parts.append(part)
        return parts

    def _acquire(self, reference: AssetReference, timeout: Optional[float]) -> bytes:
        self.validator.ensure_safe(reference.source_uri)
        data = self.fetcher.fetch(reference.source_uri, timeout or self.config.http_timeout_seconds)

        if not self.config.compression_enabled:
            return data
        try:
            compressed = compress_to_jpeg(data, self.config.compression_quality)
        except UnsupportedContentError as e:
            logger.warning(f"Compression failed for {reference.source_uri}, using original: {e}")
            return data
        logger.debug(f"Compressed {reference.source_uri}: {len(data)} -> {len(compressed)} bytes")
        return compressed

    def _to_inline_part(self, data: bytes, uri: str) -> Optional[InlineImagePart]:
        mime_type = sniff_mime_type(data)
        if not is_image_mime(mime_type):
            logger.warning(f"Skipping reference image {uri}: content is {mime_type}, not an image")
            return None
        return InlineImagePart(mime_type=mime_type, data=data)
