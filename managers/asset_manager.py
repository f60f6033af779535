"""Registration of reference images in the remote file store"""

import logging
import posixpath
from datetime import datetime, timedelta
from typing import Optional, Protocol, Tuple
from urllib.parse import urlsplit

from asset_processor import compress_to_jpeg, is_image_mime, sniff_mime_type
from exceptions import RegistrationError, RegistrationNotFoundError, UnsupportedContentError
from managers.asset_cache import AssetCache, registration_key
from managers.asset_fetcher import AssetFetcher
from managers.config_manager import PipelineConfig
from managers.url_validator import UrlValidator
from models.asset import RemoteAssetHandle

logger = logging.getLogger("MCP_Server")


class RemoteFileStore(Protocol):
    def upload_file(
        self,
        data: bytes,
        mime_type: str,
        display_name: str,
        timeout: Optional[float] = None,
    ) -> Tuple[str, str]:
        ...

    def delete_file(self, name: str, timeout: Optional[float] = None) -> None:
        ...


def display_name_for(source_uri: str) -> str:
    """Last path segment of the URI, or the host when the path is empty"""
    parsed = urlsplit(source_uri)
    name = posixpath.basename(parsed.path.rstrip("/"))
    return name or parsed.netloc or "reference-image"


class AssetManager:
    """Uploads and deletes reference images, idempotent through the cache.

    Unlike inline parts, registration is an explicit contract: every failure
    is raised to the caller.
    """

    def __init__(
        self,
        remote: RemoteFileStore,
        cache: AssetCache,
        fetcher: AssetFetcher,
        validator: UrlValidator,
        config: PipelineConfig,
    ):
        self.remote = remote
        self.cache = cache
        self.fetcher = fetcher
        self.validator = validator
        self.config = config

    def get_registration(self, source_uri: str) -> Optional[RemoteAssetHandle]:
        value, found = self.cache.get(registration_key(source_uri))
        if found and isinstance(value, RemoteAssetHandle):
            return value
        if found:
            logger.warning(f"Unexpected registration cache value for {source_uri}: {type(value).__name__}")
        return None

    def register_asset(self, source_uri: str, timeout: Optional[float] = None) -> str:
        """Upload the image at source_uri and return its remote handle URI.

        A second call inside the TTL window returns the cached handle without
        touching the network.

        Raises:
            RejectedReferenceError: URL failed the SSRF check
            AssetUnavailableError: Fetch failed
            UnsupportedContentError: Bytes are not an image
            RegistrationError: Upload failed
        """
        source_uri = source_uri.strip()
        if not source_uri:
            raise ValueError("source_uri must not be empty")

        existing = self.get_registration(source_uri)
        if existing is not None:
            logger.debug(f"Registration cache hit for {source_uri}: {existing.internal_name}")
            return existing.handle_uri

        self.validator.ensure_safe(source_uri)
        timeout = timeout or self.config.http_timeout_seconds
        data = self.fetcher.fetch(source_uri, timeout)

        if self.config.compression_enabled:
            try:
                data = compress_to_jpeg(data, self.config.compression_quality)
            except UnsupportedContentError as e:
                logger.warning(f"Compression failed for {source_uri}, uploading original: {e}")

        mime_type = sniff_mime_type(data)
        if not is_image_mime(mime_type):
            raise UnsupportedContentError(f"{source_uri} is {mime_type}, not an image")

        try:
            handle_uri, internal_name = self.remote.upload_file(
                data, mime_type, display_name_for(source_uri), timeout=timeout
            )
        except RegistrationError:
            raise
        except Exception as e:
            raise RegistrationError(f"Failed to upload {source_uri}: {e}") from e

        ttl = self.config.cache_ttl_seconds
        handle = RemoteAssetHandle(
            handle_uri=handle_uri,
            internal_name=internal_name,
            mime_type=mime_type,
            expires_at=datetime.now() + timedelta(seconds=ttl),
        )
        self.cache.set(registration_key(source_uri), handle, ttl)
        logger.info(f"Registered {source_uri} as {internal_name} ({len(data)} bytes, {mime_type})")
        return handle_uri

    def unregister_asset(self, source_uri: str, timeout: Optional[float] = None) -> None:
        """Delete the remote file registered for source_uri.

        Raises:
            RegistrationNotFoundError: No live registration entry (never registered or expired)
            RegistrationError: Remote deletion failed
        """
        source_uri = source_uri.strip()
        handle = self.get_registration(source_uri)
        if handle is None:
            raise RegistrationNotFoundError(source_uri)

        try:
            self.remote.delete_file(
                handle.internal_name, timeout=timeout or self.config.http_timeout_seconds
            )
        except RegistrationError:
            raise
        except Exception as e:
            raise RegistrationError(f"Failed to delete {handle.internal_name}: {e}") from e

        self.cache.delete(registration_key(source_uri))
        logger.info(f"Unregistered {source_uri} ({handle.internal_name})")
