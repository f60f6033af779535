"""Retrieve reference image bytes from HTTP or Google Cloud Storage"""

import logging
from typing import BinaryIO, Callable, Optional, Protocol, Tuple

from google.api_core import exceptions as gcs_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import storage

from asset_processor import DEFAULT_FETCH_TIMEOUT, fetch_asset_bytes
from exceptions import AssetUnavailableError
from models.asset import OBJECT_STORAGE_PREFIX

logger = logging.getLogger("MCP_Server")

HttpFetcher = Callable[[str, float], bytes]


class ObjectStorageReader(Protocol):
    def open(self, uri: str, timeout: float) -> BinaryIO:
        ...


def split_gcs_uri(uri: str) -> Tuple[str, str]:
    """Split "gs://bucket/path/to/object" into ("bucket", "path/to/object")"""
    if not uri.startswith(OBJECT_STORAGE_PREFIX):
        raise ValueError(f"Not a gs:// URI: {uri}")
    bucket, _, blob_name = uri[len(OBJECT_STORAGE_PREFIX):].partition("/")
    if not bucket or not blob_name:
        raise ValueError(f"gs:// URI must name a bucket and an object: {uri}")
    return bucket, blob_name


class GCSObjectReader:
    """Opens gs:// objects as binary streams"""

    def __init__(self, project: Optional[str] = None, client: Optional[storage.Client] = None):
        self.project = project
        self._client = client

    def _get_client(self) -> storage.Client:
        if self._client is None:
            self._client = storage.Client(project=self.project)
        return self._client

    def open(self, uri: str, timeout: float) -> BinaryIO:
        bucket_name, blob_name = split_gcs_uri(uri)
        blob = self._get_client().bucket(bucket_name).blob(blob_name)
        return blob.open("rb", timeout=timeout)


class AssetFetcher:
    """Dispatches by scheme: gs:// to object storage, everything else to HTTP.

    Callers are expected to have run the URL validator first.
    """

    def __init__(
        self,
        storage_reader: Optional[ObjectStorageReader] = None,
        http_fetcher: HttpFetcher = fetch_asset_bytes,
    ):
        self.storage_reader = storage_reader
        self.http_fetcher = http_fetcher

    def fetch(self, source_uri: str, timeout: float = DEFAULT_FETCH_TIMEOUT) -> bytes:
        if source_uri.startswith(OBJECT_STORAGE_PREFIX):
            return self._read_object(source_uri, timeout)
        return self.http_fetcher(source_uri, timeout)

    def _read_object(self, uri: str, timeout: float) -> bytes:
        if self.storage_reader is None:
            raise AssetUnavailableError(f"No object storage reader configured for {uri}")
        try:
            with self.storage_reader.open(uri, timeout) as stream:
                return stream.read()
        except (gcs_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError, OSError, ValueError) as e:
            logger.error(f"Failed to read {uri} from object storage: {e}")
            raise AssetUnavailableError(f"Failed to read {uri}: {e}") from e
