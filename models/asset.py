"""Asset data models"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

OBJECT_STORAGE_PREFIX = "gs://"


class AssetKind(str, Enum):
    OBJECT_STORAGE = "object-storage"
    HTTP = "http"


@dataclass(frozen=True)
class AssetReference:
    """Caller-supplied pointer to a reference image"""
    source_uri: str
    kind: AssetKind

    @classmethod
    def from_uri(cls, source_uri: str) -> "AssetReference":
        uri = source_uri.strip()
        kind = AssetKind.OBJECT_STORAGE if uri.startswith(OBJECT_STORAGE_PREFIX) else AssetKind.HTTP
        return cls(source_uri=uri, kind=kind)


@dataclass(frozen=True)
class RemoteAssetHandle:
    """Registration of a source URI in the remote file store.

    Both names are written together in one cache entry so they always
    expire at the same moment.
    """
    handle_uri: str  # Usable in generation requests
    internal_name: str  # Required for deletion, e.g. "files/abc123"
    mime_type: str
    expires_at: datetime
