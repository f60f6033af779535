"""Shared fixtures: synthetic images, a controllable clock and fake collaborators"""

from io import BytesIO
from typing import Dict, List, Tuple

import pytest
from PIL import Image

from exceptions import AssetUnavailableError
from managers.asset_cache import TTLCache
from managers.asset_fetcher import AssetFetcher
from managers.config_manager import PipelineConfig
from managers.url_validator import UrlValidator

PUBLIC_IP = "93.184.216.34"


def make_image_bytes(fmt: str = "PNG", size=(32, 32), mode: str = "RGB", color=(200, 30, 30)) -> bytes:
    """Render a solid-color image in the given format"""
    img = Image.new(mode, size, color)
    buf = BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def make_noisy_image_bytes(size=(96, 96)) -> bytes:
    """Render a deterministic noisy PNG so JPEG quality visibly changes file size"""
    img = Image.effect_noise(size, 64).convert("RGB")
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeHttp:
    """Stand-in for fetch_asset_bytes serving canned responses per URL"""

    def __init__(self, responses: Dict[str, bytes] = None):
        self.responses = dict(responses or {})
        self.calls: List[str] = []
        self.timeouts: List[float] = []

    def __call__(self, url: str, timeout: float) -> bytes:
        self.calls.append(url)
        self.timeouts.append(timeout)
        if url not in self.responses:
            raise AssetUnavailableError(f"404 for {url}")
        return self.responses[url]


class FakeStorageReader:
    def __init__(self, objects: Dict[str, bytes] = None):
        self.objects = dict(objects or {})
        self.calls: List[str] = []

    def open(self, uri: str, timeout: float):
        self.calls.append(uri)
        if uri not in self.objects:
            raise FileNotFoundError(uri)
        return BytesIO(self.objects[uri])


class FakeRemoteStore:
    """Records uploads and deletions against the remote file store"""

    def __init__(self):
        self.uploads: List[Tuple[bytes, str, str]] = []
        self.deleted: List[str] = []
        self.timeouts: List[float] = []

    def upload_file(self, data: bytes, mime_type: str, display_name: str, timeout: float = None) -> Tuple[str, str]:
        self.uploads.append((data, mime_type, display_name))
        self.timeouts.append(timeout)
        index = len(self.uploads)
        return f"https://generativelanguage.googleapis.com/v1beta/files/file-{index}", f"files/file-{index}"

    def delete_file(self, name: str, timeout: float = None) -> None:
        self.deleted.append(name)
        self.timeouts.append(timeout)


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> TTLCache:
    return TTLCache(clock=clock)


@pytest.fixture
def resolver_calls() -> List[str]:
    return []


@pytest.fixture
def validator(resolver_calls) -> UrlValidator:
    """Validator whose DNS maps every hostname to a public address"""
    def resolver(host):
        resolver_calls.append(host)
        return [PUBLIC_IP]
    return UrlValidator(resolver=resolver)


@pytest.fixture
def http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def storage_reader() -> FakeStorageReader:
    return FakeStorageReader()


@pytest.fixture
def fetcher(http, storage_reader) -> AssetFetcher:
    return AssetFetcher(storage_reader=storage_reader, http_fetcher=http)


@pytest.fixture
def config() -> PipelineConfig:
    return PipelineConfig(compression_enabled=False, cache_ttl_seconds=60)


@pytest.fixture
def remote() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def pixel_limit(monkeypatch) -> int:
    """Shrink Pillow's decompression bomb limit so a 32x32 image trips it.

    Pillow raises DecompressionBombError above twice MAX_IMAGE_PIXELS.
    """
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    return 100
