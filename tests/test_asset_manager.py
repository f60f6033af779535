"""Tests for registering and unregistering reference images"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from exceptions import (
    AssetUnavailableError,
    RegistrationError,
    RegistrationNotFoundError,
    RejectedReferenceError,
    UnsupportedContentError,
)
from managers.asset_cache import registration_key
from managers.asset_manager import AssetManager, display_name_for
from managers.config_manager import PipelineConfig
from managers.part_assembler import PartAssembler
from managers.url_validator import UrlValidator
from models.parts import RemoteHandlePart
from tests.conftest import make_image_bytes

URL = "https://host/path/img.png"


@pytest.fixture
def manager(remote, cache, fetcher, validator, config):
    return AssetManager(remote, cache, fetcher, validator, config)


class TestRegisterAsset:
    def test_register_uploads_and_caches(self, manager, remote, http, cache, png_bytes):
        """Test registration uploads sniffed bytes and caches the handle"""
        http.responses[URL] = png_bytes

        handle_uri = manager.register_asset(URL)

        assert handle_uri.endswith("/files/file-1")
        assert remote.uploads == [(png_bytes, "image/png", "img.png")]
        handle = manager.get_registration(URL)
        assert handle.handle_uri == handle_uri
        assert handle.internal_name == "files/file-1"
        assert handle.mime_type == "image/png"
        assert handle.expires_at > datetime.now()

    def test_register_twice_is_idempotent(self, manager, remote, http, png_bytes):
        """Test a second registration within the TTL does not upload again"""
        http.responses[URL] = png_bytes

        first = manager.register_asset(URL)
        second = manager.register_asset(URL)

        assert first == second
        assert len(remote.uploads) == 1
        assert http.calls == [URL]

    def test_register_after_expiry_uploads_again(self, manager, remote, http, clock, png_bytes):
        http.responses[URL] = png_bytes
        manager.register_asset(URL)
        clock.advance(61)
        assert manager.register_asset(URL).endswith("/files/file-2")
        assert len(remote.uploads) == 2

    def test_rejected_url_never_uploads(self, remote, cache, fetcher, config, http):
        """Test SSRF rejection surfaces to the caller with no fetch or upload"""
        manager = AssetManager(remote, cache, fetcher, UrlValidator(), config)
        with pytest.raises(RejectedReferenceError):
            manager.register_asset("http://169.254.169.254/latest/meta-data")
        assert http.calls == []
        assert remote.uploads == []

    def test_non_image_raises(self, manager, remote, http):
        http.responses[URL] = b"<html>nope</html>"
        with pytest.raises(UnsupportedContentError):
            manager.register_asset(URL)
        assert remote.uploads == []
        assert manager.get_registration(URL) is None

    def test_fetch_failure_raises(self, manager, remote):
        with pytest.raises(AssetUnavailableError):
            manager.register_asset(URL)
        assert remote.uploads == []

    def test_upload_failure_is_registration_error(self, cache, fetcher, validator, config, http, png_bytes):
        """Test arbitrary upload failures are classified as RegistrationError"""
        http.responses[URL] = png_bytes
        remote = MagicMock()
        remote.upload_file.side_effect = RuntimeError("quota exceeded")
        manager = AssetManager(remote, cache, fetcher, validator, config)

        with pytest.raises(RegistrationError, match="quota exceeded"):
            manager.register_asset(URL)
        assert manager.get_registration(URL) is None

    @pytest.mark.parametrize("source", ["", "   "])
    def test_empty_uri_rejected(self, manager, source):
        with pytest.raises(ValueError):
            manager.register_asset(source)

    def test_compression_applies_before_upload(self, remote, cache, fetcher, validator, http, png_bytes):
        """Test uploads carry compressed JPEG bytes when compression is enabled"""
        config = PipelineConfig(compression_enabled=True, cache_ttl_seconds=60)
        manager = AssetManager(remote, cache, fetcher, validator, config)
        http.responses[URL] = png_bytes

        manager.register_asset(URL)

        data, mime_type, _ = remote.uploads[0]
        assert mime_type == "image/jpeg"
        assert data[:2] == b"\xff\xd8"

    @pytest.mark.parametrize("compression_enabled", [False, True])
    def test_oversized_image_is_unsupported(self, remote, cache, fetcher, validator, http, pixel_limit, compression_enabled):
        """Test an image over Pillow's pixel limit is a classified error, not a Pillow exception"""
        config = PipelineConfig(compression_enabled=compression_enabled, cache_ttl_seconds=60)
        manager = AssetManager(remote, cache, fetcher, validator, config)
        http.responses[URL] = make_image_bytes("PNG", size=(32, 32))

        with pytest.raises(UnsupportedContentError):
            manager.register_asset(URL)
        assert remote.uploads == []

    def test_timeout_reaches_fetch_and_upload(self, manager, remote, http, png_bytes):
        """Test the caller's deadline bounds both the fetch and the upload"""
        http.responses[URL] = png_bytes
        manager.register_asset(URL, timeout=4.0)
        assert http.timeouts == [4.0]
        assert remote.timeouts == [4.0]

    def test_default_timeout_from_config(self, manager, remote, http, config, png_bytes):
        http.responses[URL] = png_bytes
        manager.register_asset(URL)
        assert remote.timeouts == [config.http_timeout_seconds]


class TestUnregisterAsset:
    def test_unregister_deletes_and_forgets(self, manager, remote, http, png_bytes):
        """Test unregister deletes the remote file and drops the cache entry"""
        http.responses[URL] = png_bytes
        manager.register_asset(URL)

        manager.unregister_asset(URL)

        assert remote.deleted == ["files/file-1"]
        assert manager.get_registration(URL) is None
        with pytest.raises(RegistrationNotFoundError):
            manager.unregister_asset(URL)

    def test_timeout_reaches_delete(self, manager, remote, http, png_bytes):
        http.responses[URL] = png_bytes
        manager.register_asset(URL, timeout=4.0)
        manager.unregister_asset(URL, timeout=1.5)
        assert remote.timeouts == [4.0, 1.5]

    def test_unregister_unknown(self, manager, remote):
        with pytest.raises(RegistrationNotFoundError):
            manager.unregister_asset("https://host/never.png")
        assert remote.deleted == []

    def test_unregister_after_expiry(self, manager, remote, http, clock, png_bytes):
        """Test an expired registration is treated as not found"""
        http.responses[URL] = png_bytes
        manager.register_asset(URL)
        clock.advance(120)

        with pytest.raises(RegistrationNotFoundError):
            manager.unregister_asset(URL)
        assert remote.deleted == []

    def test_delete_failure_keeps_entry(self, cache, fetcher, validator, config, http, png_bytes):
        """Test a failed remote delete raises and leaves the registration in place"""
        http.responses[URL] = png_bytes
        remote = MagicMock()
        remote.upload_file.return_value = ("https://files/abc", "files/abc")
        remote.delete_file.side_effect = RuntimeError("unavailable")
        manager = AssetManager(remote, cache, fetcher, validator, config)
        manager.register_asset(URL)

        with pytest.raises(RegistrationError):
            manager.unregister_asset(URL)
        assert manager.get_registration(URL) is not None

    def test_unexpected_cache_value_is_not_a_registration(self, manager, cache):
        cache.set(registration_key(URL), "garbage", 60)
        assert manager.get_registration(URL) is None


class TestRegistrationAndParts:
    def test_registered_asset_becomes_handle_part(self, manager, cache, fetcher, validator, config, http, png_bytes):
        """Test prepare_asset_part prefers a registered handle over inline bytes"""
        http.responses[URL] = png_bytes
        handle_uri = manager.register_asset(URL)
        assembler = PartAssembler(cache, fetcher, validator, config)

        part = assembler.prepare_asset_part(URL)

        assert part == RemoteHandlePart(uri=handle_uri, mime_type="image/png")
        assert http.calls == [URL]

    def test_unregistered_asset_falls_back_to_inline(self, manager, cache, fetcher, validator, config, http, png_bytes):
        http.responses[URL] = png_bytes
        manager.register_asset(URL)
        manager.unregister_asset(URL)
        assembler = PartAssembler(cache, fetcher, validator, config)

        part = assembler.prepare_asset_part(URL)

        assert part.data == png_bytes


class TestDisplayName:
    @pytest.mark.parametrize("uri,expected", [
        ("https://host/path/img.png", "img.png"),
        ("https://host/path/dir/", "dir"),
        ("https://host", "host"),
        ("gs://bucket/a/b.jpg", "b.jpg"),
    ])
    def test_display_name_for(self, uri, expected):
        assert display_name_for(uri) == expected
