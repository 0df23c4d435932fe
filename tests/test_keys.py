"""Tests for cache key derivation."""

from resize_service.services.cache import derive_cache_key, hash_source
from resize_service.services.resize import ResizeRequest


class TestDeriveCacheKey:
    def test_deterministic(self):
        k1 = derive_cache_key("https://example.com/a.png", 100, 50, 70)
        k2 = derive_cache_key("https://example.com/a.png", 100, 50, 70)
        assert k1 == k2

    def test_stable_across_processes(self):
        key = derive_cache_key("https://example.com/a.png", 100, 50, 70)
        assert key == "d105fbec5814ae36114d43e0d20853a6c9d4ba145672b28ed43f8941f221620e"

    def test_omitted_params_match_defaults(self):
        explicit = derive_cache_key("src", 0, 0, 80)
        assert derive_cache_key("src") == explicit
        assert derive_cache_key("src", width=None, height=None, quality=None) == explicit
        assert derive_cache_key("src", 0) == explicit

    def test_each_param_changes_key(self):
        base = derive_cache_key("src", 10, 20, 80)
        assert derive_cache_key("other", 10, 20, 80) != base
        assert derive_cache_key("src", 11, 20, 80) != base
        assert derive_cache_key("src", 10, 21, 80) != base
        assert derive_cache_key("src", 10, 20, 81) != base

    def test_width_and_height_not_interchangeable(self):
        assert derive_cache_key("src", 10, 20) != derive_cache_key("src", 20, 10)


class TestResizeRequestKey:
    def test_upload_keyed_by_content_hash(self):
        request = ResizeRequest(content=b"image-bytes", width=10)
        assert request.source_ref == "upload:" + hash_source(b"image-bytes")
        assert request.cache_key == derive_cache_key("upload:" + hash_source(b"image-bytes"), 10)

    def test_identical_uploads_share_key(self):
        a = ResizeRequest(content=b"same", width=10, quality=80)
        b = ResizeRequest(content=b"same", width=10)
        assert a.cache_key == b.cache_key

    def test_url_takes_precedence(self):
        request = ResizeRequest(url="https://example.com/a.png", content=b"ignored")
        assert request.source_ref == "url:https://example.com/a.png"

    def test_url_equal_to_upload_hash_gets_its_own_key(self):
        digest = hash_source(b"image-bytes")
        upload = ResizeRequest(content=b"image-bytes", width=8)
        remote = ResizeRequest(url=digest, width=8)
        assert upload.cache_key != remote.cache_key
