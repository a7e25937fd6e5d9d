import os
import re
import threading

import pytest

from minitracker.errors import BlobNotFoundError, StorageError
from minitracker.storage.local import LocalStorage

KEY_PATTERN = re.compile(r"^\d{8}T\d{12}Z_[0-9a-f]{16}\.(jpg|png|webp|heic)$")


@pytest.fixture
def store(tmp_path):
    adapter = LocalStorage(tmp_path / "blobs", base_url="http://localhost:3000/uploads/")
    yield adapter
    adapter.close()


class TestLocalStorage:
    def test_put_then_get(self, store):
        key = store.put("mini-1", b"jpeg-bytes", "image/jpeg")
        assert KEY_PATTERN.match(key)
        assert store.get(key) == b"jpeg-bytes"
        assert store.exists(key) is True

    def test_extension_follows_mime_type(self, store):
        assert store.put("m", b"x", "image/png").endswith(".png")
        assert store.put("m", b"x", "image/webp").endswith(".webp")

    def test_unsupported_mime_type_writes_nothing(self, store):
        with pytest.raises(StorageError):
            store.put("m", b"x", "application/pdf")
        assert store.list_blobs() == []

    def test_empty_blob_rejected(self, store):
        with pytest.raises(StorageError):
            store.put("m", b"", "image/jpeg")

    def test_keys_are_unique(self, store):
        keys = {store.put("m", b"x", "image/jpeg") for _ in range(50)}
        assert len(keys) == 50

    def test_concurrent_puts_get_distinct_keys(self, store):
        keys = []
        lock = threading.Lock()

        def upload(i):
            key = store.put("m", f"photo-{i}".encode(), "image/jpeg")
            with lock:
                keys.append((key, i))

        threads = [threading.Thread(target=upload, args=(i,)) for i in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len({key for key, _ in keys}) == 16
        for key, i in keys:
            assert store.get(key) == f"photo-{i}".encode()

    def test_get_missing_raises_blob_not_found(self, store):
        with pytest.raises(BlobNotFoundError):
            store.get("20240101T000000000000Z_0123456789abcdef.jpg")

    def test_delete_is_idempotent(self, store):
        key = store.put("m", b"x", "image/jpeg")
        store.delete(key)
        store.delete(key)
        assert store.exists(key) is False

    @pytest.mark.parametrize("key", ["../escape.jpg", "a/b.jpg", "", ".hidden"])
    def test_path_traversal_rejected(self, store, key):
        with pytest.raises(StorageError):
            store.get(key)

    def test_url_for(self, store):
        key = store.put("m", b"x", "image/jpeg")
        assert store.url_for(key) == f"http://localhost:3000/uploads/{key}"

    def test_url_without_base_is_file_uri(self, tmp_path):
        adapter = LocalStorage(tmp_path / "plain")
        key = adapter.put("m", b"x", "image/png")
        assert adapter.url_for(key).startswith("file://")
        adapter.close()

    def test_list_blobs_ignores_temp_files(self, store):
        key = store.put("m", b"abc", "image/jpeg")
        (store.base_path / ".upload-leftover.tmp").write_bytes(b"partial")
        blobs = store.list_blobs()
        assert [blob.key for blob in blobs] == [key]
        assert blobs[0].size == 3
        assert blobs[0].modified_at.tzinfo is not None

    def test_failed_link_leaves_no_blob_or_temp_file(self, store, monkeypatch):
        def broken_link(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "link", broken_link)
        with pytest.raises(StorageError, match="disk full"):
            store.put("m", b"data", "image/jpeg")
        assert list(store.base_path.iterdir()) == []

    def test_existing_blob_is_never_overwritten(self, store, monkeypatch):
        existing = store.put("m", b"original", "image/jpeg")
        monkeypatch.setattr(store, "_new_key", lambda key_hint, extension: existing)

        with pytest.raises(StorageError, match="overwrite"):
            store.put("m", b"replacement", "image/jpeg")

        assert store.get(existing) == b"original"
        assert [p.name for p in store.base_path.iterdir()] == [existing]
