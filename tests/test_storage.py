import asyncio

import pytest
import requests

from aijudge import storage
from aijudge.config import Settings
from aijudge.errors import StorageError


def test_object_key_keeps_basename_only():
    key = storage.build_object_key("case_1", "A", "../../secret plans.pdf")
    assert key.startswith("cases/case_1/side-a/")
    assert key.endswith("-secret_plans.pdf")
    assert ".." not in key


def test_local_storage_writes_file(tmp_path):
    store = storage.LocalFileStorage(tmp_path / "uploads")
    stored = asyncio.run(store.save(b"evidence", "note.txt", "text/plain", "case_1", "B"))

    assert stored.storage_path.startswith("cases/case_1/side-b/")
    assert stored.file_url == f"/uploads/{stored.storage_path}"
    assert (tmp_path / "uploads" / stored.storage_path).read_bytes() == b"evidence"


def test_supabase_upload(monkeypatch):
    calls = []

    class Ok:
        def raise_for_status(self):
            pass

    def fake_post(url, headers, data, timeout):
        calls.append((url, headers, data))
        return Ok()

    monkeypatch.setattr(storage.requests, "post", fake_post)
    bucket = storage.SupabaseStorage("https://proj.supabase.co/", "service-key", "pdfbucket")
    stored = asyncio.run(bucket.save(b"%PDF", "brief.pdf", "application/pdf", "case_1", "A"))

    url, headers, data = calls[0]
    assert url.startswith("https://proj.supabase.co/storage/v1/object/pdfbucket/cases/case_1/side-a/")
    assert headers["x-upsert"] == "false"
    assert headers["Content-Type"] == "application/pdf"
    assert data == b"%PDF"
    assert stored.file_url == f"https://proj.supabase.co/storage/v1/object/public/pdfbucket/{stored.storage_path}"


def test_supabase_failure_raises_storage_error(monkeypatch):
    def fail(*args, **kwargs):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(storage.requests, "post", fail)
    bucket = storage.SupabaseStorage("https://proj.supabase.co", "k", "b")
    with pytest.raises(StorageError):
        asyncio.run(bucket.save(b"x", "a.txt", "text/plain", "case_1", "A"))


def test_build_storage(tmp_path):
    assert isinstance(storage.build_storage(Settings(upload_dir=tmp_path)), storage.LocalFileStorage)
    remote = storage.build_storage(Settings(storage_backend="supabase", supabase_url="https://x.co", supabase_key="k"))
    assert isinstance(remote, storage.SupabaseStorage)
    with pytest.raises(StorageError):
        storage.build_storage(Settings(storage_backend="supabase"))
