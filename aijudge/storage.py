"""Where uploaded originals go: local disk or a Supabase Storage bucket."""
import time
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

import aiofiles
import requests
from fastapi.concurrency import run_in_threadpool

from .config import Settings
from .errors import StorageError
from .logger import get_logger

logger = get_logger(__name__)


@dataclass
class StoredFile:
    file_url: str
    storage_path: str


def build_object_key(case_id: str, side: str, filename: str) -> str:
    # basename only: the client controls the filename
    safe_name = Path(filename or "document").name.replace(" ", "_") or "document"
    side_dir = "side-a" if side == "A" else "side-b"
    return f"cases/{case_id}/{side_dir}/{int(time.time() * 1000)}-{safe_name}"


class LocalFileStorage:
    """Writes files under ``upload_dir``; the app serves them from ``/uploads``."""

    url_prefix = "/uploads"

    def __init__(self, upload_dir: Path):
        self.upload_dir = Path(upload_dir)
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    async def save(self, content: bytes, filename: str, mimetype: str, case_id: str, side: str) -> StoredFile:
        key = build_object_key(case_id, side, filename)
        dest = self.upload_dir / key
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(dest, "wb") as out:
                await out.write(content)
        except OSError as e:
            raise StorageError(f"Failed to store file: {e}") from e
        return StoredFile(file_url=f"{self.url_prefix}/{key}", storage_path=key)


class SupabaseStorage:
    def __init__(self, url: str, key: str, bucket: str, timeout: float = 60):
        self.url = url.rstrip("/")
        self.key = key
        self.bucket = bucket
        self.timeout = timeout

    def public_url(self, key: str) -> str:
        return f"{self.url}/storage/v1/object/public/{self.bucket}/{quote(key)}"

    def _upload(self, content: bytes, key: str, mimetype: str):
        headers = {
            "Authorization": f"Bearer {self.key}",
            "apikey": self.key,
            "Content-Type": mimetype,
            "x-upsert": "false",
        }
        endpoint = f"{self.url}/storage/v1/object/{self.bucket}/{quote(key)}"
        try:
            resp = requests.post(endpoint, headers=headers, data=content, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Supabase upload error: {e}")
            raise StorageError(f"Failed to upload file: {e}") from e

    async def save(self, content: bytes, filename: str, mimetype: str, case_id: str, side: str) -> StoredFile:
        key = build_object_key(case_id, side, filename)
        await run_in_threadpool(self._upload, content, key, mimetype)
        return StoredFile(file_url=self.public_url(key), storage_path=key)


def build_storage(settings: Settings):
    if settings.storage_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_key:
            raise StorageError("STORAGE_BACKEND=supabase requires SUPABASE_URL and SUPABASE_KEY")
        return SupabaseStorage(settings.supabase_url, settings.supabase_key, settings.storage_bucket)
    return LocalFileStorage(settings.upload_dir)
