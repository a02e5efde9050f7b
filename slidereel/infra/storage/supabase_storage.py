"""
Supabase object storage adapter.

The supabase SDK storage calls are blocking, so every call runs in a worker
thread.
"""

import asyncio
from typing import List, Optional, Sequence

from supabase import Client, create_client

from slidereel.application.ports import ObjectStoragePort
from slidereel.infra.config.logging_config import get_logger
from slidereel.infra.config.settings import Settings

# Supabase storage lists at most this many entries per call.
LIST_PAGE_SIZE = 100


def create_supabase_client(settings: Settings) -> Client:
    if not settings.supabase_url or not settings.supabase_key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")
    return create_client(settings.supabase_url, settings.supabase_key)


class SupabaseObjectStorage(ObjectStoragePort):
    """Rendered frames live in one bucket; reads may target other buckets."""

    def __init__(self, client: Client, bucket: str):
        self.client = client
        self.bucket = bucket
        self._log = get_logger("infra.storage")

    def _bucket(self, name: Optional[str] = None):
        return self.client.storage.from_(name or self.bucket)

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        # Re-renders overwrite frames left by an earlier run.
        await asyncio.to_thread(
            self._bucket().upload,
            path=path,
            file=data,
            file_options={"content-type": content_type, "upsert": "true"},
        )
        self._log.info("storage.upload", path=path, size=len(data))
        return path

    async def download(self, path: str, bucket: Optional[str] = None) -> bytes:
        return await asyncio.to_thread(self._bucket(bucket).download, path)

    async def list_prefix(self, prefix: str) -> List[str]:
        folder = prefix.rstrip("/")
        paths: List[str] = []
        offset = 0
        while True:
            entries = await asyncio.to_thread(
                self._bucket().list,
                folder,
                {"limit": LIST_PAGE_SIZE, "offset": offset},
            )
            for entry in entries or []:
                name = entry.get("name") if isinstance(entry, dict) else None
                if name:
                    paths.append(f"{folder}/{name}")
            if not entries or len(entries) < LIST_PAGE_SIZE:
                return paths
            offset += LIST_PAGE_SIZE

    async def remove(self, paths: Sequence[str]) -> None:
        if not paths:
            return
        await asyncio.to_thread(self._bucket().remove, list(paths))
        self._log.info("storage.remove", count=len(paths))
