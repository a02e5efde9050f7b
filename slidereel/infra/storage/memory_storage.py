from typing import Dict, List, Optional, Sequence

from slidereel.application.ports import ObjectStoragePort


class InMemoryObjectStorage(ObjectStoragePort):
    """Process-local object store for development without Supabase."""

    def __init__(self, bucket: str = "rendered-slides") -> None:
        self._objects: Dict[str, Dict[str, bytes]] = {}
        self._default = bucket

    def _bucket(self, name: Optional[str] = None) -> Dict[str, bytes]:
        return self._objects.setdefault(name or self._default, {})

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        self._bucket()[path] = data
        return path

    async def download(self, path: str, bucket: Optional[str] = None) -> bytes:
        try:
            return self._bucket(bucket)[path]
        except KeyError:
            raise FileNotFoundError(path) from None

    async def list_prefix(self, prefix: str) -> List[str]:
        return sorted(p for p in self._bucket() if p.startswith(prefix))

    async def remove(self, paths: Sequence[str]) -> None:
        bucket = self._bucket()
        for path in paths:
            bucket.pop(path, None)
