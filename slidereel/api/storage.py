"""
Authenticated proxy for private storage objects.

Owned candidate images (``user-images``) and rendered frames
(``rendered-slides``) live in private buckets under a ``{user_id}/`` prefix.
Clients fetch them here instead of holding storage credentials.
"""

import mimetypes
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response, status

from slidereel.infra.config.dependencies import CurrentUserId, ObjectStorageDep
from slidereel.infra.config.logging_config import get_logger
from slidereel.infra.config.settings import get_settings

router = APIRouter(prefix="/storage", tags=["storage"])
log = get_logger("api.storage")


def proxied_buckets() -> set:
    settings = get_settings()
    return {settings.user_images_bucket, settings.rendered_slides_bucket}


def _owner_of(path: str) -> Optional[str]:
    """First path segment, or None when the path is not a plain relative key."""
    segments = path.split("/")
    if path.startswith("/") or any(s in ("", ".", "..") for s in segments):
        return None
    return segments[0] if len(segments) > 1 else None


@router.get("/{bucket}")
async def get_object(
    bucket: str,
    current_user_id: CurrentUserId,
    storage: ObjectStorageDep,
    path: Optional[str] = Query(None),
) -> Response:
    if bucket not in proxied_buckets():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid bucket")
    if not path:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing path")

    owner = _owner_of(path)
    if owner is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid path")
    if owner != current_user_id:
        log.info("storage.proxy.forbidden", bucket=bucket, path=path)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    try:
        data = await storage.download(path, bucket=bucket)
    except FileNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")

    media_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
    return Response(
        content=data,
        media_type=media_type,
        headers={"Cache-Control": "private, max-age=3600"},
    )
