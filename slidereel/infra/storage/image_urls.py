from urllib.parse import quote

from slidereel.domain.references import ImageCandidate

OWNED_IMAGE_PROXY_PATH = "/api/storage/user-images"


class ImageUrlBuilder:
    """
    Client-fetchable URL for a candidate image.

    Images with an owner go through the authenticated storage proxy; public
    images are served straight from the public bucket.
    """

    def __init__(self, supabase_url: str, public_bucket: str = "public-images"):
        self.supabase_url = supabase_url.rstrip("/")
        self.public_bucket = public_bucket

    def owned_url(self, storage_path: str) -> str:
        return f"{OWNED_IMAGE_PROXY_PATH}?path={quote(storage_path, safe='')}"

    def public_url(self, storage_path: str) -> str:
        return (
            f"{self.supabase_url}/storage/v1/object/public/"
            f"{self.public_bucket}/{storage_path.lstrip('/')}"
        )

    def __call__(self, candidate: ImageCandidate) -> str:
        if candidate.owner_id:
            return self.owned_url(candidate.storage_path)
        return self.public_url(candidate.storage_path)
