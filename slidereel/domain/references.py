"""
Request-scoped reference tokens for candidate images.

Persistent image ids are long UUIDs; the model sees short tokens instead
(``c01`` for background/collection images, ``p01`` for product/overlay
images). Tokens live only for one generation request.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

BACKGROUND_PREFIX = "c"
OVERLAY_PREFIX = "p"
MIN_TOKEN_DIGITS = 2


@dataclass(frozen=True)
class ImageCandidate:
    """An image the generator may reference, with its brief."""

    id: str
    storage_path: str
    owner_id: Optional[str] = None  # None means publicly hosted
    short_description: str = ""
    long_description: str = ""
    categories: Sequence[str] = ()
    objects: Sequence[str] = ()


@dataclass
class ReferenceMap:
    background_tokens: List[str] = field(default_factory=list)
    overlay_tokens: List[str] = field(default_factory=list)
    background_forward: Dict[str, str] = field(default_factory=dict)
    overlay_forward: Dict[str, str] = field(default_factory=dict)
    reverse: Dict[str, str] = field(default_factory=dict)
    candidates: Dict[str, ImageCandidate] = field(default_factory=dict)

    def resolve_token(self, token: object) -> Optional[str]:
        if not isinstance(token, str):
            return None
        return self.reverse.get(token)

    def candidate_for(self, token: str) -> Optional[ImageCandidate]:
        image_id = self.reverse.get(token)
        if image_id is None:
            return None
        return self.candidates.get(image_id)


def _token_width(pool_size: int) -> int:
    # Pools beyond 99 entries widen every token of that pool.
    return max(MIN_TOKEN_DIGITS, len(str(pool_size)))


def _assign(prefix: str, pool: Sequence[ImageCandidate]) -> List[str]:
    width = _token_width(len(pool))
    return [f"{prefix}{n:0{width}d}" for n in range(1, len(pool) + 1)]


def resolve(
    background_pool: Sequence[ImageCandidate],
    overlay_pool: Sequence[ImageCandidate],
) -> ReferenceMap:
    """Assign tokens in pool order and build forward/reverse lookups."""
    ref_map = ReferenceMap()
    for prefix, pool, tokens, forward in (
        (BACKGROUND_PREFIX, background_pool, ref_map.background_tokens, ref_map.background_forward),
        (OVERLAY_PREFIX, overlay_pool, ref_map.overlay_tokens, ref_map.overlay_forward),
    ):
        for token, candidate in zip(_assign(prefix, pool), pool):
            tokens.append(token)
            forward.setdefault(candidate.id, token)
            ref_map.reverse[token] = candidate.id
            ref_map.candidates.setdefault(candidate.id, candidate)
    return ref_map


def materialize(
    document: Dict[str, Any],
    ref_map: ReferenceMap,
    url_for: Callable[[ImageCandidate], str],
) -> Dict[str, Any]:
    """
    Replace tokens with fetchable URLs and record the persistent ids.

    Tokens that do not resolve are passed through untouched with a ``None``
    id; a broken reference must not sink an otherwise valid slideshow.
    """
    result = copy.deepcopy(document)
    for slide in result.get("slides") or []:
        if not isinstance(slide, dict):
            continue
        token = slide.get("background_image_ref")
        candidate = ref_map.candidate_for(token) if isinstance(token, str) else None
        slide["background_image_id"] = candidate.id if candidate else None
        if candidate:
            slide["background_image_ref"] = url_for(candidate)

        for overlay in slide.get("overlays") or []:
            if not isinstance(overlay, dict):
                continue
            token = overlay.get("image_ref")
            candidate = ref_map.candidate_for(token) if isinstance(token, str) else None
            overlay["image_id"] = candidate.id if candidate else None
            if candidate:
                overlay["image_ref"] = url_for(candidate)
    return result
