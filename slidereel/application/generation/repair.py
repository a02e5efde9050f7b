"""
Deterministic repair of generated slideshow documents.

Model output is not trusted to match the contract even when the structured
call succeeded. The document is first parsed strictly; whatever the outcome,
the named transformations below are applied in order. Every transformation
is total: any input shape yields a well-formed value and nothing raises.
"""

import copy
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

from slidereel.application.generation.schema_builder import (
    OVERLAY_SIZE_RANGE,
    ROTATION_RANGE,
    StructuralContract,
)
from slidereel.domain.layout import snap_font_size, validate_text_position
from slidereel.infra.config.logging_config import get_logger

log = get_logger("generation.repair")

DEFAULT_CAPTION = ""


@dataclass
class RepairResult:
    document: Dict[str, Any]
    adjustments: int = 0
    strict_valid: bool = False
    repairs: List[str] = field(default_factory=list)


def _number(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return [value]
    return []


def _placeholder_slide(token: str) -> Dict[str, Any]:
    return {"background_image_ref": token, "texts": [], "overlays": []}


def normalize_slide_array(
    raw: Any, slide_count: int, background_tokens: Sequence[str]
) -> List[Dict[str, Any]]:
    """
    Coerce the ``slides`` value into a list of slide dicts.

    A bare object is wrapped; a missing or unusable value becomes
    ``slide_count`` placeholders cycling through the background tokens.
    Non-dict items inside a list are dropped.
    """
    if isinstance(raw, dict):
        return [raw]
    if isinstance(raw, list):
        slides = [item for item in raw if isinstance(item, dict)]
        if slides:
            return slides
    if not background_tokens:
        return [_placeholder_slide("") for _ in range(max(slide_count, 0))]
    return [
        _placeholder_slide(background_tokens[i % len(background_tokens)])
        for i in range(max(slide_count, 0))
    ]


def pad_to_count(
    slides: List[Dict[str, Any]], slide_count: int, background_tokens: Sequence[str]
) -> List[Dict[str, Any]]:
    """Clone existing slides cyclically until there are ``slide_count``."""
    if len(slides) >= slide_count:
        return list(slides)
    if not slides:
        return normalize_slide_array(None, slide_count, background_tokens)

    padded = list(slides)
    originals = len(slides)
    while len(padded) < slide_count:
        index = len(padded)
        clone = copy.deepcopy(slides[index % originals])
        if background_tokens:
            clone["background_image_ref"] = background_tokens[index % len(background_tokens)]
        padded.append(clone)
    return padded


def truncate_to_count(
    slides: List[Dict[str, Any]], slide_count: int
) -> List[Dict[str, Any]]:
    return list(slides[: max(slide_count, 0)])


def coerce_background_ref(
    slide: Dict[str, Any], index: int, background_tokens: Sequence[str]
) -> Dict[str, Any]:
    # Unknown string tokens are left for materialization to pass through.
    ref = slide.get("background_image_ref")
    if (not isinstance(ref, str) or not ref) and background_tokens:
        slide["background_image_ref"] = background_tokens[index % len(background_tokens)]
    return slide


def coerce_texts_array(
    raw: Any, canvas_width: float, canvas_height: float
) -> List[Dict[str, Any]]:
    """Wrap a bare object, drop unusable entries, coerce every field."""
    texts = []
    for item in _as_list(raw):
        if isinstance(item, str):
            item = {"text": item}
        if not isinstance(item, dict):
            continue
        text = item.get("text")
        if text is None:
            continue
        texts.append(
            {
                "text": str(text),
                "position_x": _number(item.get("position_x"), canvas_width / 2),
                "position_y": _number(item.get("position_y"), canvas_height / 2),
                "size": snap_font_size(item.get("size")),
            }
        )
    return texts


def coerce_overlays_array(
    raw: Any, canvas_width: float, canvas_height: float
) -> List[Dict[str, Any]]:
    overlays = []
    for item in _as_list(raw):
        if not isinstance(item, dict):
            continue
        image_ref = item.get("image_ref")
        if not isinstance(image_ref, str) or not image_ref:
            continue
        overlays.append(
            {
                "image_ref": image_ref,
                "position_x": _clamp(
                    _number(item.get("position_x"), canvas_width / 2), 0, canvas_width
                ),
                "position_y": _clamp(
                    _number(item.get("position_y"), canvas_height / 2), 0, canvas_height
                ),
                "rotation": _clamp(_number(item.get("rotation"), 0), *ROTATION_RANGE),
                "size": _clamp(_number(item.get("size"), 50), *OVERLAY_SIZE_RANGE),
            }
        )
    return overlays


def reclamp_positions(
    texts: List[Dict[str, Any]],
    canvas_width: float,
    canvas_height: float,
    margin: float,
) -> Tuple[List[Dict[str, Any]], int]:
    """Move every text into its safe bounds; return the texts and how many moved."""
    adjusted = 0
    result = []
    for entry in texts:
        check = validate_text_position(
            entry["text"],
            entry["size"],
            entry["position_x"],
            entry["position_y"],
            canvas_width,
            canvas_height,
            margin,
        )
        if check.adjusted:
            adjusted += 1
        result.append({**entry, "position_x": check.x, "position_y": check.y})
    return result, adjusted


def repair_document(raw: Any, contract: StructuralContract) -> RepairResult:
    """Force ``raw`` into a document of exactly ``contract.slide_count`` slides."""
    parsed = contract.validate(raw)
    strict_valid = parsed is not None
    source: Dict[str, Any] = parsed.model_dump() if parsed is not None else (
        raw if isinstance(raw, dict) else {}
    )

    tokens = contract.background_tokens
    count = contract.slide_count
    width, height = contract.canvas_width, contract.canvas_height
    repairs: List[str] = []

    raw_slides = source.get("slides")
    slides = normalize_slide_array(raw_slides, count, tokens)
    if not isinstance(raw_slides, list):
        repairs.append("normalize_slide_array")
    if len(slides) < count:
        slides = pad_to_count(slides, count, tokens)
        repairs.append("pad_to_count")
    elif len(slides) > count:
        slides = truncate_to_count(slides, count)
        repairs.append("truncate_to_count")

    adjustments = 0
    repaired_slides = []
    for index, slide in enumerate(slides):
        slide = coerce_background_ref(dict(slide), index, tokens)
        texts = coerce_texts_array(slide.get("texts"), width, height)
        texts, moved = reclamp_positions(texts, width, height, contract.margin)
        adjustments += moved
        repaired_slides.append(
            {
                "background_image_ref": slide.get("background_image_ref"),
                "texts": texts,
                "overlays": coerce_overlays_array(slide.get("overlays"), width, height),
            }
        )

    caption = source.get("caption")
    document = {
        "caption": caption if isinstance(caption, str) else DEFAULT_CAPTION,
        "slides": repaired_slides,
    }
    log.info(
        "generation.repair.done",
        strict_valid=strict_valid,
        repairs=repairs,
        adjustments=adjustments,
        slides=len(repaired_slides),
    )
    return RepairResult(
        document=document,
        adjustments=adjustments,
        strict_valid=strict_valid,
        repairs=repairs,
    )
