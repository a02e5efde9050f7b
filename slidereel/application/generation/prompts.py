"""
Slideshow generation prompts.

Contains the system and user prompts for both generation phases and the
image-brief formatting shared with the planning tools.
"""

import json
from typing import Any, Dict, List, Sequence

from slidereel.application.ports import ProductContext
from slidereel.domain.references import ImageCandidate, ReferenceMap

# Above these pool sizes, briefs are trimmed to keep the prompt bounded.
FULL_BRIEF_LIMIT = 100
SHORT_BRIEF_LIMIT = 500


def image_brief(ref: str, candidate: ImageCandidate, detail: str = "full") -> Dict[str, Any]:
    brief: Dict[str, Any] = {"ref": ref}
    if detail in ("full", "short"):
        brief["short_description"] = candidate.short_description
    if detail == "full":
        brief["long_description"] = candidate.long_description
    brief["categories"] = list(candidate.categories)
    brief["objects"] = list(candidate.objects)
    return brief


def brief_detail_for(pool_size: int) -> str:
    if pool_size < FULL_BRIEF_LIMIT:
        return "full"
    if pool_size <= SHORT_BRIEF_LIMIT:
        return "short"
    return "minimal"


def image_context(ref_map: ReferenceMap) -> List[Dict[str, Any]]:
    """Briefs for every token, sized by the total number of candidates."""
    tokens = [*ref_map.background_tokens, *ref_map.overlay_tokens]
    detail = brief_detail_for(len(tokens))
    briefs = []
    for token in tokens:
        candidate = ref_map.candidate_for(token)
        if candidate is not None:
            briefs.append(image_brief(token, candidate, detail))
    return briefs


class SlideshowPrompts:
    """Centralized prompt templates for slideshow generation."""

    @staticmethod
    def get_planning_system_prompt() -> str:
        return (
            "You are a TikTok/Instagram ad slideshow generator. You will first think "
            "out loud to plan. Later you will return ONLY JSON.\n"
            "You can call tools to browse example slideshows and image briefs. "
            "Background images use refs starting with 'c'; product overlay images "
            "use refs starting with 'p'."
        )

    @staticmethod
    def get_generation_system_prompt(canvas_width: int, canvas_height: int) -> str:
        return (
            "You are a TikTok/Instagram ad slideshow generator. Reply only with JSON "
            "matching the schema. Use provided image refs and examples as inspiration. "
            f"The canvas is {canvas_width}x{canvas_height} pixels."
        )

    @staticmethod
    def _context_lines(
        product: ProductContext,
        prompt: str,
        briefs: Sequence[Dict[str, Any]],
        examples: Sequence[Dict[str, Any]],
    ) -> List[str]:
        return [
            f"Product: {product.name}",
            f"Description: {product.description}",
            f"Industry: {json.dumps(product.industry)}",
            f"Product Type: {json.dumps(product.product_type)}",
            f"Matching Industries: {json.dumps(product.matching_industries)}",
            f"Matching Product Types: {json.dumps(product.matching_product_types)}",
            f"Prompt: {prompt}",
            "",
            "Allowed Images (use ref field only):",
            json.dumps(list(briefs)),
            "",
            "Relevant Example Slideshows (summaries):",
            json.dumps(list(examples), indent=2),
        ]

    @classmethod
    def get_planning_user_prompt(
        cls,
        product: ProductContext,
        prompt: str,
        briefs: Sequence[Dict[str, Any]],
        examples: Sequence[Dict[str, Any]],
        slide_count: int,
    ) -> str:
        lines = cls._context_lines(product, prompt, briefs, examples)
        lines += [
            "",
            f"The slideshow will have exactly {slide_count} slides.",
            "Plan out loud how you will: choose a format, pick images by ref, "
            "write slide texts, and timing. Do not output JSON yet.",
        ]
        return "\n".join(lines)

    @classmethod
    def get_generation_user_prompt(
        cls,
        product: ProductContext,
        prompt: str,
        briefs: Sequence[Dict[str, Any]],
        examples: Sequence[Dict[str, Any]],
        slide_count: int,
    ) -> str:
        lines = cls._context_lines(product, prompt, briefs, examples)
        lines += [
            "",
            f"Return exactly {slide_count} slides. Every slide needs a background "
            "ref and at least one text. Keep texts short; use \\n for line breaks.",
        ]
        return "\n".join(lines)
