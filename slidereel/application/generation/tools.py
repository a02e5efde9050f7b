"""
Read-only tools available to the model during the planning phase.

Tools are built per request so they close over that request's reference
map; the model only ever sees tokens, never persistent image ids.
"""

from typing import Any, Dict, List, Literal, Optional

from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel, Field

from slidereel.application.generation.prompts import image_brief
from slidereel.application.ports import ImageCatalogPort, ProductContext
from slidereel.domain.references import ReferenceMap

MAX_BRIEF_RESULTS = 50


class ListExamplesArgs(BaseModel):
    industry: Optional[str] = Field(None, description="Filter by industry")
    product_type: Optional[str] = Field(None, description="Filter by product type")


class ExampleFramesArgs(BaseModel):
    example_id: str = Field(..., description="Id of an example slideshow")


class FindBriefsArgs(BaseModel):
    category: Optional[str] = Field(None, description="Category the image must have")
    object: Optional[str] = Field(None, description="Object the image must contain")
    pool: Optional[Literal["background", "overlay"]] = Field(
        None, description="Restrict to background (c) or overlay (p) images"
    )


class ImageDescriptionsArgs(BaseModel):
    refs: List[str] = Field(..., description="Image refs to describe")


def _matches(values, needle: Optional[str]) -> bool:
    if not needle:
        return True
    needle = needle.lower()
    return any(needle in str(value).lower() for value in values)


def build_planning_tools(
    catalog: ImageCatalogPort,
    ref_map: ReferenceMap,
    product: ProductContext,
) -> List[BaseTool]:
    """Planning tools bound to one request."""

    async def list_example_slideshows(
        industry: Optional[str] = None, product_type: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        if industry or product_type:
            industries = [industry] if industry else []
            product_types = [product_type] if product_type else []
        else:
            terms = product.classification_terms()
            industries, product_types = terms, terms
        return await catalog.list_example_summaries(industries, product_types)

    async def get_example_frames(example_id: str) -> Dict[str, Any]:
        example = await catalog.get_example_frames(example_id)
        if example is None:
            return {"error": f"Example {example_id} not found"}
        return example

    async def find_image_briefs(
        category: Optional[str] = None,
        object: Optional[str] = None,
        pool: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        if pool == "background":
            tokens = ref_map.background_tokens
        elif pool == "overlay":
            tokens = ref_map.overlay_tokens
        else:
            tokens = [*ref_map.background_tokens, *ref_map.overlay_tokens]

        results = []
        for token in tokens:
            candidate = ref_map.candidate_for(token)
            if candidate is None:
                continue
            if _matches(candidate.categories, category) and _matches(candidate.objects, object):
                results.append(image_brief(token, candidate, "short"))
            if len(results) >= MAX_BRIEF_RESULTS:
                break
        return results

    async def get_image_descriptions(refs: List[str]) -> List[Dict[str, Any]]:
        descriptions = []
        for ref in refs:
            candidate = ref_map.candidate_for(ref)
            if candidate is None:
                descriptions.append({"ref": ref, "error": "unknown ref"})
            else:
                descriptions.append(image_brief(ref, candidate, "full"))
        return descriptions

    return [
        StructuredTool.from_function(
            coroutine=list_example_slideshows,
            name="list_example_slideshows",
            description="List summaries of successful example slideshows for an industry or product type.",
            args_schema=ListExamplesArgs,
        ),
        StructuredTool.from_function(
            coroutine=get_example_frames,
            name="get_example_frames",
            description="Get the per-slide frames (texts, layout notes) of one example slideshow.",
            args_schema=ExampleFramesArgs,
        ),
        StructuredTool.from_function(
            coroutine=find_image_briefs,
            name="find_image_briefs",
            description="Find candidate images by category or contained object. Returns refs with short briefs.",
            args_schema=FindBriefsArgs,
        ),
        StructuredTool.from_function(
            coroutine=get_image_descriptions,
            name="get_image_descriptions",
            description="Get full descriptions for specific image refs.",
            args_schema=ImageDescriptionsArgs,
        ),
    ]
