"""
Mock LLM client used when no real API key is configured.
"""

from typing import Any, AsyncIterator, Dict, List, Sequence, Type

from langchain_core.messages import BaseMessage
from langchain_core.tools import BaseTool
from pydantic import BaseModel

from slidereel.application.ports import StructuredGenerationPort, ToolStreamingPort


def _allowed_values(prop: Dict[str, Any]) -> List[Any]:
    if "enum" in prop:
        return list(prop["enum"])
    if "const" in prop:
        return [prop["const"]]
    return []


class MockLLMClient(StructuredGenerationPort, ToolStreamingPort):
    """Mock LLM client that returns fake responses derived from the contract."""

    async def stream_with_tools(
        self,
        messages: List[BaseMessage],
        tools: Sequence[BaseTool],
        max_rounds: int,
    ) -> AsyncIterator[str]:
        for chunk in (
            "Planning a hook, a benefit slide and a call to action. ",
            "Picking backgrounds that match the product mood.",
        ):
            yield chunk

    async def generate_object(
        self,
        messages: List[BaseMessage],
        response_model: Type[BaseModel],
        max_retries: int = 2,
    ) -> Dict[str, Any]:
        schema = response_model.model_json_schema()
        defs = schema.get("$defs", {})
        slide_props = defs.get("GeneratedSlide", {}).get("properties", {})
        backgrounds = _allowed_values(slide_props.get("background_image_ref", {})) or ["c01"]
        count = schema.get("properties", {}).get("slides", {}).get("minItems", 3)

        lines = ["Stop scrolling", "This changed\neverything", "Link in bio"]
        slides = [
            {
                "background_image_ref": backgrounds[i % len(backgrounds)],
                "texts": [
                    {
                        "text": lines[i % len(lines)],
                        "position_x": 150,
                        "position_y": 120 if i == 0 else 260,
                        "size": 24,
                    }
                ],
                "overlays": [],
            }
            for i in range(count)
        ]
        return {"caption": "Mock slideshow #ad", "slides": slides}
