"""
Structural contract for the constrained generation call.

The contract is a pydantic model built per request: token enums come from the
request's reference map and numeric bounds from the canvas geometry, so the
model sees exactly which references and ranges are legal.
"""

from dataclasses import dataclass
from typing import Annotated, Any, Dict, List, Literal, Optional, Sequence, Tuple, Type

from pydantic import BaseModel, Field, ValidationError, create_model

from slidereel.domain.exceptions import EmptyBackgroundPoolError, InvalidSlideCountError
from slidereel.domain.layout import FONT_SIZES, SAFE_MARGIN

ROTATION_RANGE: Tuple[float, float] = (0, 360)
OVERLAY_SIZE_RANGE: Tuple[float, float] = (10, 100)


@dataclass(frozen=True)
class StructuralContract:
    model: Type[BaseModel]
    slide_count: int
    background_tokens: Tuple[str, ...]
    overlay_tokens: Tuple[str, ...]
    canvas_width: int
    canvas_height: int
    margin: int = SAFE_MARGIN

    def json_schema(self) -> Dict[str, Any]:
        return self.model.model_json_schema()

    def validate(self, raw: Any) -> Optional[BaseModel]:
        """Strict parse attempt; None when ``raw`` does not conform."""
        try:
            return self.model.model_validate(raw)
        except ValidationError:
            return None


def _enum_of(values: Sequence[Any]) -> Any:
    return Literal[tuple(values)]  # type: ignore[valid-type]


def build_contract(
    background_tokens: Sequence[str],
    overlay_tokens: Sequence[str],
    slide_count: int,
    canvas_width: int,
    canvas_max_height: int,
    margin: int = SAFE_MARGIN,
) -> StructuralContract:
    """
    Build the contract for one request.

    Raises:
        EmptyBackgroundPoolError: If ``background_tokens`` is empty
        InvalidSlideCountError: If ``slide_count`` is not a positive int
    """
    if not background_tokens:
        raise EmptyBackgroundPoolError()
    if isinstance(slide_count, bool) or not isinstance(slide_count, int) or slide_count < 1:
        raise InvalidSlideCountError(slide_count)

    width, height = canvas_width, canvas_max_height
    text_model = create_model(
        "GeneratedText",
        text=(str, Field(..., min_length=1, description="Slide text; use \\n for line breaks")),
        position_x=(
            float,
            Field(..., ge=margin, le=width - margin,
                  description=f"{margin}-{width - margin} pixels right (centre of the text)"),
        ),
        position_y=(
            float,
            Field(..., ge=margin, le=height - margin,
                  description=f"{margin}-{height - margin} pixels down (centre of the text)"),
        ),
        size=(_enum_of(FONT_SIZES), Field(..., description="Font size in pixels")),
    )

    image_ref_type: Any = _enum_of(overlay_tokens) if overlay_tokens else str
    overlay_model = create_model(
        "GeneratedOverlay",
        image_ref=(image_ref_type, Field(..., description="Overlay image ref (p-token)")),
        position_x=(float, Field(..., ge=0, le=width, description=f"0-{width} pixels right")),
        position_y=(float, Field(..., ge=0, le=height, description=f"0-{height} pixels down")),
        rotation=(float, Field(..., ge=ROTATION_RANGE[0], le=ROTATION_RANGE[1], description="0-360 degrees")),
        size=(
            float,
            Field(..., ge=OVERLAY_SIZE_RANGE[0], le=OVERLAY_SIZE_RANGE[1],
                  description="Overlay width as a percentage of the canvas (10-100)"),
        ),
    )

    slide_model = create_model(
        "GeneratedSlide",
        background_image_ref=(
            _enum_of(background_tokens),
            Field(..., description="Background image ref (c-token)"),
        ),
        texts=(Annotated[List[text_model], Field(min_length=1)], ...),  # type: ignore[valid-type]
        overlays=(List[overlay_model], Field(default_factory=list)),  # type: ignore[valid-type]
    )

    slideshow_model = create_model(
        "GeneratedSlideshow",
        caption=(str, Field(..., description="Post caption with hashtags")),
        slides=(
            Annotated[
                List[slide_model],  # type: ignore[valid-type]
                Field(min_length=slide_count, max_length=slide_count),
            ],
            Field(..., description=f"Exactly {slide_count} slides"),
        ),
    )

    return StructuralContract(
        model=slideshow_model,
        slide_count=slide_count,
        background_tokens=tuple(background_tokens),
        overlay_tokens=tuple(overlay_tokens),
        canvas_width=width,
        canvas_height=height,
        margin=margin,
    )
