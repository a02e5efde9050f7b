from slidereel.data.models.base import Base
from slidereel.data.models.catalog_model import ImageModel, ProductModel, SlideExampleModel
from slidereel.data.models.slideshow_model import (
    SlideModel,
    SlideOverlayModel,
    SlideshowModel,
    SlideTextModel,
)
from slidereel.data.models.usage_model import UsageCounterModel

__all__ = [
    "Base",
    "ImageModel",
    "ProductModel",
    "SlideExampleModel",
    "SlideModel",
    "SlideOverlayModel",
    "SlideshowModel",
    "SlideTextModel",
    "UsageCounterModel",
]
