"""
Domain layer - slideshow entities, layout rules and reference tokens.

Pure business logic, independent of databases, storage and HTTP.
"""

from .entities import ImageOverlay, Slide, Slideshow, TextOverlay
from .slideshow_status import SlideshowStatus

__all__ = [
    "ImageOverlay",
    "Slide",
    "Slideshow",
    "SlideshowStatus",
    "TextOverlay",
]
