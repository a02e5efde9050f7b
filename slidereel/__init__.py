"""SlideReel: AI slideshow generation and render queue service."""

__version__ = "1.0.0"
