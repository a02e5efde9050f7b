"""
Domain exceptions.

Every error carries a stable ``code`` so the API layer can map it to an
HTTP status without inspecting messages.
"""

from typing import Optional


class DomainError(Exception):
    """Base class for domain-specific errors."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class SlideshowNotFoundError(DomainError):
    """Raised when a slideshow is not found (or belongs to another user)."""

    def __init__(self, slideshow_id: str):
        super().__init__(f"Slideshow {slideshow_id} not found", "SLIDESHOW_NOT_FOUND")


class SlideNotFoundError(DomainError):
    """Raised when a slide is not found."""

    def __init__(self, slide_id: str):
        super().__init__(f"Slide {slide_id} not found", "SLIDE_NOT_FOUND")


class ProductNotFoundError(DomainError):
    """Raised when the product to generate for does not exist."""

    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} not found", "PRODUCT_NOT_FOUND")


class MissingFieldError(DomainError):
    """Raised when a required request field is absent."""

    def __init__(self, field: str):
        super().__init__(f"Missing {field}", "MISSING_FIELD")


class EmptyBackgroundPoolError(DomainError):
    """Every slide needs a background, so at least one candidate is required."""

    def __init__(self):
        super().__init__(
            "At least one background-eligible image is required",
            "EMPTY_BACKGROUND_POOL",
        )


class InvalidSlideCountError(DomainError):
    def __init__(self, slide_count: object):
        super().__init__(
            f"Slide count must be a positive integer, got {slide_count!r}",
            "INVALID_SLIDE_COUNT",
        )


class LastSlideDeletionError(DomainError):
    """A slideshow must always keep at least one slide."""

    def __init__(self, slideshow_id: str):
        super().__init__(
            f"Cannot delete the last slide of slideshow {slideshow_id}",
            "LAST_SLIDE_DELETION",
        )


class InvalidStatusTransitionError(DomainError):
    def __init__(self, current_status: str, new_status: str):
        super().__init__(
            f"Invalid status transition from {current_status} to {new_status}",
            "INVALID_STATUS_TRANSITION",
        )


class SlideshowBusyError(DomainError):
    """Raised when an edit is attempted while a render owns the slideshow."""

    def __init__(self, slideshow_id: str, status: str):
        super().__init__(
            f"Slideshow {slideshow_id} is {status} and cannot be edited",
            "SLIDESHOW_BUSY",
        )


class NoObjectGeneratedError(DomainError):
    """The structured-generation call produced no usable object."""

    def __init__(self, reason: Optional[str] = None):
        message = "No object generated"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, "NO_OBJECT_GENERATED")


class RenderAdmissionError(DomainError):
    """Raised when a render job could not be marked as queued."""

    def __init__(self, slideshow_id: str, reason: str):
        super().__init__(
            f"Render for slideshow {slideshow_id} was not admitted: {reason}",
            "RENDER_ADMISSION_FAILED",
        )
