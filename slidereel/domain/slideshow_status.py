"""
Slideshow status value object.
"""

from enum import Enum


class SlideshowStatus(str, Enum):
    """
    Slideshow lifecycle status.

    ``draft`` is owned by the editor. Once a render is admitted the render
    queue and executor own every transition until the slideshow is back in
    ``draft`` (rollback) or reaches ``completed``.
    """

    DRAFT = "draft"  # Editable, no render outstanding
    QUEUED = "queued"  # Admitted, waiting for the render worker
    RENDERING = "rendering"  # Frames are being composited and uploaded
    COMPLETED = "completed"  # All slides attempted, frame paths final

    def can_transition_to(self, new_status: "SlideshowStatus") -> bool:
        """
        Business rule: define valid status transitions.

        ``queued -> queued`` and ``rendering -> queued`` exist for the startup
        resume protocol, which re-admits jobs interrupted by a restart.
        """
        valid_transitions = {
            self.DRAFT: [self.QUEUED],
            self.QUEUED: [self.QUEUED, self.RENDERING, self.DRAFT],
            self.RENDERING: [self.COMPLETED, self.DRAFT, self.QUEUED],
            self.COMPLETED: [self.QUEUED, self.DRAFT],
        }
        return new_status in valid_transitions.get(self, [])

    def is_render_outstanding(self) -> bool:
        """True while the render pipeline owns the slideshow."""
        return self in (self.QUEUED, self.RENDERING)

    def is_editable(self) -> bool:
        return not self.is_render_outstanding()
