from fastapi import APIRouter, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Render pipeline
RENDERS_STARTED = Counter("slidereel_renders_started_total", "Renders started")
RENDERS_COMPLETED = Counter("slidereel_renders_completed_total", "Renders completed")
RENDERS_FAILED = Counter("slidereel_renders_failed_total", "Renders rolled back to draft")
SLIDES_RENDERED = Counter("slidereel_slides_rendered_total", "Slides rendered and uploaded")
SLIDES_SKIPPED = Counter(
    "slidereel_slides_skipped_total", "Slides skipped during a render", ["reason"]
)
RENDER_QUEUE_DEPTH = Gauge(
    "slidereel_render_queue_depth", "Render jobs waiting or in flight"
)
RENDER_DURATION_SECONDS = Histogram(
    "slidereel_render_duration_seconds", "Whole-slideshow render duration seconds"
)

# Generation
GENERATIONS_STARTED = Counter(
    "slidereel_generations_started_total", "Generation streams started"
)
GENERATIONS_FAILED = Counter(
    "slidereel_generations_failed_total", "Generation streams ended with an error", ["stage"]
)
TEXT_POSITION_ADJUSTMENTS = Counter(
    "slidereel_text_position_adjustments_total",
    "Generated text positions moved into the safe area",
)
GENERATION_PHASE_SECONDS = Histogram(
    "slidereel_generation_phase_seconds", "Generation phase duration seconds", ["phase"]
)


metrics_router = APIRouter()


@metrics_router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def observe_phase(phase: str, seconds: float) -> None:
    GENERATION_PHASE_SECONDS.labels(phase=phase).observe(max(0.0, float(seconds)))
