"""
Pillow implementation of the per-slide compositor and the PNG frame encoder.

Slides are laid out on the same base canvas the editor and the generator use
(300 px wide); the encoder upscales the finished frame to the output width.
"""

import asyncio
import io
from typing import Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from slidereel.application.ports import ObjectStoragePort
from slidereel.domain.entities import ImageOverlay, Slide, Slideshow, TextOverlay
from slidereel.domain.layout import (
    canvas_size_for_aspect_ratio,
    get_stroke_width_for_font_size,
    snap_font_size,
)
from slidereel.infra.config.logging_config import get_logger

BACKGROUND_FILL = (0, 0, 0, 255)
TEXT_FILL = (255, 255, 255, 255)
TEXT_STROKE_FILL = (0, 0, 0, 255)


class PngFrameEncoder:
    """Upscale a composited frame to ``target_width`` and encode it as PNG."""

    def __init__(self, target_width: int = 1080):
        self.target_width = target_width

    def __call__(self, image: Image.Image) -> bytes:
        if image.width != self.target_width:
            height = round(image.height * self.target_width / image.width)
            image = image.resize((self.target_width, height), Image.Resampling.LANCZOS)
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()


def _decode(data: bytes) -> Image.Image:
    with Image.open(io.BytesIO(data)) as image:
        return image.convert("RGBA")


def _cover(image: Image.Image, size: Tuple[int, int]) -> Image.Image:
    """Scale to cover ``size`` and centre-crop, like CSS ``object-fit: cover``."""
    width, height = size
    scale = max(width / image.width, height / image.height)
    resized = image.resize(
        (max(1, round(image.width * scale)), max(1, round(image.height * scale))),
        Image.Resampling.LANCZOS,
    )
    left = (resized.width - width) // 2
    top = (resized.height - height) // 2
    return resized.crop((left, top, left + width, top + height))


class PillowSlideCompositor:
    """Draws background, image overlays and texts for one slide."""

    def __init__(
        self,
        storage: ObjectStoragePort,
        user_images_bucket: str = "user-images",
        public_images_bucket: str = "public-images",
        canvas_width: int = 300,
    ):
        self.storage = storage
        self.user_images_bucket = user_images_bucket
        self.public_images_bucket = public_images_bucket
        self.canvas_width = canvas_width
        self._log = get_logger("infra.compositor")

    async def _load_image(self, path: Optional[str], owner_id: Optional[str]) -> Optional[Image.Image]:
        if not path:
            return None
        bucket = self.user_images_bucket if owner_id else self.public_images_bucket
        data = await self.storage.download(path, bucket=bucket)
        return await asyncio.to_thread(_decode, data)

    async def __call__(self, slideshow: Slideshow, slide: Slide) -> Optional[Image.Image]:
        size = canvas_size_for_aspect_ratio(slideshow.aspect_ratio, self.canvas_width)
        background = await self._load_image(slide.background_storage_path, slide.background_owner_id)
        overlays = []
        for overlay in slide.overlays:
            image = await self._load_image(overlay.image_storage_path, overlay.image_owner_id)
            if image is not None:
                overlays.append((overlay, image))
        return await asyncio.to_thread(self._compose, size, background, overlays, slide.texts)

    def _compose(self, size, background, overlays, texts) -> Image.Image:
        canvas = Image.new("RGBA", size, BACKGROUND_FILL)
        if background is not None:
            canvas.alpha_composite(_cover(background, size))
        for overlay, image in overlays:
            self._paste_overlay(canvas, overlay, image)
        for text in texts:
            self._draw_text(canvas, text)
        return canvas.convert("RGB")

    def _paste_overlay(self, canvas: Image.Image, overlay: ImageOverlay, image: Image.Image) -> None:
        width = max(1, round(canvas.width * overlay.size / 100))
        height = max(1, round(image.height * width / image.width))
        layer = image.resize((width, height), Image.Resampling.LANCZOS)
        if overlay.rotation:
            # Pillow rotates counter-clockwise; the editor rotates clockwise.
            layer = layer.rotate(-overlay.rotation, expand=True, resample=Image.Resampling.BICUBIC)
        canvas.alpha_composite(self._clip(canvas, layer, overlay.position_x, overlay.position_y))

    def _draw_text(self, canvas: Image.Image, text: TextOverlay) -> None:
        font_size = snap_font_size(text.size)
        font = ImageFont.load_default(size=font_size)
        stroke = max(1, round(get_stroke_width_for_font_size(font_size)))

        if not text.rotation:
            draw = ImageDraw.Draw(canvas)
            draw.multiline_text(
                (text.position_x, text.position_y),
                text.text,
                font=font,
                fill=TEXT_FILL,
                anchor="mm",
                align="center",
                stroke_width=stroke,
                stroke_fill=TEXT_STROKE_FILL,
            )
            return

        probe = ImageDraw.Draw(canvas)
        left, top, right, bottom = probe.multiline_textbbox(
            (0, 0), text.text, font=font, anchor="la", align="center", stroke_width=stroke
        )
        layer = Image.new("RGBA", (max(1, right - left), max(1, bottom - top)), (0, 0, 0, 0))
        ImageDraw.Draw(layer).multiline_text(
            (-left, -top),
            text.text,
            font=font,
            fill=TEXT_FILL,
            align="center",
            stroke_width=stroke,
            stroke_fill=TEXT_STROKE_FILL,
        )
        layer = layer.rotate(-text.rotation, expand=True, resample=Image.Resampling.BICUBIC)
        canvas.alpha_composite(self._clip(canvas, layer, text.position_x, text.position_y))

    @staticmethod
    def _clip(canvas: Image.Image, layer: Image.Image, cx: float, cy: float) -> Image.Image:
        """Full-canvas layer with ``layer`` centred on ``(cx, cy)``."""
        full = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        full.paste(layer, (round(cx - layer.width / 2), round(cy - layer.height / 2)), layer)
        return full
