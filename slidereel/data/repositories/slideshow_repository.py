"""
Slideshow repository for data access operations.

Each call runs in its own short session and commits before returning, so the
repository works the same from request handlers and from the render worker,
which outlives any request.
"""

from typing import List, Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from slidereel.application.ports import SlideshowRepositoryPort
from slidereel.data.models import (
    SlideModel,
    SlideOverlayModel,
    SlideshowModel,
    SlideTextModel,
)
from slidereel.data.models.base import utcnow
from slidereel.domain.entities import ImageOverlay, Slide, Slideshow, TextOverlay
from slidereel.domain.slideshow_status import SlideshowStatus
from slidereel.infra.config.logging_config import get_logger


def _slideshow_loaders():
    slides = selectinload(SlideshowModel.slides)
    return (
        slides.selectinload(SlideModel.background_image),
        slides.selectinload(SlideModel.texts),
        slides.selectinload(SlideModel.overlays).selectinload(SlideOverlayModel.image),
    )


class SlideshowRepository(SlideshowRepositoryPort):
    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory
        self._log = get_logger("repo.slideshow")

    async def create(self, slideshow: Slideshow) -> Slideshow:
        async with self.session_factory() as session:
            model = SlideshowModel(
                id=slideshow.id,
                user_id=slideshow.user_id,
                product_id=slideshow.product_id,
                caption=slideshow.caption,
                aspect_ratio=slideshow.aspect_ratio,
                status=slideshow.status.value,
                frame_paths=list(slideshow.frame_paths),
                created_at=slideshow.created_at,
            )
            session.add(model)
            for slide in slideshow.slides:
                session.add(self._slide_model(slide))
            await session.commit()
        self._log.info(
            "slideshow.create",
            slideshow_id=slideshow.id,
            user_id=slideshow.user_id,
            slides=len(slideshow.slides),
        )
        return slideshow

    async def get_by_id(self, slideshow_id: str) -> Optional[Slideshow]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SlideshowModel)
                .where(SlideshowModel.id == slideshow_id)
                .options(*_slideshow_loaders())
            )
            model = result.scalar_one_or_none()
            if model is None:
                self._log.info("slideshow.get.not_found", slideshow_id=slideshow_id)
                return None
            return self._to_entity(model)

    async def list_by_status(self, statuses: Sequence[SlideshowStatus]) -> List[Slideshow]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SlideshowModel)
                .where(SlideshowModel.status.in_([s.value for s in statuses]))
                .order_by(SlideshowModel.updated_at)
                .options(*_slideshow_loaders())
            )
            items = [self._to_entity(m) for m in result.scalars().all()]
        self._log.info(
            "slideshow.list_by_status", statuses=[s.value for s in statuses], count=len(items)
        )
        return items

    async def update_status(self, slideshow_id: str, status: SlideshowStatus) -> None:
        async with self.session_factory() as session:
            await session.execute(
                update(SlideshowModel)
                .where(SlideshowModel.id == slideshow_id)
                .values(status=status.value, updated_at=utcnow())
            )
            await session.commit()
        self._log.info("slideshow.status", slideshow_id=slideshow_id, status=status.value)

    async def save_render_state(self, slideshow: Slideshow) -> None:
        async with self.session_factory() as session:
            await session.execute(
                update(SlideshowModel)
                .where(SlideshowModel.id == slideshow.id)
                .values(
                    status=slideshow.status.value,
                    frame_paths=list(slideshow.frame_paths),
                    updated_at=utcnow(),
                )
            )
            await session.commit()

    async def get_slide(self, slide_id: str) -> Optional[Slide]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SlideModel)
                .where(SlideModel.id == slide_id)
                .options(
                    selectinload(SlideModel.background_image),
                    selectinload(SlideModel.texts),
                    selectinload(SlideModel.overlays).selectinload(SlideOverlayModel.image),
                )
            )
            model = result.scalar_one_or_none()
            return self._slide_to_entity(model) if model is not None else None

    async def add_slide(self, slide: Slide) -> Slide:
        async with self.session_factory() as session:
            session.add(self._slide_model(slide))
            await session.commit()
        self._log.info("slide.add", slide_id=slide.id, slideshow_id=slide.slideshow_id)
        return slide

    async def delete_slide(self, slideshow: Slideshow, slide_id: str) -> None:
        async with self.session_factory() as session:
            await self._delete_children(session, slide_id)
            await session.execute(delete(SlideModel).where(SlideModel.id == slide_id))
            for slide in slideshow.slides:
                await session.execute(
                    update(SlideModel).where(SlideModel.id == slide.id).values(index=slide.index)
                )
            await session.execute(
                update(SlideshowModel)
                .where(SlideshowModel.id == slideshow.id)
                .values(updated_at=utcnow())
            )
            await session.commit()
        self._log.info("slide.delete", slide_id=slide_id, slideshow_id=slideshow.id)

    async def replace_texts(self, slide_id: str, texts: List[TextOverlay]) -> None:
        async with self.session_factory() as session:
            await session.execute(delete(SlideTextModel).where(SlideTextModel.slide_id == slide_id))
            for position, text in enumerate(texts):
                session.add(self._text_model(text, position))
            await session.commit()
        self._log.info("slide.texts.replace", slide_id=slide_id, count=len(texts))

    async def update_background(self, slide_id: str, image_id: Optional[str]) -> None:
        async with self.session_factory() as session:
            await session.execute(
                update(SlideModel)
                .where(SlideModel.id == slide_id)
                .values(background_image_id=image_id)
            )
            await session.commit()
        self._log.info("slide.background", slide_id=slide_id, image_id=image_id)

    @staticmethod
    async def _delete_children(session: AsyncSession, slide_id: str) -> None:
        await session.execute(delete(SlideTextModel).where(SlideTextModel.slide_id == slide_id))
        await session.execute(
            delete(SlideOverlayModel).where(SlideOverlayModel.slide_id == slide_id)
        )

    def _slide_model(self, slide: Slide) -> SlideModel:
        return SlideModel(
            id=slide.id,
            slideshow_id=slide.slideshow_id,
            index=slide.index,
            duration_seconds=slide.duration_seconds,
            background_image_id=slide.background_image_id,
            texts=[self._text_model(t, i) for i, t in enumerate(slide.texts)],
            overlays=[
                SlideOverlayModel(
                    id=o.id,
                    slide_id=slide.id,
                    position=i,
                    image_id=o.image_id,
                    position_x=o.position_x,
                    position_y=o.position_y,
                    rotation=o.rotation,
                    size=o.size,
                )
                for i, o in enumerate(slide.overlays)
            ],
        )

    @staticmethod
    def _text_model(text: TextOverlay, position: int) -> SlideTextModel:
        return SlideTextModel(
            id=text.id,
            slide_id=text.slide_id,
            position=position,
            text=text.text,
            position_x=text.position_x,
            position_y=text.position_y,
            size=text.size,
            rotation=text.rotation,
            font=text.font,
        )

    def _slide_to_entity(self, model: SlideModel) -> Slide:
        background = model.background_image
        return Slide(
            id=model.id,
            slideshow_id=model.slideshow_id,
            index=model.index,
            duration_seconds=model.duration_seconds,
            background_image_id=model.background_image_id,
            background_storage_path=background.storage_path if background else None,
            background_owner_id=background.user_id if background else None,
            texts=[
                TextOverlay(
                    id=t.id,
                    slide_id=t.slide_id,
                    text=t.text,
                    position_x=t.position_x,
                    position_y=t.position_y,
                    size=t.size,
                    rotation=t.rotation,
                    font=t.font,
                )
                for t in model.texts
            ],
            overlays=[
                ImageOverlay(
                    id=o.id,
                    slide_id=o.slide_id,
                    image_id=o.image_id,
                    position_x=o.position_x,
                    position_y=o.position_y,
                    rotation=o.rotation,
                    size=o.size,
                    image_storage_path=o.image.storage_path if o.image else None,
                    image_owner_id=o.image.user_id if o.image else None,
                )
                for o in model.overlays
            ],
        )

    def _to_entity(self, model: SlideshowModel) -> Slideshow:
        """Convert SQLAlchemy model to domain entity."""
        return Slideshow(
            id=model.id,
            user_id=model.user_id,
            product_id=model.product_id,
            caption=model.caption,
            aspect_ratio=model.aspect_ratio,
            status=SlideshowStatus(model.status),
            slides=[self._slide_to_entity(s) for s in model.slides],
            frame_paths=list(model.frame_paths or []),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
