"""
Read access to products, candidate images and example slideshows.
"""

from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from slidereel.application.ports import ImageCatalogPort, ProductContext
from slidereel.data.models import ImageModel, ProductModel, SlideExampleModel
from slidereel.domain.references import ImageCandidate
from slidereel.infra.config.logging_config import get_logger

EXAMPLE_SUMMARY_FIELDS = ("id", "industry", "product_type", "format", "call_to_action", "summary")


def _first_sentence(text: str) -> str:
    return text.split(".", 1)[0].strip()


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]


class CatalogRepository(ImageCatalogPort):
    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory
        self._log = get_logger("repo.catalog")

    async def get_product(self, user_id: str, product_id: str) -> Optional[ProductContext]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ProductModel).where(
                    ProductModel.id == product_id, ProductModel.user_id == user_id
                )
            )
            model = result.scalar_one_or_none()
        if model is None:
            self._log.info("product.get.not_found", product_id=product_id)
            return None
        return ProductContext(
            id=model.id,
            name=model.name or "",
            description=model.description or "",
            industry=_str_list(model.industry),
            product_type=_str_list(model.product_type),
            matching_industries=_str_list(model.matching_industries),
            matching_product_types=_str_list(model.matching_product_types),
        )

    async def list_product_images(
        self, user_id: str, product_id: str, image_ids: Optional[Sequence[str]] = None
    ) -> List[ImageCandidate]:
        query = (
            select(ImageModel)
            .where(ImageModel.product_id == product_id, ImageModel.user_id == user_id)
            .order_by(ImageModel.created_at, ImageModel.id)
        )
        if image_ids:
            query = query.where(ImageModel.id.in_(list(image_ids)))
        async with self.session_factory() as session:
            result = await session.execute(query)
            return [self._to_candidate(m) for m in result.scalars().all()]

    async def list_collection_images(
        self, collection_ids: Sequence[str]
    ) -> List[ImageCandidate]:
        if not collection_ids:
            return []
        async with self.session_factory() as session:
            result = await session.execute(
                select(ImageModel)
                .where(ImageModel.collection_id.in_(list(collection_ids)))
                .order_by(ImageModel.collection_id, ImageModel.created_at, ImageModel.id)
            )
            return [self._to_candidate(m) for m in result.scalars().all()]

    async def list_example_summaries(
        self,
        industries: Sequence[str] = (),
        product_types: Sequence[str] = (),
        limit: int = 15,
    ) -> List[Dict[str, Any]]:
        """Examples matching any industry or product type; unfiltered when both are empty."""
        query = select(SlideExampleModel)
        filters = []
        if industries:
            filters.append(SlideExampleModel.industry.in_(list(industries)))
        if product_types:
            filters.append(SlideExampleModel.product_type.in_(list(product_types)))
        if filters:
            query = query.where(or_(*filters))
        async with self.session_factory() as session:
            result = await session.execute(query.order_by(SlideExampleModel.id).limit(limit))
            rows = result.scalars().all()
        return [{f: getattr(row, f) for f in EXAMPLE_SUMMARY_FIELDS} for row in rows]

    async def get_example_frames(self, example_id: str) -> Optional[Dict[str, Any]]:
        async with self.session_factory() as session:
            model = await session.get(SlideExampleModel, example_id)
        if model is None:
            return None
        return {
            **{f: getattr(model, f) for f in EXAMPLE_SUMMARY_FIELDS},
            "frames": list(model.frames or []),
        }

    @staticmethod
    def _to_candidate(model: ImageModel) -> ImageCandidate:
        meta = model.image_metadata or {}
        long_description = str(
            meta.get("long_description")
            or meta.get("ai_description")
            or meta.get("user_description")
            or meta.get("short_description")
            or ""
        )
        short_description = str(meta.get("short_description") or _first_sentence(long_description))
        return ImageCandidate(
            id=model.id,
            storage_path=model.storage_path,
            owner_id=model.user_id,
            short_description=short_description,
            long_description=long_description,
            categories=tuple(_str_list(meta.get("categories"))),
            objects=tuple(_str_list(meta.get("objects"))),
        )
