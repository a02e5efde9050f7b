"""
SQLAlchemy models for products, candidate images and example slideshows.
"""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text

from slidereel.data.models.base import Base, new_id, utcnow


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    name = Column(String(255), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    industry = Column(JSON, nullable=False, default=list)
    product_type = Column(JSON, nullable=False, default=list)
    matching_industries = Column(JSON, nullable=False, default=list)
    matching_product_types = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class ImageModel(Base):
    """
    An uploaded or publicly hosted image.

    ``user_id`` is the owner marker: set for user uploads (served through the
    authenticated proxy), NULL for public collection images.
    """

    __tablename__ = "images"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=True, index=True)
    collection_id = Column(String(36), nullable=True, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=True, index=True)
    storage_path = Column(Text, nullable=False)
    # short_description, long_description, categories, objects
    image_metadata = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class SlideExampleModel(Base):
    __tablename__ = "slide_examples"

    id = Column(String(36), primary_key=True, default=new_id)
    industry = Column(String(100), nullable=True, index=True)
    product_type = Column(String(100), nullable=True, index=True)
    format = Column(String(100), nullable=True)
    call_to_action = Column(Text, nullable=True)
    summary = Column(Text, nullable=True)
    frames = Column(JSON, nullable=False, default=list)
