"""
SQLAlchemy models for slideshows and their slides.
"""

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from slidereel.data.models.base import Base, new_id, utcnow


class SlideshowModel(Base):
    __tablename__ = "slideshows"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=True)
    caption = Column(Text, nullable=False, default="Untitled Slideshow")
    aspect_ratio = Column(String(10), nullable=False, default="9:16")
    status = Column(String(20), nullable=False, default="draft", index=True)
    frame_paths = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    slides = relationship(
        "SlideModel",
        back_populates="slideshow",
        cascade="all, delete-orphan",
        order_by="SlideModel.index",
    )


class SlideModel(Base):
    __tablename__ = "slides"

    id = Column(String(36), primary_key=True, default=new_id)
    slideshow_id = Column(String(36), ForeignKey("slideshows.id"), nullable=False, index=True)
    index = Column(Integer, nullable=False)
    duration_seconds = Column(Integer, nullable=False, default=3)
    background_image_id = Column(String(36), ForeignKey("images.id"), nullable=True)

    slideshow = relationship("SlideshowModel", back_populates="slides")
    background_image = relationship("ImageModel")
    texts = relationship(
        "SlideTextModel",
        cascade="all, delete-orphan",
        order_by="SlideTextModel.position",
    )
    overlays = relationship(
        "SlideOverlayModel",
        cascade="all, delete-orphan",
        order_by="SlideOverlayModel.position",
    )


class SlideTextModel(Base):
    __tablename__ = "slide_texts"

    id = Column(String(36), primary_key=True, default=new_id)
    slide_id = Column(String(36), ForeignKey("slides.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)  # order within the slide
    text = Column(Text, nullable=False)
    position_x = Column(Float, nullable=False)
    position_y = Column(Float, nullable=False)
    size = Column(Integer, nullable=False)
    rotation = Column(Float, nullable=False, default=0)
    font = Column(String(50), nullable=False, default="proxima-nova")


class SlideOverlayModel(Base):
    __tablename__ = "slide_overlays"

    id = Column(String(36), primary_key=True, default=new_id)
    slide_id = Column(String(36), ForeignKey("slides.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    image_id = Column(String(36), ForeignKey("images.id"), nullable=False)
    position_x = Column(Float, nullable=False)
    position_y = Column(Float, nullable=False)
    rotation = Column(Float, nullable=False, default=0)
    size = Column(Float, nullable=False, default=50)

    image = relationship("ImageModel")
