"""
Pytest configuration and fixtures.
"""

import pytest

from slidereel.application.ports import ProductContext
from slidereel.infra.storage.memory_storage import InMemoryObjectStorage
from tests._helpers.fakes import (
    FakeCatalog,
    FakeSlideshowRepository,
    FakeUsageCounter,
    candidate,
)

USER_ID = "user-1"


@pytest.fixture
def repository():
    return FakeSlideshowRepository()


@pytest.fixture
def storage():
    return InMemoryObjectStorage()


@pytest.fixture
def usage():
    return FakeUsageCounter()


@pytest.fixture
def product():
    return ProductContext(
        id="prod-1",
        name="Glow Serum",
        description="Vitamin C serum for morning routines",
        industry=["beauty"],
        product_type=["skincare"],
    )


@pytest.fixture
def catalog(product):
    """Catalog with three collection backgrounds and two product overlays."""
    return FakeCatalog(
        products={product.id: product},
        product_images=[
            candidate("img-p1", owner_id=USER_ID, short_description="Serum bottle"),
            candidate("img-p2", owner_id=USER_ID, short_description="Serum dropper"),
        ],
        collections={
            "col-1": [
                candidate("img-c1", short_description="Bathroom shelf", categories=["lifestyle"]),
                candidate("img-c2", short_description="Morning light", objects=["window"]),
                candidate("img-c3", short_description="Marble counter"),
            ]
        },
        examples=[
            {"id": "ex-1", "industry": "beauty", "product_type": "skincare", "frames": []},
        ],
        owner_id=USER_ID,
    )
