"""
Unit tests for the per-request structural contract.
"""

import pytest

from slidereel.application.generation.schema_builder import build_contract
from slidereel.domain.exceptions import EmptyBackgroundPoolError, InvalidSlideCountError

pytestmark = pytest.mark.unit

BACKGROUNDS = ["c01", "c02", "c03"]
OVERLAYS = ["p01", "p02"]


def slide(background="c01", x=150, y=200, size=24, overlays=None):
    return {
        "background_image_ref": background,
        "texts": [{"text": "Hello", "position_x": x, "position_y": y, "size": size}],
        "overlays": overlays or [],
    }


@pytest.fixture
def contract():
    return build_contract(BACKGROUNDS, OVERLAYS, 3, 300, 533)


class TestBuildContract:
    def test_empty_background_pool_is_rejected(self):
        with pytest.raises(EmptyBackgroundPoolError):
            build_contract([], OVERLAYS, 3, 300, 533)

    @pytest.mark.parametrize("count", [0, -1, True, "3", 2.5])
    def test_invalid_slide_count_is_rejected(self, count):
        with pytest.raises(InvalidSlideCountError):
            build_contract(BACKGROUNDS, OVERLAYS, count, 300, 533)

    def test_contract_records_its_inputs(self, contract):
        assert contract.slide_count == 3
        assert contract.background_tokens == tuple(BACKGROUNDS)
        assert contract.overlay_tokens == tuple(OVERLAYS)
        assert (contract.canvas_width, contract.canvas_height, contract.margin) == (300, 533, 40)

    def test_json_schema_pins_slide_count(self, contract):
        slides = contract.json_schema()["properties"]["slides"]
        assert slides["minItems"] == 3
        assert slides["maxItems"] == 3


class TestContractValidation:
    def test_conforming_document_validates(self, contract):
        document = {
            "caption": "Glow up #ad",
            "slides": [
                slide("c01"),
                slide("c02", overlays=[{"image_ref": "p01", "position_x": 150,
                                        "position_y": 300, "rotation": 0, "size": 40}]),
                slide("c03"),
            ],
        }
        assert contract.validate(document) is not None

    def test_wrong_slide_count_fails(self, contract):
        assert contract.validate({"caption": "", "slides": [slide(), slide()]}) is None

    def test_unknown_background_token_fails(self, contract):
        document = {"caption": "", "slides": [slide(), slide("c09"), slide()]}
        assert contract.validate(document) is None

    def test_position_outside_safe_area_fails(self, contract):
        document = {"caption": "", "slides": [slide(x=10), slide(), slide()]}
        assert contract.validate(document) is None

    def test_off_tier_font_size_fails(self, contract):
        document = {"caption": "", "slides": [slide(size=22), slide(), slide()]}
        assert contract.validate(document) is None

    def test_slide_without_texts_fails(self, contract):
        empty = {"background_image_ref": "c01", "texts": [], "overlays": []}
        assert contract.validate({"caption": "", "slides": [empty, slide(), slide()]}) is None

    def test_any_overlay_ref_accepted_when_overlay_pool_is_empty(self):
        contract = build_contract(BACKGROUNDS, [], 1, 300, 533)
        document = {
            "caption": "",
            "slides": [slide(overlays=[{"image_ref": "p05", "position_x": 1,
                                        "position_y": 1, "rotation": 0, "size": 10}])],
        }
        assert contract.validate(document) is not None
