"""
Unit tests for deterministic repair of generated documents.
"""

import pytest

from slidereel.application.generation.repair import (
    coerce_overlays_array,
    coerce_texts_array,
    normalize_slide_array,
    pad_to_count,
    repair_document,
)
from slidereel.application.generation.schema_builder import build_contract

pytestmark = pytest.mark.unit

TOKENS = ["c01", "c02", "c03"]


def text(value="Hello", x=150, y=200, size=24):
    return {"text": value, "position_x": x, "position_y": y, "size": size}


def slide(background="c01", texts=None):
    return {"background_image_ref": background, "texts": texts or [text()], "overlays": []}


@pytest.fixture
def contract():
    return build_contract(TOKENS, ["p01"], 3, 300, 533)


class TestRepairDocument:
    def test_conforming_document_is_kept(self, contract):
        raw = {"caption": "Glow #ad", "slides": [slide("c01"), slide("c02"), slide("c03")]}
        result = repair_document(raw, contract)

        assert result.strict_valid is True
        assert result.adjustments == 0
        assert result.repairs == []
        assert result.document["caption"] == "Glow #ad"
        assert [s["background_image_ref"] for s in result.document["slides"]] == TOKENS

    def test_short_document_is_padded_with_rotated_backgrounds(self, contract):
        raw = {"caption": "x", "slides": [slide("c01", [text("Only slide")])]}
        result = repair_document(raw, contract)

        slides = result.document["slides"]
        assert len(slides) == 3
        assert [s["background_image_ref"] for s in slides] == ["c01", "c02", "c03"]
        assert all(s["texts"][0]["text"] == "Only slide" for s in slides)
        assert "pad_to_count" in result.repairs

    def test_long_document_is_truncated(self, contract):
        raw = {"caption": "x", "slides": [slide() for _ in range(5)]}
        result = repair_document(raw, contract)

        assert len(result.document["slides"]) == 3
        assert "truncate_to_count" in result.repairs

    @pytest.mark.parametrize("raw", [None, "not json", 42, [], {"slides": "nope"}])
    def test_unusable_input_still_yields_slide_count_slides(self, contract, raw):
        result = repair_document(raw, contract)

        slides = result.document["slides"]
        assert len(slides) == 3
        assert all(s["background_image_ref"] in TOKENS for s in slides)
        assert result.document["caption"] == ""

    def test_positions_are_clamped_and_counted(self, contract):
        raw = {
            "caption": "",
            "slides": [
                slide(texts=[text(x=0, y=0), text(x=150, y=200)]),
                slide(texts=[text(x=400, y=900)]),
                slide(),
            ],
        }
        result = repair_document(raw, contract)

        assert result.strict_valid is False
        assert result.adjustments == 2
        for s in result.document["slides"]:
            for t in s["texts"]:
                assert 40 <= t["position_x"] <= 260
                assert 40 <= t["position_y"] <= 493

    def test_repair_is_idempotent(self, contract):
        raw = {"slides": [slide(texts=[text(x=-10, y=1000, size=30)])]}
        once = repair_document(raw, contract)
        twice = repair_document(once.document, contract)

        assert twice.document == once.document
        assert twice.adjustments == 0

    def test_missing_background_ref_is_filled_by_index(self, contract):
        raw = {"slides": [slide(), {"texts": [text()]}, slide()]}
        result = repair_document(raw, contract)
        assert result.document["slides"][1]["background_image_ref"] == "c02"


class TestTransformations:
    def test_normalize_wraps_a_bare_slide(self):
        assert normalize_slide_array({"texts": []}, 3, TOKENS) == [{"texts": []}]

    def test_normalize_drops_non_dict_items(self):
        assert normalize_slide_array([1, {"a": 1}, "x"], 3, TOKENS) == [{"a": 1}]

    def test_normalize_builds_placeholders(self):
        slides = normalize_slide_array(None, 4, TOKENS)
        assert [s["background_image_ref"] for s in slides] == ["c01", "c02", "c03", "c01"]
        assert all(s["texts"] == [] for s in slides)

    def test_pad_clones_are_independent(self):
        original = slide()
        padded = pad_to_count([original], 2, TOKENS)
        padded[1]["texts"][0]["text"] = "changed"
        assert original["texts"][0]["text"] == "Hello"

    def test_texts_are_coerced(self):
        texts = coerce_texts_array(
            [
                "Plain string",
                {"text": "Bad numbers", "position_x": "abc", "position_y": None, "size": 23},
                {"no_text": True},
                7,
            ],
            300,
            533,
        )
        assert texts == [
            {"text": "Plain string", "position_x": 150, "position_y": 266.5, "size": 24},
            {"text": "Bad numbers", "position_x": 150, "position_y": 266.5, "size": 24},
        ]

    def test_texts_bare_object_is_wrapped(self):
        texts = coerce_texts_array(text(), 300, 533)
        assert len(texts) == 1

    def test_overlays_are_clamped(self):
        overlays = coerce_overlays_array(
            [
                {"image_ref": "p01", "position_x": -5, "position_y": 900,
                 "rotation": 400, "size": 5},
                {"image_ref": "", "position_x": 1},
                {"position_x": 1},
            ],
            300,
            533,
        )
        assert overlays == [
            {"image_ref": "p01", "position_x": 0, "position_y": 533, "rotation": 360, "size": 10}
        ]
