"""
Tests for slideshow editing endpoints.
"""

import pytest

from slidereel.domain.slideshow_status import SlideshowStatus
from tests._helpers.fakes import make_slideshow

pytestmark = pytest.mark.api


class TestSlideshowEndpoints:
    def test_create_slideshow(self, client, repository):
        response = client.post("/api/v1/slideshows", json={"caption": "Launch", "aspect_ratio": "4:5"})

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "draft"
        assert data["aspect_ratio"] == "4:5"
        assert len(data["slides"]) == 1
        assert repository.peek(data["id"]) is not None

    def test_create_rejects_malformed_aspect_ratio(self, client):
        response = client.post("/api/v1/slideshows", json={"aspect_ratio": "wide"})
        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_get_slideshow(self, client, repository):
        repository.put(make_slideshow())
        response = client.get("/api/v1/slideshows/ss-1")

        assert response.status_code == 200
        assert [s["index"] for s in response.json()["slides"]] == [0, 1, 2]

    def test_get_other_users_slideshow(self, client, repository):
        repository.put(make_slideshow(user_id="user-2"))
        response = client.get("/api/v1/slideshows/ss-1")
        assert response.status_code == 404

    def test_add_and_delete_slide(self, client, repository):
        repository.put(make_slideshow(slide_count=2))

        added = client.post("/api/v1/slideshows/ss-1/slides", json={"duration_seconds": 5})
        assert added.status_code == 201
        assert added.json()["index"] == 2

        deleted = client.delete("/api/v1/slideshows/ss-1/slides/ss-1-slide-0")
        assert deleted.status_code == 200
        assert [s["index"] for s in deleted.json()["slides"]] == [0, 1]

    def test_delete_last_slide_conflicts(self, client, repository):
        repository.put(make_slideshow(slide_count=1))
        response = client.delete("/api/v1/slideshows/ss-1/slides/ss-1-slide-0")
        assert response.status_code == 409
        assert response.json()["error"] == "LAST_SLIDE_DELETION"

    def test_replace_texts(self, client, repository):
        repository.put(make_slideshow())
        response = client.put(
            "/api/v1/slideshows/ss-1/slides/ss-1-slide-0/texts",
            json={"texts": [{"text": "Hi", "position_x": 5, "position_y": 5, "size": 30}]},
        )

        assert response.status_code == 200
        [text] = response.json()
        assert text["size"] == 32
        assert text["position_x"] >= 40
        assert text["position_y"] >= 40

    def test_edit_while_rendering_conflicts(self, client, repository):
        repository.put(make_slideshow(status=SlideshowStatus.RENDERING))
        response = client.put(
            "/api/v1/slideshows/ss-1/slides/ss-1-slide-0/background", json={"image_id": "img-c1"}
        )
        assert response.status_code == 409
        assert response.json()["error"] == "SLIDESHOW_BUSY"

    def test_update_background(self, client, repository):
        repository.put(make_slideshow())
        response = client.put(
            "/api/v1/slideshows/ss-1/slides/ss-1-slide-1/background", json={"image_id": "img-c1"}
        )
        assert response.status_code == 200
        assert response.json()["background_image_id"] == "img-c1"
