import time

import jwt
import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from slidereel.infra.auth.jwt_auth import TokenVerifier
from slidereel.infra.config.settings import Settings
from slidereel.infra.middleware.request_context import RequestContextMiddleware

pytestmark = pytest.mark.unit

SECRET = "test-secret"


@pytest.fixture
def verifier():
    return TokenVerifier(Settings(JWT_SECRET_KEY=SECRET))


def make_token(secret=SECRET, **claims):
    payload = {"exp": int(time.time()) + 60, "aud": "authenticated", **claims}
    return jwt.encode(payload, secret, algorithm="HS256")


class TestTokenVerifier:
    def test_supabase_subject_claim(self, verifier):
        assert verifier.user_id(make_token(sub="user-1")) == "user-1"

    def test_user_id_claim(self, verifier):
        assert verifier.user_id(make_token(user_id="user-2")) == "user-2"

    @pytest.mark.parametrize(
        "token",
        [
            make_token(secret="other-secret", sub="user-1"),
            make_token(sub="user-1", exp=int(time.time()) - 10),
            make_token(sub="user-1", aud="service_role"),
            make_token(sub="   "),
            "not-a-token",
        ],
    )
    def test_rejected_tokens(self, verifier, token):
        with pytest.raises(HTTPException) as exc_info:
            verifier.user_id(token)
        assert exc_info.value.status_code == 401


class TestRequestContextMiddleware:
    def test_request_id_is_echoed(self):
        app = FastAPI()
        app.add_middleware(RequestContextMiddleware)

        @app.get("/ping")
        async def ping():
            return {"ok": True}

        client = TestClient(app)
        assert client.get("/ping", headers={"X-Request-ID": "req-1"}).headers["x-request-id"] == "req-1"
        assert client.get("/ping").headers["x-request-id"]
