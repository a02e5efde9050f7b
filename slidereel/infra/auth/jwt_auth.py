"""
Bearer token verification.

Tokens are minted by the identity provider (Supabase Auth); this service only
checks them and reads the user id. Supabase puts the user id in ``sub``;
tokens issued by our own tooling may use ``user_id`` instead.
"""

from typing import Any, Dict, Optional

import jwt
from fastapi import HTTPException, status

from slidereel.infra.config.logging_config import get_logger
from slidereel.infra.config.settings import Settings, get_settings

USER_ID_CLAIMS = ("sub", "user_id")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


class TokenVerifier:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._log = get_logger("auth.jwt")

    def decode(self, token: str) -> Dict[str, Any]:
        audience = self.settings.jwt_audience or None
        try:
            return jwt.decode(
                token,
                self.settings.jwt_secret_key,
                algorithms=[self.settings.jwt_algorithm],
                audience=audience,
                options={"require": ["exp"], "verify_aud": audience is not None},
            )
        except jwt.ExpiredSignatureError:
            raise _unauthorized("Token has expired")
        except jwt.InvalidAudienceError:
            raise _unauthorized("Token was not issued for this service")
        except jwt.MissingRequiredClaimError as e:
            raise _unauthorized(f"Token missing required claim: {e.claim}")
        except jwt.InvalidTokenError as e:
            self._log.info("auth.token.invalid", error_type=type(e).__name__)
            raise _unauthorized("Invalid token")

    def user_id(self, token: str) -> str:
        """Stable user id carried by ``token``; raises 401 when there is none."""
        claims = self.decode(token)
        for claim in USER_ID_CLAIMS:
            value = claims.get(claim)
            if isinstance(value, str) and value.strip():
                return value
        raise _unauthorized("Token carries no user id")


def get_token_verifier() -> TokenVerifier:
    return TokenVerifier()
