from __future__ import annotations

import jwt

from app.application.dto.auth import AccessTokenPayload
from app.application.ports.token_port import TokenPort


class SupabaseTokenService(TokenPort):
    """Valida os access tokens emitidos pelo Supabase Auth (HS256)."""

    def __init__(self, *, jwt_secret: str, audience: str = "authenticated"):
        self._jwt_secret = jwt_secret
        self._audience = audience

    def decode_access_token(self, *, token: str) -> AccessTokenPayload:
        try:
            payload = jwt.decode(
                token,
                self._jwt_secret,
                algorithms=["HS256"],
                audience=self._audience,
                options={"require": ["exp", "sub"]},
            )
        except jwt.PyJWTError as exc:
            raise ValueError("Invalid access token.") from exc

        user_id = payload.get("sub")
        if not user_id or not isinstance(user_id, str):
            raise ValueError("Invalid token subject.")

        email = payload.get("email")
        return AccessTokenPayload(
            user_id=user_id,
            email=email if isinstance(email, str) else None,
        )
