import hashlib
import hmac
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

import jwt

from app.core.config import get_settings


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


@lru_cache(maxsize=4)
def _jwks_client(jwks_url: str) -> jwt.PyJWKClient:
    return jwt.PyJWKClient(jwks_url, cache_keys=True)


def decode_identity_token(token: str) -> dict[str, Any]:
    """Verify an identity token from the auth provider and return its claims.

    Raises jwt.PyJWTError on any verification failure.
    """
    settings = get_settings()
    options = {"require": ["sub", "exp"], "verify_aud": bool(settings.auth_audience)}
    kwargs: dict[str, Any] = {"options": options}
    if settings.auth_issuer:
        kwargs["issuer"] = settings.auth_issuer
    if settings.auth_audience:
        kwargs["audience"] = settings.auth_audience

    if settings.auth_jwks_url:
        signing_key = _jwks_client(settings.auth_jwks_url).get_signing_key_from_jwt(token)
        return jwt.decode(token, signing_key.key, algorithms=["RS256"], **kwargs)
    return jwt.decode(token, settings.auth_dev_secret, algorithms=["HS256"], **kwargs)


def create_dev_identity_token(external_id: str, expires_seconds: int = 3600, extra: dict[str, Any] | None = None) -> str:
    settings = get_settings()
    payload: dict[str, Any] = {"sub": external_id, "exp": now_utc() + timedelta(seconds=expires_seconds)}
    if settings.auth_issuer:
        payload["iss"] = settings.auth_issuer
    if settings.auth_audience:
        payload["aud"] = settings.auth_audience
    if extra:
        payload.update(extra)
    return jwt.encode(payload, settings.auth_dev_secret, algorithm="HS256")


def hmac_sha256_hex(secret: str, message: bytes | str) -> str:
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_hmac_sha256(secret: str, message: bytes | str, signature: str) -> bool:
    if not secret or not signature:
        return False
    return hmac.compare_digest(hmac_sha256_hex(secret, message), signature)
