"""Bearer token verification: OIDC issuer via JWKS, or mock HS256 for dev/tests.

Token issuance is not handled here; upstream identity providers mint the
access tokens and this module only verifies them.
"""

import time

import httpx
from jose import JWTError, jwt

from taskforge.core.config import settings

_jwks_cache: dict | None = None
_jwks_fetched_at: float = 0.0
JWKS_REFRESH_INTERVAL = 3600  # 1 hour


async def _fetch_jwks() -> dict:
    global _jwks_cache, _jwks_fetched_at
    async with httpx.AsyncClient(timeout=10.0) as client:
        resp = await client.get(settings.JWKS_URL)
        resp.raise_for_status()
    _jwks_cache = resp.json()
    _jwks_fetched_at = time.time()
    return _jwks_cache


async def _get_jwks() -> dict:
    if _jwks_cache is None or (time.time() - _jwks_fetched_at) > JWKS_REFRESH_INTERVAL:
        return await _fetch_jwks()
    return _jwks_cache


async def decode_access_token(token: str) -> dict:
    """Decode and verify an access token. Returns the claims dict."""
    if settings.AUTH_MOCK:
        return _decode_mock_token(token)
    return await _decode_issuer_token(token)


async def _decode_issuer_token(token: str) -> dict:
    """Verify an RS256 token against the issuer's published key set."""
    jwks_data = await _get_jwks()

    kid = jwt.get_unverified_header(token).get("kid")
    key = next((k for k in jwks_data.get("keys", []) if k.get("kid") == kid), None)
    if key is None:
        raise JWTError("Key not found in JWKS")

    return jwt.decode(
        token,
        key,
        algorithms=["RS256"],
        audience=settings.JWT_AUDIENCE or None,
        issuer=settings.JWT_ISSUER or None,
        options={"verify_aud": bool(settings.JWT_AUDIENCE), "verify_at_hash": False},
    )


def _decode_mock_token(token: str) -> dict:
    """Decode a mock JWT signed with SECRET_KEY (for local dev/testing)."""
    return jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=["HS256"],
        options={"verify_aud": False, "verify_iss": False},
    )


def create_mock_access_token(
    sub: str,
    username: str | None = None,
    email: str | None = None,
    name: str | None = None,
    expires_in: int = 900,
) -> str:
    """Create a mock JWT for testing. Only usable when AUTH_MOCK=true."""
    now = int(time.time())
    payload: dict = {"sub": sub, "iat": now, "exp": now + expires_in}
    if username:
        payload["preferred_username"] = username
    if email:
        payload["email"] = email
    if name:
        payload["name"] = name
    return jwt.encode(payload, settings.SECRET_KEY, algorithm="HS256")
