"""Authentication: Azure AD JWTs for front-desk staff, shared token for the DTR sync."""

from __future__ import annotations

import hmac
import json
import logging
import time
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any

from fastapi import HTTPException, status
from jose import jwk, jwt
from jose.constants import Algorithms
from jose.exceptions import ExpiredSignatureError, JWSSignatureError, JWTClaimsError, JWTError

logger = logging.getLogger(__name__)

_JWKS_TTL_SECONDS = 24 * 60 * 60


@dataclass
class _JwksCache:
    keys: dict[str, dict[str, Any]] = field(default_factory=dict)
    fetched_at: dict[str, float] = field(default_factory=dict)

    def fresh(self, tenant_id: str, now: float) -> dict[str, Any] | None:
        fetched_at = self.fetched_at.get(tenant_id)
        if fetched_at is None or now - fetched_at >= _JWKS_TTL_SECONDS:
            return None
        return self.keys.get(tenant_id)

    def store(self, tenant_id: str, jwks: dict[str, Any], now: float) -> None:
        self.keys[tenant_id] = jwks
        self.fetched_at[tenant_id] = now


_jwks_cache = _JwksCache()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def get_jwks(tenant_id: str) -> dict[str, Any]:
    now = time.time()
    cached = _jwks_cache.fresh(tenant_id, now)
    if cached is not None:
        return cached

    jwks_uri = f"https://login.microsoftonline.com/{tenant_id}/discovery/v2.0/keys"
    logger.info("Fetching JWKS from %s", jwks_uri)

    try:
        req = urllib.request.Request(jwks_uri)  # noqa: S310
        with urllib.request.urlopen(req, timeout=15) as resp:  # noqa: S310
            jwks = json.loads(resp.read().decode())
    except (urllib.error.URLError, urllib.error.HTTPError) as e:
        logger.error("Failed to fetch JWKS: %s", e)
        stale = _jwks_cache.keys.get(tenant_id)
        if stale is not None:
            logger.warning("Using expired JWKS from cache for tenant %s", tenant_id)
            return stale
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Could not fetch JWKS: {e}",
        ) from e

    _jwks_cache.store(tenant_id, jwks, now)
    return jwks


def get_signing_key(token: str, tenant_id: str) -> dict[str, str]:
    try:
        header = jwt.get_unverified_header(token)
    except JWTError as e:
        raise _unauthorized(f"Invalid token header: {e}") from e

    kid = header.get("kid")
    if not kid:
        raise _unauthorized("Token has no 'kid' in header")

    for key in get_jwks(tenant_id).get("keys", []):
        if key.get("kid") == kid:
            return key

    raise _unauthorized(f"No matching signing key for kid: {kid}")


def _expected_issuers(tenant_id: str) -> list[str]:
    return [
        f"https://login.microsoftonline.com/{tenant_id}/v2.0",
        f"https://sts.windows.net/{tenant_id}/",
    ]


def _expected_audiences(client_id: str) -> list[str]:
    return [client_id, f"api://{client_id}"]


def validate_token(token: str, tenant_id: str, client_id: str) -> dict[str, Any]:
    if not tenant_id or not client_id:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Missing Azure AD configuration",
        )

    signing_key = get_signing_key(token, tenant_id)
    algorithm = signing_key.get("alg", Algorithms.RS256)
    public_key = jwk.construct(signing_key, algorithm=algorithm)

    issuers = _expected_issuers(tenant_id)
    audiences = _expected_audiences(client_id)
    options = {
        "verify_signature": True,
        "verify_aud": True,
        "verify_iss": True,
        "verify_exp": True,
        "require": ["exp", "iss", "aud"],
    }

    last_error: Exception | None = None
    for issuer in issuers:
        for audience in audiences:
            try:
                return jwt.decode(
                    token,
                    public_key,
                    algorithms=[algorithm],
                    audience=audience,
                    issuer=issuer,
                    options=options,
                )
            except ExpiredSignatureError as e:
                raise _unauthorized("Token is expired") from e
            except JWSSignatureError as e:
                raise _unauthorized("Invalid token signature") from e
            except (JWTClaimsError, JWTError) as e:
                last_error = e

    message = str(last_error).lower() if isinstance(last_error, JWTClaimsError) else ""
    if "audience" in message:
        raise _unauthorized(f"Invalid token audience. Expected one of: {audiences}")
    if "issuer" in message:
        raise _unauthorized(f"Invalid token issuer. Expected one of: {issuers}")
    raise _unauthorized("Invalid authentication credentials")


def extract_roles_from_token(payload: dict[str, Any]) -> list[str]:
    roles = payload.get("roles", [])
    if not isinstance(roles, list):
        return []
    return [str(r) for r in roles if isinstance(r, str | int)]


def verify_shared_token(presented: str | None, expected: str) -> bool:
    """Constant-time check of a bearer token against the configured secret.

    An unset secret never matches.
    """
    if not presented or not expected:
        return False
    return hmac.compare_digest(presented.encode(), expected.encode())
