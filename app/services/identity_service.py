"""
Firebase ID token verification.

Firebase ID tokens are RS256 JWTs signed with Google's rotating "securetoken"
keys. We verify them locally with PyJWT: the public keys come from Google's
JWKS endpoint (cached by PyJWKClient), and the audience/issuer must match the
Firebase project from the service-account file.

If no service account is configured the verifier is simply not built; the auth
dependency then fails every protected request with 500 instead of guessing.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional

import jwt
from jwt import PyJWKClient

from app.config import Settings
from app.models.identity import Identity

logger = logging.getLogger(__name__)

FIREBASE_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com"
)
FIREBASE_ISSUER_PREFIX = "https://securetoken.google.com/"
JWKS_CACHE_SECONDS = 3600


class TokenVerificationError(Exception):
    """Token is malformed, expired, not ours, or its signing key is unavailable."""


class FirebaseTokenVerifier:
    """Verifies Firebase ID tokens for one project. Safe to share across requests."""

    def __init__(
        self,
        project_id: str,
        jwks_client: Optional[PyJWKClient] = None,
        timeout: float = 10.0,
    ):
        self.project_id = project_id
        self._jwks_client = jwks_client or PyJWKClient(
            FIREBASE_JWKS_URL,
            cache_keys=True,
            lifespan=JWKS_CACHE_SECONDS,
            timeout=timeout,
        )

    @property
    def issuer(self) -> str:
        return f"{FIREBASE_ISSUER_PREFIX}{self.project_id}"

    def decode(self, token: str) -> dict[str, Any]:
        """Blocking: may fetch the JWKS over HTTP on a cache miss."""
        try:
            signing_key = self._jwks_client.get_signing_key_from_jwt(token)
            return jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.project_id,
                issuer=self.issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenVerificationError("Token has expired") from e
        except jwt.PyJWKClientError as e:
            logger.warning("Could not resolve Firebase signing key: %s", e)
            raise TokenVerificationError("Signing key unavailable") from e
        except jwt.InvalidTokenError as e:
            raise TokenVerificationError(str(e)) from e

    async def verify(self, token: str) -> Identity:
        # PyJWKClient uses urllib; keep it off the event loop
        claims = await asyncio.to_thread(self.decode, token)
        try:
            return Identity.from_claims(claims)
        except ValueError as e:
            raise TokenVerificationError(str(e)) from e


def load_project_id(service_account_path: str) -> str:
    """Read project_id from a Firebase service-account JSON file."""
    data = json.loads(Path(service_account_path).read_text(encoding="utf-8"))
    project_id = data.get("project_id") if isinstance(data, dict) else None
    if not isinstance(project_id, str) or not project_id:
        raise ValueError(f"No project_id in {service_account_path}")
    return project_id


def build_identity_verifier(settings: Settings) -> Optional[FirebaseTokenVerifier]:
    """
    Build the verifier from settings, or return None when Firebase is not
    configured. Startup continues either way; auth is then disabled.
    """
    path = settings.firebase_service_account_path
    if not path:
        logger.warning("FIREBASE_SERVICE_ACCOUNT_PATH not set")
        logger.warning("Continuing without Firebase: authenticated routes will return 500")
        return None

    try:
        project_id = settings.firebase_project_id or load_project_id(path)
    except (OSError, ValueError) as e:
        logger.error("Firebase initialization error: %s", e)
        logger.warning("Continuing without Firebase: authenticated routes will return 500")
        return None

    logger.info("Firebase token verification enabled for project %s", project_id)
    return FirebaseTokenVerifier(project_id, timeout=settings.request_timeout_seconds)
