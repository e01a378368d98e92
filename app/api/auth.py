"""
Authentication: Firebase ID token validation and current identity dependency.

Protected routes depend on get_current_identity. The order of checks matters:
1. no usable "Authorization: Bearer <token>" header -> 401
2. verifier not configured at startup                -> 500 (server misconfigured)
3. token rejected by the verifier                    -> 401

The resolved Identity is returned to the route and kept on request.state for
the duration of the request only.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.exceptions import AuthError, AuthFailure
from app.models.identity import Identity
from app.services.identity_service import TokenVerificationError

logger = logging.getLogger(__name__)

# auto_error=False so a missing header reaches us and gets the JSON envelope
security = HTTPBearer(auto_error=False)


async def get_current_identity(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Identity:
    """
    Dependency: verify the bearer token and return the caller's Identity.
    """
    if credentials is None or not credentials.credentials:
        raise AuthError(AuthFailure.MISSING_TOKEN)

    verifier = getattr(request.app.state, "identity_verifier", None)
    if verifier is None:
        raise AuthError(AuthFailure.SERVICE_UNAVAILABLE)

    try:
        identity = await verifier.verify(credentials.credentials)
    except TokenVerificationError as e:
        logger.warning("Token verification failed: %s", e)
        raise AuthError(AuthFailure.INVALID_TOKEN)

    request.state.identity = identity
    return identity


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
