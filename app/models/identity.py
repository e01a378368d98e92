"""
Identity resolved from a verified Firebase ID token.

Lives for one request only. It is never stored; its uid stamps and filters
the records the caller owns.
"""

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict


class Identity(BaseModel):
    """Typed view of the token claims we care about."""

    model_config = ConfigDict(frozen=True)

    uid: str
    email: str = ""
    name: str = ""
    email_verified: bool = False

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "Identity":
        """
        Build an Identity from decoded claims.

        Fallbacks: email -> "" when absent or not a string; name -> email when
        absent or not a string; email_verified -> False when absent or not a bool.
        Raises ValueError if the subject claim is missing.
        """
        uid = claims.get("sub")
        if not isinstance(uid, str) or not uid:
            raise ValueError("Token missing subject")

        email = claims.get("email")
        if not isinstance(email, str):
            email = ""

        name = claims.get("name")
        if not isinstance(name, str):
            name = email

        email_verified = claims.get("email_verified")
        if not isinstance(email_verified, bool):
            email_verified = False

        return cls(uid=uid, email=email, name=name, email_verified=email_verified)
