"""
User profile operations keyed by the verified Firebase uid.

Profiles are created lazily: the client calls POST /api/users/profile right
after sign-in, and the first call creates the record. Later calls return it
unchanged, so the endpoint is safe to call on every app start.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from app.exceptions import NotFoundError, StoreError
from app.models.common import utcnow
from app.models.identity import Identity
from app.models.user import UserProfile
from app.repositories.users import UserRepository

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, repository: UserRepository, clock: Callable[[], datetime] = utcnow):
        self._repository = repository
        self._clock = clock

    async def get_or_create(self, identity: Identity, phone: Optional[str] = None) -> UserProfile:
        """
        Return the caller's profile, creating it from the token claims if needed.
        phone is only used on creation; an existing profile is never modified here.
        """
        existing = await self._repository.find_by_uid(identity.uid)
        if existing:
            return existing

        created = await self._repository.insert(identity, phone or "", self._clock())
        if created is not None:
            logger.info("Created profile for uid=%s", identity.uid)
            return created

        # A concurrent first request won the unique index; return its record
        existing = await self._repository.find_by_uid(identity.uid)
        if existing is None:
            raise StoreError("Error creating user profile")
        return existing

    async def update(self, identity: Identity, name: str, phone: str) -> UserProfile:
        """
        Set name and phone. The result echoes the requested values; the other
        fields (id, email, verification flag, created_at) come from the store.
        """
        stored = await self._repository.update_contact(identity.uid, name, phone, self._clock())
        if stored is None:
            raise NotFoundError("User not found")
        return stored.model_copy(update={"name": name, "phone": phone})
