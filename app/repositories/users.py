"""
User storage.

UserRepository is what the profile service depends on; MongoUserRepository is
the Beanie-backed implementation wired in at startup.
"""

import logging
from datetime import datetime
from typing import Optional, Protocol

from beanie import UpdateResponse
from pymongo.errors import DuplicateKeyError

from app.database import run_query
from app.models.identity import Identity
from app.models.user import UserDocument, UserProfile

logger = logging.getLogger(__name__)


class UserRepository(Protocol):
    async def find_by_uid(self, firebase_uid: str) -> Optional[UserProfile]: ...

    async def insert(self, identity: Identity, phone: str, now: datetime) -> Optional[UserProfile]:
        """Create the profile; return None if one already exists for the uid."""
        ...

    async def update_contact(
        self, firebase_uid: str, name: str, phone: str, now: datetime
    ) -> Optional[UserProfile]:
        """Set name/phone/updated_at; return the updated profile or None if absent."""
        ...


class MongoUserRepository:
    def __init__(self, timeout: float):
        self._timeout = timeout

    async def find_by_uid(self, firebase_uid: str) -> Optional[UserProfile]:
        doc = await run_query(
            UserDocument.find_one({"firebaseUid": firebase_uid}),
            self._timeout,
            "Error fetching user profile",
        )
        return doc.to_profile() if doc else None

    async def insert(self, identity: Identity, phone: str, now: datetime) -> Optional[UserProfile]:
        doc = UserDocument(
            firebase_uid=identity.uid,
            email=identity.email,
            name=identity.name,
            phone=phone,
            email_verified=identity.email_verified,
            created_at=now,
            updated_at=now,
        )
        try:
            await run_query(doc.insert(), self._timeout, "Error creating user profile")
        except DuplicateKeyError:
            logger.info("Profile for uid=%s was created concurrently", identity.uid)
            return None
        return doc.to_profile()

    async def update_contact(
        self, firebase_uid: str, name: str, phone: str, now: datetime
    ) -> Optional[UserProfile]:
        doc = await run_query(
            UserDocument.find_one({"firebaseUid": firebase_uid}).update(
                {"$set": {"name": name, "phone": phone, "updatedAt": now}},
                response_type=UpdateResponse.NEW_DOCUMENT,
            ),
            self._timeout,
            "Error updating user profile",
        )
        return doc.to_profile() if doc else None
