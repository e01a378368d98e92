"""
User profile model for MongoDB (Beanie ODM).

Identity lives in Firebase; this collection only keeps the profile fields the
app needs. A profile is created lazily on the first POST /api/users/profile.
"""

from datetime import datetime

from beanie import Document
from pydantic import BaseModel, Field
from pymongo import ASCENDING, IndexModel

from app.models.common import utcnow


class UserProfile(BaseModel):
    """Profile as the services see it; id is the ObjectId hex string."""

    id: str
    firebase_uid: str
    email: str = ""
    name: str = ""
    phone: str = ""
    email_verified: bool = False  # Copied from the token at creation, not re-synced
    created_at: datetime
    updated_at: datetime


class UserDocument(Document):
    """
    Stored user. firebase_uid is the token "sub" claim; the unique index makes
    concurrent first logins collapse into one record. Keys are stored
    camelCase (firebaseUid, emailVerified, createdAt, updatedAt).
    """

    firebase_uid: str = Field(alias="firebaseUid")
    email: str = ""
    name: str = ""
    phone: str = ""
    email_verified: bool = Field(False, alias="emailVerified")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    class Settings:
        name = "users"
        indexes = [IndexModel([("firebaseUid", ASCENDING)], unique=True)]

    def to_profile(self) -> UserProfile:
        return UserProfile(
            id=str(self.id),
            firebase_uid=self.firebase_uid,
            email=self.email,
            name=self.name,
            phone=self.phone,
            email_verified=self.email_verified,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class ProfileUpdate(BaseModel):
    name: str = ""
    phone: str = ""
