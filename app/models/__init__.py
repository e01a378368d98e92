"""Beanie document models and Pydantic schemas."""

from app.models.group import Expense, Group, GroupDocument, Member
from app.models.identity import Identity
from app.models.user import UserDocument, UserProfile

__all__ = [
    "Expense",
    "Group",
    "GroupDocument",
    "Identity",
    "Member",
    "UserDocument",
    "UserProfile",
]
