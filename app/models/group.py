"""
Group, Member and Expense models.

Members and expenses are embedded in the group document (no separate
collections). owner_id is the Firebase uid of the creator and is part of every
query filter, so it doubles as the authorization check.

Stored keys are camelCase (id, userId, paidBy, createdAt, updatedAt) so the
collection stays readable by the existing clients of the split-it database.
"""

from datetime import datetime
from typing import List, Optional

from beanie import Document
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pymongo import ASCENDING, DESCENDING, IndexModel

from app.models.common import utcnow


class Member(BaseModel):
    id: str
    name: str


class Expense(BaseModel):
    """
    One expense inside a group. Ids are unique within the group only.
    amount is a float to match what existing clients send and store.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    description: str
    amount: float = Field(allow_inf_nan=False)
    paid_by: str = Field(alias="paidBy")
    participants: List[str] = Field(default_factory=list)
    date: datetime = Field(default_factory=utcnow)


class Group(BaseModel):
    """Group as the services see it."""

    group_id: str
    owner_id: str
    name: str
    members: List[Member] = Field(default_factory=list)
    expenses: List[Expense] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class GroupDocument(Document):
    """Stored group. group_id is the client-visible id, unique per owner."""

    group_id: str = Field(alias="id")
    owner_id: str = Field(alias="userId")
    name: str
    members: List[Member] = Field(default_factory=list)
    expenses: List[Expense] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    class Settings:
        name = "groups"
        indexes = [
            IndexModel([("userId", ASCENDING), ("id", ASCENDING)], unique=True),
            IndexModel([("userId", ASCENDING), ("createdAt", DESCENDING)]),
        ]

    @classmethod
    def from_group(cls, group: Group) -> "GroupDocument":
        return cls(**group.model_dump())

    def to_group(self) -> Group:
        return Group.model_validate(self.model_dump(exclude={"id", "revision_id"}))


# Request bodies

class GroupCreate(BaseModel):
    id: Optional[str] = None
    name: str = ""
    members: List[Member] = Field(default_factory=list)


class GroupUpdate(BaseModel):
    name: str = ""
    members: List[Member] = Field(default_factory=list)
    expenses: List[Expense] = Field(default_factory=list)


class ExpenseCreate(BaseModel):
    id: Optional[str] = None
    description: str = ""
    amount: float = Field(0, allow_inf_nan=False)
    paid_by: str = Field("", validation_alias=AliasChoices("paidBy", "paid_by"))
    participants: List[str] = Field(default_factory=list)
