"""
Group storage.

Every method takes the owner uid and builds its filter from the stored
(id, userId) pair: there is no way to read or write a group without the
ownership predicate.
Expense add/remove are single atomic $push/$pull updates; full updates are a
blind $set (last write wins, no version check).
"""

import logging
from datetime import datetime
from typing import List, Optional, Protocol

from beanie import UpdateResponse
from pymongo.errors import DuplicateKeyError

from app.database import run_query
from app.models.group import Expense, Group, GroupDocument, Member

logger = logging.getLogger(__name__)


class GroupRepository(Protocol):
    async def list_for_owner(self, owner_id: str) -> List[Group]:
        """Owner's groups, newest first."""
        ...

    async def find(self, group_id: str, owner_id: str) -> Optional[Group]: ...

    async def insert(self, group: Group) -> bool:
        """False if the owner already has a group with this id."""
        ...

    async def replace_contents(
        self,
        group_id: str,
        owner_id: str,
        name: str,
        members: List[Member],
        expenses: List[Expense],
        now: datetime,
    ) -> Optional[Group]: ...

    async def delete(self, group_id: str, owner_id: str) -> bool: ...

    async def push_expense(self, group_id: str, owner_id: str, expense: Expense, now: datetime) -> bool:
        """Append unless the id is taken; False when nothing matched."""
        ...

    async def pull_expense(self, group_id: str, owner_id: str, expense_id: str, now: datetime) -> bool:
        """Remove the expense; False when no owned group contains it."""
        ...


def _owned(group_id: str, owner_id: str) -> dict:
    return {"id": group_id, "userId": owner_id}


class MongoGroupRepository:
    def __init__(self, timeout: float):
        self._timeout = timeout

    async def list_for_owner(self, owner_id: str) -> List[Group]:
        docs = await run_query(
            GroupDocument.find({"userId": owner_id})
            .sort("-createdAt")
            .to_list(),
            self._timeout,
            "Error fetching groups",
        )
        return [d.to_group() for d in docs]

    async def find(self, group_id: str, owner_id: str) -> Optional[Group]:
        doc = await run_query(
            GroupDocument.find_one(_owned(group_id, owner_id)),
            self._timeout,
            "Error fetching group",
        )
        return doc.to_group() if doc else None

    async def insert(self, group: Group) -> bool:
        try:
            await run_query(
                GroupDocument.from_group(group).insert(),
                self._timeout,
                "Error creating group",
            )
        except DuplicateKeyError:
            logger.info("Duplicate group id %s for owner %s", group.group_id, group.owner_id)
            return False
        return True

    async def replace_contents(
        self,
        group_id: str,
        owner_id: str,
        name: str,
        members: List[Member],
        expenses: List[Expense],
        now: datetime,
    ) -> Optional[Group]:
        update = {
            "$set": {
                "name": name,
                "members": [m.model_dump() for m in members],
                "expenses": [e.model_dump(by_alias=True) for e in expenses],
                "updatedAt": now,
            }
        }
        doc = await run_query(
            GroupDocument.find_one(_owned(group_id, owner_id)).update(
                update, response_type=UpdateResponse.NEW_DOCUMENT
            ),
            self._timeout,
            "Error updating group",
        )
        return doc.to_group() if doc else None

    async def delete(self, group_id: str, owner_id: str) -> bool:
        result = await run_query(
            GroupDocument.find_one(_owned(group_id, owner_id)).delete(),
            self._timeout,
            "Error deleting group",
        )
        return bool(result and result.deleted_count)

    async def push_expense(self, group_id: str, owner_id: str, expense: Expense, now: datetime) -> bool:
        filters = {**_owned(group_id, owner_id), "expenses.id": {"$ne": expense.id}}
        result = await run_query(
            GroupDocument.find_one(filters).update(
                {"$push": {"expenses": expense.model_dump(by_alias=True)}, "$set": {"updatedAt": now}}
            ),
            self._timeout,
            "Error adding expense",
        )
        return bool(result and result.matched_count)

    async def pull_expense(self, group_id: str, owner_id: str, expense_id: str, now: datetime) -> bool:
        filters = {**_owned(group_id, owner_id), "expenses.id": expense_id}
        result = await run_query(
            GroupDocument.find_one(filters).update(
                {"$pull": {"expenses": {"id": expense_id}}, "$set": {"updatedAt": now}}
            ),
            self._timeout,
            "Error deleting expense",
        )
        return bool(result and result.matched_count)
