"""
Group and expense operations.

All calls take the caller's uid and pass it down to the repository, where it
becomes part of the query filter. A group owned by someone else is therefore
simply "not found"; there is no separate permission check that could be skipped.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from app.exceptions import NotFoundError, ValidationError
from app.models.common import new_id, utcnow
from app.models.group import Expense, Group, Member
from app.repositories.groups import GroupRepository

logger = logging.getLogger(__name__)

MIN_GROUP_MEMBERS = 2

GROUP_NOT_FOUND = "Group not found"


class GroupService:
    def __init__(
        self,
        repository: GroupRepository,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = new_id,
    ):
        self._repository = repository
        self._clock = clock
        self._new_id = id_factory

    async def list_groups(self, owner_id: str) -> List[Group]:
        return await self._repository.list_for_owner(owner_id)

    async def get_group(self, group_id: str, owner_id: str) -> Group:
        group = await self._repository.find(group_id, owner_id)
        if group is None:
            raise NotFoundError(GROUP_NOT_FOUND)
        return group

    async def create_group(
        self,
        owner_id: str,
        name: str,
        members: List[Member],
        group_id: Optional[str] = None,
    ) -> Group:
        if not name or len(members) < MIN_GROUP_MEMBERS:
            raise ValidationError("Group name and at least 2 members are required")

        now = self._clock()
        group = Group(
            group_id=group_id or self._new_id(),
            owner_id=owner_id,
            name=name,
            members=members,
            expenses=[],
            created_at=now,
            updated_at=now,
        )
        if not await self._repository.insert(group):
            raise ValidationError("Group with this id already exists")
        logger.info("Created group %s for uid=%s", group.group_id, owner_id)
        return group

    async def update_group(
        self,
        group_id: str,
        owner_id: str,
        name: str,
        members: List[Member],
        expenses: List[Expense],
    ) -> Group:
        """
        Overwrite name, members and expenses wholesale. Expenses added by a
        concurrent request in between are lost (last write wins).
        """
        expense_ids = [e.id for e in expenses]
        if len(set(expense_ids)) != len(expense_ids):
            raise ValidationError("Expense ids must be unique within a group")

        group = await self._repository.replace_contents(
            group_id, owner_id, name, members, expenses, self._clock()
        )
        if group is None:
            raise NotFoundError(GROUP_NOT_FOUND)
        return group

    async def delete_group(self, group_id: str, owner_id: str) -> None:
        if not await self._repository.delete(group_id, owner_id):
            raise NotFoundError(GROUP_NOT_FOUND)
        logger.info("Deleted group %s for uid=%s", group_id, owner_id)

    async def add_expense(
        self,
        group_id: str,
        owner_id: str,
        description: str,
        amount: float,
        paid_by: str,
        participants: List[str],
        expense_id: Optional[str] = None,
    ) -> Expense:
        if not description or amount == 0 or not paid_by or not participants:
            raise ValidationError("All expense fields are required")

        now = self._clock()
        expense = Expense(
            id=expense_id or self._new_id(),
            description=description,
            amount=amount,
            paid_by=paid_by,
            participants=participants,
            date=now,
        )
        if await self._repository.push_expense(group_id, owner_id, expense, now):
            return expense

        # Nothing matched: either the group is not visible or the id is taken
        if await self._repository.find(group_id, owner_id) is None:
            raise NotFoundError(GROUP_NOT_FOUND)
        raise ValidationError("Expense with this id already exists")

    async def delete_expense(self, group_id: str, owner_id: str, expense_id: str) -> None:
        """
        Remove one expense. A missing expense inside an existing group reports
        the same 404 as a missing group.
        """
        if not await self._repository.pull_expense(group_id, owner_id, expense_id, self._clock()):
            raise NotFoundError(GROUP_NOT_FOUND)
