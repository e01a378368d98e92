"""
Group and expense API.

Every route is scoped to the caller: the uid from the token is passed to the
service and becomes part of the database filter, so another user's group is
reported as "Group not found" (404), never 403.
"""

from fastapi import APIRouter, status

from app.api.auth import CurrentIdentity
from app.dependencies import GroupServiceDep
from app.models.group import Expense, ExpenseCreate, Group, GroupCreate, GroupUpdate

router = APIRouter()


def _expense_payload(expense: Expense) -> dict:
    return {
        "id": expense.id,
        "description": expense.description,
        "amount": expense.amount,
        "paidBy": expense.paid_by,
        "participants": list(expense.participants),
        "date": expense.date.isoformat(),
    }


def _group_payload(group: Group) -> dict:
    return {
        "id": group.group_id,
        "name": group.name,
        "members": [m.model_dump() for m in group.members],
        "expenses": [_expense_payload(e) for e in group.expenses],
        "createdAt": group.created_at.isoformat(),
        "updatedAt": group.updated_at.isoformat(),
    }


@router.get("", response_model=dict, summary="List the caller's groups")
async def list_groups(identity: CurrentIdentity, groups: GroupServiceDep) -> dict:
    """Newest first."""
    result = await groups.list_groups(identity.uid)
    return {"success": True, "data": [_group_payload(g) for g in result]}


@router.get("/{group_id}", response_model=dict, summary="Get one group")
async def get_group(group_id: str, identity: CurrentIdentity, groups: GroupServiceDep) -> dict:
    group = await groups.get_group(group_id, identity.uid)
    return {"success": True, "data": _group_payload(group)}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=dict,
    summary="Create a group",
)
async def create_group(body: GroupCreate, identity: CurrentIdentity, groups: GroupServiceDep) -> dict:
    """Needs a name and at least two members. The id is generated when omitted."""
    group = await groups.create_group(identity.uid, body.name, body.members, group_id=body.id)
    return {"success": True, "data": _group_payload(group)}


@router.put("/{group_id}", response_model=dict, summary="Replace a group's contents")
async def update_group(
    group_id: str,
    body: GroupUpdate,
    identity: CurrentIdentity,
    groups: GroupServiceDep,
) -> dict:
    group = await groups.update_group(group_id, identity.uid, body.name, body.members, body.expenses)
    return {"success": True, "data": _group_payload(group)}


@router.delete("/{group_id}", response_model=dict, summary="Delete a group")
async def delete_group(group_id: str, identity: CurrentIdentity, groups: GroupServiceDep) -> dict:
    await groups.delete_group(group_id, identity.uid)
    return {"success": True, "message": "Group deleted successfully"}


@router.post(
    "/{group_id}/expenses",
    status_code=status.HTTP_201_CREATED,
    response_model=dict,
    summary="Add an expense to a group",
)
async def add_expense(
    group_id: str,
    body: ExpenseCreate,
    identity: CurrentIdentity,
    groups: GroupServiceDep,
) -> dict:
    """Returns the new expense, not the whole group."""
    expense = await groups.add_expense(
        group_id,
        identity.uid,
        description=body.description,
        amount=body.amount,
        paid_by=body.paid_by,
        participants=body.participants,
        expense_id=body.id,
    )
    return {"success": True, "data": _expense_payload(expense)}


@router.delete(
    "/{group_id}/expenses/{expense_id}",
    response_model=dict,
    summary="Remove an expense from a group",
)
async def delete_expense(
    group_id: str,
    expense_id: str,
    identity: CurrentIdentity,
    groups: GroupServiceDep,
) -> dict:
    await groups.delete_expense(group_id, identity.uid, expense_id)
    return {"success": True, "message": "Expense deleted successfully"}
