"""
Service dependencies.

Services are built once (in the lifespan, or by tests) and parked on app.state;
routes receive them through these getters instead of importing globals.
"""

from typing import Annotated

from fastapi import Depends, Request

from app.services.group_service import GroupService
from app.services.user_service import UserService


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_group_service(request: Request) -> GroupService:
    return request.app.state.group_service


UserServiceDep = Annotated[UserService, Depends(get_user_service)]
GroupServiceDep = Annotated[GroupService, Depends(get_group_service)]
