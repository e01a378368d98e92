"""
User profile API.

POST /api/users/profile: get-or-create the caller's profile (optional phone on creation).
PUT  /api/users/profile: update name and phone.
"""

from fastapi import APIRouter, Request

from app.api.auth import CurrentIdentity
from app.dependencies import UserServiceDep
from app.models.user import ProfileUpdate, UserProfile

router = APIRouter()


def _profile_payload(profile: UserProfile) -> dict:
    return {
        "id": profile.id,
        "firebaseUid": profile.firebase_uid,
        "email": profile.email,
        "name": profile.name,
        "phone": profile.phone,
        "emailVerified": profile.email_verified,
        "createdAt": profile.created_at.isoformat(),
        "updatedAt": profile.updated_at.isoformat(),
    }


async def _optional_phone(request: Request) -> str:
    # The body is optional here: anything unreadable just means "no phone".
    try:
        body = await request.json()
    except ValueError:
        return ""
    phone = body.get("phone") if isinstance(body, dict) else None
    return phone if isinstance(phone, str) else ""


@router.post(
    "/profile",
    response_model=dict,
    summary="Get or create the caller's profile",
)
async def get_or_create_profile(
    request: Request,
    identity: CurrentIdentity,
    users: UserServiceDep,
) -> dict:
    """
    Return the profile for the token's uid, creating it on first call.
    The phone in the body is only used when the profile is created.
    """
    profile = await users.get_or_create(identity, await _optional_phone(request))
    return {"success": True, "data": _profile_payload(profile)}


@router.put(
    "/profile",
    response_model=dict,
    summary="Update the caller's profile",
)
async def update_profile(
    body: ProfileUpdate,
    identity: CurrentIdentity,
    users: UserServiceDep,
) -> dict:
    profile = await users.update(identity, body.name, body.phone)
    return {"success": True, "data": _profile_payload(profile)}
