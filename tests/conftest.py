"""
Pytest configuration and shared fixtures.

The app is built through create_application() without running its lifespan,
so no MongoDB or Firebase is needed: in-memory repositories and a fake token
verifier are placed on app.state instead.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

# Keep a developer's local .env/environment from leaking into the tests
os.environ.pop("MONGODB_URI", None)
os.environ.pop("FIREBASE_SERVICE_ACCOUNT_PATH", None)

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_application
from app.models.group import Expense, Group, Member
from app.models.identity import Identity
from app.models.user import UserProfile
from app.services.group_service import GroupService
from app.services.identity_service import TokenVerificationError
from app.services.user_service import UserService

ALICE = Identity(uid="alice-uid", email="alice@example.com", name="Alice", email_verified=True)
BOB = Identity(uid="bob-uid", email="bob@example.com", name="Bob", email_verified=False)

ALICE_HEADERS = {"Authorization": "Bearer alice-token"}
BOB_HEADERS = {"Authorization": "Bearer bob-token"}


class FakeClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


class FakeVerifier:
    def __init__(self, identities: Dict[str, Identity]):
        self.identities = identities
        self.calls: List[str] = []

    async def verify(self, token: str) -> Identity:
        self.calls.append(token)
        if token not in self.identities:
            raise TokenVerificationError("unknown token")
        return self.identities[token]


class FakeUserRepository:
    def __init__(self):
        self.profiles: Dict[str, UserProfile] = {}
        self.writes = 0

    async def find_by_uid(self, firebase_uid: str) -> Optional[UserProfile]:
        return self.profiles.get(firebase_uid)

    async def insert(self, identity: Identity, phone: str, now: datetime) -> Optional[UserProfile]:
        if identity.uid in self.profiles:
            return None
        profile = UserProfile(
            id=f"{len(self.profiles) + 1:024x}",
            firebase_uid=identity.uid,
            email=identity.email,
            name=identity.name,
            phone=phone,
            email_verified=identity.email_verified,
            created_at=now,
            updated_at=now,
        )
        self.profiles[identity.uid] = profile
        self.writes += 1
        return profile

    async def update_contact(
        self, firebase_uid: str, name: str, phone: str, now: datetime
    ) -> Optional[UserProfile]:
        stored = self.profiles.get(firebase_uid)
        if stored is None:
            return None
        stored = stored.model_copy(update={"name": name, "phone": phone, "updated_at": now})
        self.profiles[firebase_uid] = stored
        self.writes += 1
        return stored


class FakeGroupRepository:
    """Same filter semantics as the Mongo repository, kept in a dict."""

    def __init__(self):
        self.groups: Dict[Tuple[str, str], Group] = {}
        self.writes = 0

    async def list_for_owner(self, owner_id: str) -> List[Group]:
        owned = [g for (owner, _), g in self.groups.items() if owner == owner_id]
        owned.sort(key=lambda g: g.created_at, reverse=True)
        return [g.model_copy(deep=True) for g in owned]

    async def find(self, group_id: str, owner_id: str) -> Optional[Group]:
        group = self.groups.get((owner_id, group_id))
        return group.model_copy(deep=True) if group else None

    async def insert(self, group: Group) -> bool:
        key = (group.owner_id, group.group_id)
        if key in self.groups:
            return False
        self.groups[key] = group.model_copy(deep=True)
        self.writes += 1
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
        group = self.groups.get((owner_id, group_id))
        if group is None:
            return None
        group = group.model_copy(
            update={"name": name, "members": list(members), "expenses": list(expenses), "updated_at": now},
            deep=True,
        )
        self.groups[(owner_id, group_id)] = group
        self.writes += 1
        return group.model_copy(deep=True)

    async def delete(self, group_id: str, owner_id: str) -> bool:
        if self.groups.pop((owner_id, group_id), None) is None:
            return False
        self.writes += 1
        return True

    async def push_expense(self, group_id: str, owner_id: str, expense: Expense, now: datetime) -> bool:
        group = self.groups.get((owner_id, group_id))
        if group is None or any(e.id == expense.id for e in group.expenses):
            return False
        group.expenses.append(expense.model_copy(deep=True))
        group.updated_at = now
        self.writes += 1
        return True

    async def pull_expense(self, group_id: str, owner_id: str, expense_id: str, now: datetime) -> bool:
        group = self.groups.get((owner_id, group_id))
        if group is None or not any(e.id == expense_id for e in group.expenses):
            return False
        group.expenses = [e for e in group.expenses if e.id != expense_id]
        group.updated_at = now
        self.writes += 1
        return True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def user_repo():
    return FakeUserRepository()


@pytest.fixture
def group_repo():
    return FakeGroupRepository()


@pytest.fixture
def verifier():
    return FakeVerifier({"alice-token": ALICE, "bob-token": BOB})


@pytest.fixture
def settings():
    return Settings(rate_limit_max=1000)


@pytest.fixture
def app(settings, verifier, user_repo, group_repo, clock):
    application = create_application(settings)
    application.state.identity_verifier = verifier
    application.state.user_service = UserService(user_repo, clock=clock)
    application.state.group_service = GroupService(group_repo, clock=clock)
    return application


@pytest.fixture
def client(app):
    # Not used as a context manager: the lifespan (MongoDB, Firebase) is skipped
    return TestClient(app)


@pytest.fixture
def sample_members():
    return [{"id": "m1", "name": "Alice"}, {"id": "m2", "name": "Bob"}]


@pytest.fixture
def make_group(client, sample_members):
    """Create a group through the API as Alice (or another caller) and return its payload."""

    def _make(name: str = "Trip", headers: Optional[dict] = None, **extra) -> dict:
        body = {"name": name, "members": sample_members, **extra}
        response = client.post("/api/groups", json=body, headers=headers or ALICE_HEADERS)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make
