"""Tests for the profile endpoints and UserService."""

import asyncio

import pytest

from app.exceptions import NotFoundError
from app.services.user_service import UserService
from tests.conftest import ALICE, ALICE_HEADERS, BOB_HEADERS, FakeClock, FakeUserRepository


def test_first_call_creates_profile_from_token_claims(client, user_repo):
    response = client.post("/api/users/profile", json={"phone": "555-0100"}, headers=ALICE_HEADERS)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["firebaseUid"] == "alice-uid"
    assert data["email"] == "alice@example.com"
    assert data["name"] == "Alice"
    assert data["phone"] == "555-0100"
    assert data["emailVerified"] is True
    assert data["id"]
    assert user_repo.writes == 1


def test_get_or_create_is_idempotent_and_ignores_later_phone(client, user_repo):
    first = client.post("/api/users/profile", json={"phone": "555-0100"}, headers=ALICE_HEADERS)
    second = client.post("/api/users/profile", json={"phone": "555-0199"}, headers=ALICE_HEADERS)

    assert first.status_code == second.status_code == 200
    assert second.json()["data"] == first.json()["data"]
    assert second.json()["data"]["phone"] == "555-0100"
    assert user_repo.writes == 1


def test_profile_body_is_optional(client):
    response = client.post("/api/users/profile", headers=BOB_HEADERS)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["phone"] == ""
    assert data["emailVerified"] is False


def test_update_profile_echoes_requested_values(client):
    created = client.post("/api/users/profile", headers=ALICE_HEADERS).json()["data"]

    response = client.put(
        "/api/users/profile",
        json={"name": "Alice Liddell", "phone": "555-0142"},
        headers=ALICE_HEADERS,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Alice Liddell"
    assert data["phone"] == "555-0142"
    assert data["id"] == created["id"]
    assert data["email"] == created["email"]
    assert data["emailVerified"] == created["emailVerified"]
    assert data["createdAt"] == created["createdAt"]


def test_update_without_profile_is_404(client, user_repo):
    response = client.put("/api/users/profile", json={"name": "Bob", "phone": ""}, headers=BOB_HEADERS)

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "User not found"}
    assert user_repo.writes == 0


def test_update_does_not_resync_email_verified(client, user_repo):
    client.post("/api/users/profile", headers=BOB_HEADERS)

    client.put("/api/users/profile", json={"name": "Robert", "phone": "1"}, headers=BOB_HEADERS)

    assert user_repo.profiles["bob-uid"].email_verified is False


class RacingUserRepository(FakeUserRepository):
    """The first lookup misses, but another request inserts before we do."""

    def __init__(self):
        super().__init__()
        self._raced = False

    async def find_by_uid(self, firebase_uid):
        if not self._raced:
            self._raced = True
            winner = ALICE.model_copy(update={"name": "Alice (first request)"})
            await FakeUserRepository.insert(self, winner, "555-0001", FakeClock()())
            return None
        return await super().find_by_uid(firebase_uid)


def test_concurrent_first_call_returns_the_winning_record():
    repo = RacingUserRepository()
    service = UserService(repo, clock=FakeClock())

    profile = asyncio.run(service.get_or_create(ALICE, "555-0002"))

    assert profile.name == "Alice (first request)"
    assert profile.phone == "555-0001"
    assert len(repo.profiles) == 1


def test_service_update_raises_not_found():
    service = UserService(FakeUserRepository(), clock=FakeClock())

    with pytest.raises(NotFoundError):
        asyncio.run(service.update(ALICE, "x", "y"))


@pytest.mark.parametrize(
    "content",
    [
        '{"phone": 5550100}',
        '{"phone": null}',
        '["555-0100"]',
        "{not json",
    ],
)
def test_unusable_profile_body_is_ignored(client, content):
    response = client.post(
        "/api/users/profile",
        content=content,
        headers={**ALICE_HEADERS, "Content-Type": "application/json"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["firebaseUid"] == "alice-uid"
    assert data["phone"] == ""
