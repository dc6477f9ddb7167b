"""Connection request endpoints."""

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import AsyncClient


@pytest.fixture
def as_user(token_factory):
    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token_factory(user_id)}"}

    return _headers


@pytest_asyncio.fixture
async def bob(authed_client: AsyncClient, make_user) -> str:
    await make_user("user-2", "bob", full_name="Bob Builder")
    return "user-2"


async def _request(client: AsyncClient, addressee: str = "user-2") -> dict:
    response = await client.post("/v1/connections/requests", json={"addresseeId": addressee})
    assert response.status_code == 201
    return response.json()


class TestRequests:
    async def test_create(self, authed_client: AsyncClient, bob: str, as_user):
        data = await _request(authed_client)
        assert data["status"] == "pending"
        assert data["requesterId"] == "user-1"
        assert data["otherUser"]["handle"] == "bob"

        inbox = (await authed_client.get("/v1/notifications", headers=as_user(bob))).json()
        assert [n["kind"] for n in inbox["notifications"]] == ["connection_request"]

    async def test_self(self, authed_client: AsyncClient):
        response = await authed_client.post("/v1/connections/requests", json={"addresseeId": "user-1"})
        assert response.status_code == 400

    async def test_unknown_addressee(self, authed_client: AsyncClient):
        response = await authed_client.post("/v1/connections/requests", json={"addresseeId": "ghost"})
        assert response.status_code == 404

    async def test_duplicate_either_direction(self, authed_client: AsyncClient, bob: str, as_user):
        await _request(authed_client)
        response = await authed_client.post(
            "/v1/connections/requests", json={"addresseeId": "user-1"}, headers=as_user(bob)
        )
        assert response.status_code == 400
        assert response.json()["details"] == {"status": "pending"}


class TestResponding:
    async def test_accept(self, authed_client: AsyncClient, bob: str, as_user):
        connection = await _request(authed_client)
        response = await authed_client.post(f"/v1/connections/{connection['id']}/accept", headers=as_user(bob))
        assert response.status_code == 200
        assert response.json()["status"] == "accepted"

        inbox = (await authed_client.get("/v1/notifications")).json()
        assert [n["kind"] for n in inbox["notifications"]] == ["connection_accepted"]

    async def test_requester_cannot_accept(self, authed_client: AsyncClient, bob: str):
        connection = await _request(authed_client)
        response = await authed_client.post(f"/v1/connections/{connection['id']}/accept")
        assert response.status_code == 403

    async def test_accept_twice(self, authed_client: AsyncClient, bob: str, as_user):
        connection = await _request(authed_client)
        await authed_client.post(f"/v1/connections/{connection['id']}/accept", headers=as_user(bob))
        response = await authed_client.post(f"/v1/connections/{connection['id']}/accept", headers=as_user(bob))
        assert response.status_code == 400

    async def test_decline_allows_new_request(self, authed_client: AsyncClient, bob: str, as_user):
        connection = await _request(authed_client)
        response = await authed_client.post(f"/v1/connections/{connection['id']}/decline", headers=as_user(bob))
        assert response.json() == {"success": True}
        await _request(authed_client)

    async def test_unknown(self, authed_client: AsyncClient):
        response = await authed_client.post("/v1/connections/missing/accept")
        assert response.status_code == 404


class TestListing:
    async def test_both_sides_see_other_party(self, authed_client: AsyncClient, bob: str, as_user):
        await _request(authed_client)

        mine = (await authed_client.get("/v1/connections")).json()["connections"]
        assert [c["otherUser"]["handle"] for c in mine] == ["bob"]

        theirs = (await authed_client.get("/v1/connections", headers=as_user(bob))).json()["connections"]
        assert [c["otherUser"]["handle"] for c in theirs] == ["alice"]

    async def test_status_filter(self, authed_client: AsyncClient, bob: str):
        await _request(authed_client)
        accepted = await authed_client.get("/v1/connections", params={"status": "accepted"})
        assert accepted.json()["connections"] == []
