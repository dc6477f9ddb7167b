"""Skill listing and endorsement endpoints."""

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
    await make_user("user-2", "bob")
    return "user-2"


class TestSkills:
    async def test_add_and_list(self, authed_client: AsyncClient):
        response = await authed_client.post(
            "/v1/skills", json={"kind": "teach", "tags": [" Rust ", "", "Go"], "level": "advanced"}
        )
        assert response.status_code == 201
        assert response.json()["tags"] == ["Rust", "Go"]

        skills = (await authed_client.get("/v1/skills/me")).json()["skills"]
        assert len(skills) == 1
        assert skills[0]["userId"] == "user-1"

    async def test_blank_tags_rejected(self, authed_client: AsyncClient):
        response = await authed_client.post("/v1/skills", json={"kind": "learn", "tags": ["  "]})
        assert response.status_code == 400

    async def test_unknown_kind_rejected(self, authed_client: AsyncClient):
        response = await authed_client.post("/v1/skills", json={"kind": "mentor", "tags": ["rust"]})
        assert response.status_code == 400

    async def test_requires_profile(self, client: AsyncClient, as_user):
        response = await client.post(
            "/v1/skills", json={"kind": "teach", "tags": ["rust"]}, headers=as_user("no-profile")
        )
        assert response.status_code == 404

    async def test_update_and_delete(self, authed_client: AsyncClient):
        skill = (await authed_client.post("/v1/skills", json={"kind": "learn", "tags": ["sql"]})).json()

        patched = await authed_client.patch(f"/v1/skills/{skill['id']}", json={"level": "beginner"})
        assert patched.json()["level"] == "beginner"
        assert patched.json()["tags"] == ["sql"]

        deleted = await authed_client.delete(f"/v1/skills/{skill['id']}")
        assert deleted.json() == {"success": True}
        assert (await authed_client.get("/v1/skills/me")).json()["skills"] == []

    async def test_cannot_edit_others(self, authed_client: AsyncClient, bob: str, as_user):
        skill = (await authed_client.post("/v1/skills", json={"kind": "learn", "tags": ["sql"]})).json()
        response = await authed_client.delete(f"/v1/skills/{skill['id']}", headers=as_user(bob))
        assert response.status_code == 403


class TestEndorsements:
    async def test_endorse(self, authed_client: AsyncClient, bob: str, as_user):
        response = await authed_client.post("/v1/endorsements", json={"endorseeId": bob, "tag": " rust "})
        assert response.status_code == 201
        assert response.json()["tag"] == "rust"

        listed = (await authed_client.get(f"/v1/users/{bob}/endorsements")).json()["endorsements"]
        assert [e["endorserId"] for e in listed] == ["user-1"]

        inbox = (await authed_client.get("/v1/notifications", headers=as_user(bob))).json()
        assert [n["kind"] for n in inbox["notifications"]] == ["endorsement_received"]

    async def test_duplicate(self, authed_client: AsyncClient, bob: str):
        await authed_client.post("/v1/endorsements", json={"endorseeId": bob, "tag": "rust"})
        response = await authed_client.post("/v1/endorsements", json={"endorseeId": bob, "tag": "rust"})
        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    async def test_duplicate_ignores_case(self, authed_client: AsyncClient, bob: str):
        await authed_client.post("/v1/endorsements", json={"endorseeId": bob, "tag": "Python"})
        response = await authed_client.post("/v1/endorsements", json={"endorseeId": bob, "tag": "python"})
        assert response.status_code == 409

        listed = (await authed_client.get(f"/v1/users/{bob}/endorsements")).json()["endorsements"]
        assert [e["tag"] for e in listed] == ["Python"]

    async def test_self(self, authed_client: AsyncClient):
        response = await authed_client.post("/v1/endorsements", json={"endorseeId": "user-1", "tag": "rust"})
        assert response.status_code == 400

    async def test_unknown_user(self, authed_client: AsyncClient):
        response = await authed_client.post("/v1/endorsements", json={"endorseeId": "ghost", "tag": "rust"})
        assert response.status_code == 404
        assert (await authed_client.get("/v1/users/ghost/endorsements")).status_code == 404
