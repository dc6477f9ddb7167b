"""Referral endpoint tests: eligibility gate and lifecycle."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient


def _weeks_ago(n: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(weeks=n)


def _weeks_ahead(n: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(weeks=n)


@pytest.fixture
def as_user(token_factory):
    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token_factory(user_id)}"}

    return _headers


@pytest_asyncio.fixture
async def people(authed_client: AsyncClient, make_user) -> None:
    await make_user("user-2", "bob")
    await make_user("outsider", "eve")


@pytest_asyncio.fixture
async def eligible_cohort(people, make_cohort) -> str:
    """Four planned weeks, three already held: 75%."""
    cohort = await make_cohort(
        "user-1",
        ["user-2"],
        weeks=4,
        session_starts=[_weeks_ago(3), _weeks_ago(2), _weeks_ago(1), _weeks_ahead(1)],
    )
    return cohort.id


@pytest_asyncio.fixture
async def early_cohort(people, make_cohort) -> str:
    """Five planned weeks, three held: 60%."""
    cohort = await make_cohort(
        "user-1",
        ["user-2"],
        weeks=5,
        session_starts=[_weeks_ago(3), _weeks_ago(2), _weeks_ago(1), _weeks_ahead(1), _weeks_ahead(2)],
    )
    return cohort.id


def _referral(cohort_id: str, to_user: str = "user-2", **extra) -> dict:
    return {"toUserId": to_user, "cohortId": cohort_id, "context": "Great Rust mentor", **extra}


class TestCreateReferral:
    async def test_eligible_cohort(self, authed_client: AsyncClient, eligible_cohort: str):
        response = await authed_client.post("/v1/referrals", json=_referral(eligible_cohort))
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "draft"
        assert data["fromUserId"] == "user-1"
        assert data["toUserId"] == "user-2"

    async def test_sixty_percent_rejected(self, authed_client: AsyncClient, early_cohort: str):
        response = await authed_client.post("/v1/referrals", json=_referral(early_cohort))
        assert response.status_code == 403
        data = response.json()
        assert data["code"] == "FORBIDDEN"
        assert "75%" in data["message"]
        assert "60%" in data["message"]
        assert data["details"] == {"threshold": 75, "completionPercentage": 60}

    async def test_self_referral(self, authed_client: AsyncClient, eligible_cohort: str):
        response = await authed_client.post("/v1/referrals", json=_referral(eligible_cohort, to_user="user-1"))
        assert response.status_code == 400
        assert response.json()["message"] == "You cannot refer yourself"

    async def test_recipient_not_member(self, authed_client: AsyncClient, eligible_cohort: str):
        response = await authed_client.post("/v1/referrals", json=_referral(eligible_cohort, to_user="outsider"))
        assert response.status_code == 403
        assert response.json()["message"] == "Both users must be members of the cohort"

    async def test_sender_not_member(self, authed_client: AsyncClient, eligible_cohort: str, as_user):
        response = await authed_client.post(
            "/v1/referrals", json=_referral(eligible_cohort), headers=as_user("outsider")
        )
        assert response.status_code == 403

    async def test_zero_planned_sessions_never_eligible(self, authed_client: AsyncClient, people, make_cohort):
        cohort = await make_cohort("user-1", ["user-2"], weeks=0)
        response = await authed_client.post("/v1/referrals", json=_referral(cohort.id))
        assert response.status_code == 403
        assert response.json()["details"]["completionPercentage"] == 0

    async def test_unknown_cohort(self, authed_client: AsyncClient, people):
        response = await authed_client.post("/v1/referrals", json=_referral("missing"))
        assert response.status_code == 404

    async def test_context_required(self, authed_client: AsyncClient, eligible_cohort: str):
        response = await authed_client.post("/v1/referrals", json=_referral(eligible_cohort, context=""))
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_created_as_sent_notifies(self, authed_client: AsyncClient, eligible_cohort: str, as_user):
        response = await authed_client.post("/v1/referrals", json=_referral(eligible_cohort, status="sent"))
        assert response.json()["status"] == "sent"
        inbox = (await authed_client.get("/v1/notifications", headers=as_user("user-2"))).json()
        assert [n["kind"] for n in inbox["notifications"]] == ["referral_received"]


class TestLifecycle:
    async def _draft(self, client: AsyncClient, cohort_id: str) -> str:
        response = await client.post("/v1/referrals", json=_referral(cohort_id))
        return response.json()["id"]

    async def test_send_then_accept(self, authed_client: AsyncClient, eligible_cohort: str, as_user):
        referral_id = await self._draft(authed_client, eligible_cohort)

        sent = await authed_client.put(f"/v1/referrals/{referral_id}/send")
        assert sent.status_code == 200
        assert sent.json()["status"] == "sent"

        accepted = await authed_client.put(f"/v1/referrals/{referral_id}/accept", headers=as_user("user-2"))
        assert accepted.status_code == 200
        assert accepted.json()["status"] == "accepted"

        inbox = (await authed_client.get("/v1/notifications")).json()
        assert [n["kind"] for n in inbox["notifications"]] == ["referral_accepted"]

    async def test_decline(self, authed_client: AsyncClient, eligible_cohort: str, as_user):
        referral_id = await self._draft(authed_client, eligible_cohort)
        await authed_client.put(f"/v1/referrals/{referral_id}/send")
        response = await authed_client.put(f"/v1/referrals/{referral_id}/decline", headers=as_user("user-2"))
        assert response.json()["status"] == "declined"

    async def test_cannot_accept_draft(self, authed_client: AsyncClient, eligible_cohort: str, as_user):
        referral_id = await self._draft(authed_client, eligible_cohort)
        response = await authed_client.put(f"/v1/referrals/{referral_id}/accept", headers=as_user("user-2"))
        assert response.status_code == 400

    async def test_cannot_send_twice(self, authed_client: AsyncClient, eligible_cohort: str):
        referral_id = await self._draft(authed_client, eligible_cohort)
        await authed_client.put(f"/v1/referrals/{referral_id}/send")
        response = await authed_client.put(f"/v1/referrals/{referral_id}/send")
        assert response.status_code == 400

    async def test_only_sender_sends(self, authed_client: AsyncClient, eligible_cohort: str, as_user):
        referral_id = await self._draft(authed_client, eligible_cohort)
        response = await authed_client.put(f"/v1/referrals/{referral_id}/send", headers=as_user("user-2"))
        assert response.status_code == 403

    async def test_only_recipient_answers(self, authed_client: AsyncClient, eligible_cohort: str):
        referral_id = await self._draft(authed_client, eligible_cohort)
        await authed_client.put(f"/v1/referrals/{referral_id}/send")
        response = await authed_client.put(f"/v1/referrals/{referral_id}/accept")
        assert response.status_code == 403

    async def test_unknown_referral(self, authed_client: AsyncClient):
        response = await authed_client.put("/v1/referrals/missing/send")
        assert response.status_code == 404

    async def test_listing(self, authed_client: AsyncClient, eligible_cohort: str, as_user):
        first = await self._draft(authed_client, eligible_cohort)
        await self._draft(authed_client, eligible_cohort)
        await authed_client.put(f"/v1/referrals/{first}/send")
        await authed_client.put(f"/v1/referrals/{first}/accept", headers=as_user("user-2"))

        mine = (await authed_client.get("/v1/referrals")).json()
        assert len(mine["sent"]) == 2
        assert mine["received"] == []
        assert mine["pending"] == 1
        assert mine["completed"] == 1
        assert mine["sent"][0]["toUser"]["handle"] == "bob"

        theirs = (await authed_client.get("/v1/referrals", headers=as_user("user-2"))).json()
        assert len(theirs["received"]) == 2


class TestEligibilityEndpoint:
    async def test_stats(self, authed_client: AsyncClient, early_cohort: str):
        response = await authed_client.get(f"/v1/cohorts/{early_cohort}/referral-eligibility")
        assert response.status_code == 200
        assert response.json() == {
            "cohortId": early_cohort,
            "cohortTitle": "Rust study group",
            "sessionCompletionPercentage": 60,
            "isEligible": False,
            "totalMembers": 2,
            "sessionsCompleted": 3,
            "totalSessions": 5,
            "threshold": 75,
        }

    async def test_eligible(self, authed_client: AsyncClient, eligible_cohort: str):
        data = (await authed_client.get(f"/v1/cohorts/{eligible_cohort}/referral-eligibility")).json()
        assert data["isEligible"] is True
        assert data["sessionCompletionPercentage"] == 75

    async def test_members_only(self, authed_client: AsyncClient, eligible_cohort: str, as_user):
        response = await authed_client.get(
            f"/v1/cohorts/{eligible_cohort}/referral-eligibility", headers=as_user("outsider")
        )
        assert response.status_code == 403
