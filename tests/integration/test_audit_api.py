"""Integration tests for the audit trail API."""

import uuid

import pytest
from httpx import AsyncClient

API = "/api/v1"


@pytest.mark.asyncio
class TestContentLogs:

    async def test_item_trail(self, client: AsyncClient, register, upload):
        author = await register()
        champion = await register("Knowledge Champion")
        governance = await register("Governance Council")
        item = await upload(author["headers"])
        await client.put(
            f"{API}/knowledge/{item['id']}/approve",
            json={"status": "Approved"},
            headers=champion["headers"],
        )

        response = await client.get(f"{API}/audit/content/{item['id']}", headers=governance["headers"])

        body = response.json()
        assert response.status_code == 200
        assert body["item"] == {"id": item["id"], "title": item["title"]}
        actions = [entry["action"] for entry in body["audit_trail"]]
        assert set(actions) == {"KNOWLEDGE_UPLOAD", "KNOWLEDGE_APPROVED"}
        approved = next(e for e in body["audit_trail"] if e["action"] == "KNOWLEDGE_APPROVED")
        assert approved["actor"]["id"] == champion["id"]
        assert approved["details"]["status"] == "Approved"

    async def test_trail_for_unknown_item(self, client: AsyncClient, register):
        admin = await register("Administrator")
        response = await client.get(f"{API}/audit/content/{uuid.uuid4()}", headers=admin["headers"])
        assert response.status_code == 404

    async def test_filter_by_action(self, client: AsyncClient, register, upload):
        admin = await register("Administrator")
        first = await upload(admin["headers"])
        await upload(admin["headers"])
        await client.put(f"{API}/knowledge/{first['id']}/archive", headers=admin["headers"])

        uploads = await client.get(
            f"{API}/audit/content", params={"action": "upload"}, headers=admin["headers"]
        )
        archived = await client.get(
            f"{API}/audit/content", params={"action": "KNOWLEDGE_ARCHIVED"}, headers=admin["headers"]
        )

        assert uploads.json()["pagination"]["total"] == 2
        assert [log["target_id"] for log in archived.json()["logs"]] == [first["id"]]

    async def test_consultant_forbidden(self, client: AsyncClient, register):
        consultant = await register()
        response = await client.get(f"{API}/audit/content", headers=consultant["headers"])
        assert response.status_code == 403


@pytest.mark.asyncio
class TestSummaryAndManualEntries:

    async def test_summary(self, client: AsyncClient, register, upload):
        admin = await register("Administrator")
        await upload(admin["headers"])
        await client.put(
            f"{API}/config/validation.maxPendingDays",
            json={"value": 5},
            headers=admin["headers"],
        )

        response = await client.get(
            f"{API}/audit/summary", params={"period": "1d"}, headers=admin["headers"]
        )

        body = response.json()
        assert body["period"] == "1d"
        assert body["total_actions"] >= 4
        by_type = {row["action"]: row["count"] for row in body["actions_by_type"]}
        assert by_type["KNOWLEDGE_UPLOAD"] == 1
        assert by_type["USER_REGISTER"] == 1
        assert body["top_actors"][0]["user"]["id"] == admin["id"]
        assert [e["action"] for e in body["recent_critical_actions"]] == ["CONFIG_UPDATED"]

    async def test_invalid_period(self, client: AsyncClient, register):
        admin = await register("Administrator")
        response = await client.get(
            f"{API}/audit/summary", params={"period": "90d"}, headers=admin["headers"]
        )
        assert response.status_code == 400

    async def test_manual_entry(self, client: AsyncClient, register):
        admin = await register("Administrator")

        response = await client.post(
            f"{API}/audit",
            json={"action": "POLICY_REVIEW", "details": {"note": "quarterly"}},
            headers=admin["headers"],
        )

        assert response.status_code == 201
        assert response.json()["action"] == "POLICY_REVIEW"
        assert response.json()["actor"]["id"] == admin["id"]

    async def test_manual_entry_admin_only(self, client: AsyncClient, register):
        governance = await register("Governance Council")
        response = await client.post(
            f"{API}/audit", json={"action": "POLICY_REVIEW"}, headers=governance["headers"]
        )
        assert response.status_code == 403
