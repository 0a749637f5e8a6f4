"""Integration tests for user administration, promotion and dashboards."""

import uuid

import pytest
from httpx import AsyncClient

API = "/api/v1"


@pytest.mark.asyncio
class TestUserAdministration:

    async def test_list_and_filter(self, client: AsyncClient, register):
        admin = await register("Administrator")
        await register("Knowledge Champion", username="champ_one")
        await register()

        everyone = await client.get(f"{API}/admin/users", headers=admin["headers"])
        champions = await client.get(
            f"{API}/admin/users", params={"role": "Knowledge Champion"}, headers=admin["headers"]
        )
        searched = await client.get(
            f"{API}/admin/users", params={"search": "CHAMP_"}, headers=admin["headers"]
        )

        assert everyone.json()["pagination"]["total"] == 3
        assert [u["username"] for u in champions.json()["users"]] == ["champ_one"]
        assert searched.json()["pagination"]["total"] == 1

    async def test_governance_cannot_manage_users(self, client: AsyncClient, register):
        governance = await register("Governance Council")
        response = await client.get(f"{API}/admin/users", headers=governance["headers"])
        assert response.status_code == 403

    async def test_create_user(self, client: AsyncClient, register):
        admin = await register("Administrator")

        response = await client.post(
            f"{API}/admin/users",
            json={
                "username": "new_pm",
                "email": "new_pm@acme-consulting.com",
                "password": "Password123",
                "role": "Project Manager",
            },
            headers=admin["headers"],
        )

        assert response.status_code == 201
        assert response.json()["role"] == "Project Manager"
        assert response.json()["region"] == "Global"

        login = await client.post(
            f"{API}/auth/login",
            json={"email": "new_pm@acme-consulting.com", "password": "Password123"},
        )
        assert login.status_code == 200

    async def test_update_and_change_role(self, client: AsyncClient, register):
        admin = await register("Administrator")
        target = await register()

        updated = await client.put(
            f"{API}/admin/users/{target['id']}",
            json={"region": "APAC", "skills": ["pricing"]},
            headers=admin["headers"],
        )
        assert updated.json()["region"] == "APAC"
        assert updated.json()["skills"] == ["pricing"]
        assert updated.json()["role"] == "Consultant"

        promoted = await client.put(
            f"{API}/admin/users/{target['id']}/role",
            json={"role": "Knowledge Champion"},
            headers=admin["headers"],
        )
        assert promoted.json()["role"] == "Knowledge Champion"

        invalid = await client.put(
            f"{API}/admin/users/{target['id']}/role",
            json={"role": "Overlord"},
            headers=admin["headers"],
        )
        assert invalid.status_code == 400

    async def test_delete_deactivates(self, client: AsyncClient, register):
        admin = await register("Administrator")
        target = await register()

        response = await client.delete(f"{API}/admin/users/{target['id']}", headers=admin["headers"])
        assert response.json()["message"] == "User deleted successfully"

        profile = await client.get(f"{API}/admin/users/{target['id']}", headers=admin["headers"])
        assert profile.json()["is_active"] is False

        login = await client.post(
            f"{API}/auth/login",
            json={"email": target["email"], "password": target["password"]},
        )
        assert login.status_code == 401
        assert login.json()["message"] == "Account is disabled"

        refresh = await client.post(
            f"{API}/auth/refresh", json={"refresh_token": target["refresh_token"]}
        )
        assert refresh.status_code == 401

    async def test_cannot_delete_self(self, client: AsyncClient, register):
        admin = await register("Administrator")
        response = await client.delete(f"{API}/admin/users/{admin['id']}", headers=admin["headers"])
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot delete your own account"

    async def test_unknown_user(self, client: AsyncClient, register):
        admin = await register("Administrator")
        response = await client.get(f"{API}/admin/users/{uuid.uuid4()}", headers=admin["headers"])
        assert response.status_code == 404

    async def test_system_stats(self, client: AsyncClient, register, upload):
        admin = await register("Administrator")
        governance = await register("Governance Council")
        await upload(admin["headers"])

        response = await client.get(f"{API}/admin/stats", headers=governance["headers"])

        body = response.json()
        assert body["users"]["total"] == 2
        assert body["users"]["by_role"] == {"Administrator": 1, "Governance Council": 1}
        assert body["knowledge"] == {"total": 1, "approved": 0, "rejected": 0, "pending": 1}
        assert body["validations"]["pending"] == 1
        assert body["recent_activity"]


@pytest.mark.asyncio
class TestPromotion:

    async def test_manager_evaluates(self, client: AsyncClient, register):
        manager = await register("Project Manager")
        consultant = await register()

        response = await client.put(
            f"{API}/manager/users/{consultant['id']}/evaluate",
            json={"status": "Recommended", "notes": "Strong quarter"},
            headers=manager["headers"],
        )

        body = response.json()
        assert response.status_code == 200
        assert body["promotion_status"] == "Recommended"
        assert body["promotion_notes"] == "Strong quarter"
        assert body["last_evaluation_date"] is not None

    async def test_notes_only_keeps_status(self, client: AsyncClient, register):
        manager = await register("Project Manager")
        consultant = await register()

        response = await client.put(
            f"{API}/manager/users/{consultant['id']}/evaluate",
            json={"notes": "Check again next month"},
            headers=manager["headers"],
        )

        assert response.json()["promotion_status"] == "None"

    async def test_invalid_status(self, client: AsyncClient, register):
        manager = await register("Project Manager")
        consultant = await register()

        response = await client.put(
            f"{API}/manager/users/{consultant['id']}/evaluate",
            json={"status": "Fast Track"},
            headers=manager["headers"],
        )

        assert response.status_code == 400

    async def test_champion_cannot_evaluate(self, client: AsyncClient, register):
        champion = await register("Knowledge Champion")
        consultant = await register()

        response = await client.put(
            f"{API}/manager/users/{consultant['id']}/evaluate",
            json={"status": "Recommended"},
            headers=champion["headers"],
        )

        assert response.status_code == 403


@pytest.mark.asyncio
class TestDashboards:

    async def test_consultant_stats(self, client: AsyncClient, register, upload):
        consultant = await register()
        await upload(consultant["headers"])

        response = await client.get(f"{API}/dashboard/stats", headers=consultant["headers"])

        body = response.json()
        assert body["my_uploads"] == 1
        assert body["my_pending"] == 1
        assert body["total_knowledge"] == 0
        assert body["pending_approvals"] is None

    async def test_champion_stats(self, client: AsyncClient, register, upload):
        champion = await register("Knowledge Champion")
        author = await register()
        approved = await upload(author["headers"])
        await upload(author["headers"])
        await client.put(
            f"{API}/knowledge/{approved['id']}/approve",
            json={"status": "Approved"},
            headers=champion["headers"],
        )

        response = await client.get(f"{API}/dashboard/stats", headers=champion["headers"])

        body = response.json()
        assert body["total_knowledge"] == 1
        assert body["pending_approvals"] == 1
        assert body["approved_this_week"] == 1
        assert [i["id"] for i in body["recent_uploads"]] == [approved["id"]]
        assert body["my_uploads"] is None

    async def test_admin_stats_health(self, client: AsyncClient, register):
        admin = await register("Administrator")

        response = await client.get(f"{API}/dashboard/stats", headers=admin["headers"])

        assert response.json()["total_users"] == 1
        assert response.json()["system_health"] == "Healthy"

    async def test_manager_dashboard(self, client: AsyncClient, register, upload):
        manager = await register("Project Manager")
        champion = await register("Knowledge Champion")
        author = await register(skills=["Pricing"])
        pricing = await upload(author["headers"], category="Pricing")
        operations = await upload(author["headers"], category="Operations")
        for item in (pricing, operations):
            await client.put(
                f"{API}/knowledge/{item['id']}/approve",
                json={"status": "Approved"},
                headers=champion["headers"],
            )

        response = await client.get(f"{API}/dashboard/manager", headers=manager["headers"])

        body = response.json()
        assert body["team_members"] == 1
        assert body["active_contributors"] == 1
        assert body["total_uploads"] == 2
        assert body["skill_gaps"] == ["Operations"]
        assert body["promotion_pipeline"] == {"None": 1}

    async def test_governance_logs(self, client: AsyncClient, register):
        governance = await register("Governance Council")
        consultant = await register()

        allowed = await client.get(f"{API}/dashboard/governance", headers=governance["headers"])
        denied = await client.get(f"{API}/dashboard/governance", headers=consultant["headers"])

        assert allowed.status_code == 200
        assert allowed.json()["logs"]
        assert denied.status_code == 403
