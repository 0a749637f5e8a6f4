"""Integration tests for training modules and live sessions."""

import pytest
from httpx import AsyncClient

API = "/api/v1"


async def published_module(client: AsyncClient, admin: dict, pieces: int = 2) -> dict:
    created = await client.post(
        f"{API}/training/modules",
        json={
            "title": "Pricing fundamentals",
            "description": "Value-based pricing for consultants",
            "category": "Technical",
            "difficulty": "Beginner",
            "content": [{"type": "video", "title": f"Part {n}"} for n in range(pieces)],
            "target_roles": ["Consultant"],
        },
        headers=admin["headers"],
    )
    assert created.status_code == 201, created.text
    module = created.json()
    await client.put(f"{API}/training/modules/{module['id']}/publish", headers=admin["headers"])
    return module


@pytest.mark.asyncio
class TestModules:

    async def test_only_admin_creates(self, client: AsyncClient, register):
        champion = await register("Knowledge Champion")
        response = await client.post(
            f"{API}/training/modules",
            json={"title": "x", "description": "y", "category": "Technical"},
            headers=champion["headers"],
        )
        assert response.status_code == 403

    async def test_unpublished_hidden(self, client: AsyncClient, register):
        admin = await register("Administrator")
        consultant = await register()
        await client.post(
            f"{API}/training/modules",
            json={"title": "Draft", "description": "Not ready", "category": "Process"},
            headers=admin["headers"],
        )

        response = await client.get(f"{API}/training/modules", headers=consultant["headers"])

        assert response.json() == []

    async def test_list_with_progress(self, client: AsyncClient, register):
        admin = await register("Administrator")
        consultant = await register()
        module = await published_module(client, admin)

        before = await client.get(f"{API}/training/modules", headers=consultant["headers"])
        assert before.json()[0]["module"]["id"] == module["id"]
        assert before.json()[0]["user_progress"] is None

        await client.post(f"{API}/training/modules/{module['id']}/enroll", headers=consultant["headers"])
        after = await client.get(f"{API}/training/modules", headers=consultant["headers"])
        assert after.json()[0]["user_progress"]["status"] == "InProgress"

        other_role = await client.get(
            f"{API}/training/modules", params={"role": "Administrator"}, headers=consultant["headers"]
        )
        assert other_role.json() == []

    async def test_progress_to_completion(self, client: AsyncClient, register):
        admin = await register("Administrator")
        consultant = await register()
        module = await published_module(client, admin)
        url = f"{API}/training/modules/{module['id']}"

        enrolled = await client.post(f"{url}/enroll", headers=consultant["headers"])
        assert enrolled.json()["message"] == "Enrolled successfully"

        again = await client.post(f"{url}/enroll", headers=consultant["headers"])
        assert again.status_code == 400

        half = await client.put(f"{url}/progress", json={"content_index": 0}, headers=consultant["headers"])
        assert half.json()["progress"] == 50
        assert half.json()["status"] == "InProgress"

        repeat = await client.put(f"{url}/progress", json={"content_index": 0}, headers=consultant["headers"])
        assert repeat.json()["progress"] == 50

        done = await client.put(
            f"{url}/progress",
            json={"content_index": 1, "quiz_score": 8, "max_score": 10},
            headers=consultant["headers"],
        )
        assert done.json()["progress"] == 100
        assert done.json()["status"] == "Completed"
        assert done.json()["completed_at"] is not None
        assert done.json()["quiz_scores"][0]["score"] == 8

        detail = await client.get(url, headers=consultant["headers"])
        assert detail.json()["module"]["completions"] == 1

    async def test_invalid_content_index(self, client: AsyncClient, register):
        admin = await register("Administrator")
        consultant = await register()
        module = await published_module(client, admin)
        url = f"{API}/training/modules/{module['id']}"
        await client.post(f"{url}/enroll", headers=consultant["headers"])

        response = await client.put(f"{url}/progress", json={"content_index": 5}, headers=consultant["headers"])

        assert response.status_code == 400

    async def test_progress_requires_enrolment(self, client: AsyncClient, register):
        admin = await register("Administrator")
        consultant = await register()
        module = await published_module(client, admin)

        response = await client.put(
            f"{API}/training/modules/{module['id']}/progress",
            json={"content_index": 0},
            headers=consultant["headers"],
        )

        assert response.status_code == 404

    async def test_rating(self, client: AsyncClient, register):
        admin = await register("Administrator")
        consultant = await register()
        module = await published_module(client, admin, pieces=1)
        url = f"{API}/training/modules/{module['id']}"
        await client.post(f"{url}/enroll", headers=consultant["headers"])

        early = await client.post(f"{url}/rate", json={"rating": 4}, headers=admin["headers"])
        assert early.status_code == 400

        await client.put(f"{url}/progress", json={"content_index": 0}, headers=consultant["headers"])
        rated = await client.post(f"{url}/rate", json={"rating": 4}, headers=consultant["headers"])

        assert rated.json() == {"message": "Rating submitted", "average_rating": 4.0, "total_ratings": 1}

    async def test_my_progress(self, client: AsyncClient, register):
        admin = await register("Administrator")
        consultant = await register()
        first = await published_module(client, admin, pieces=1)
        second = await published_module(client, admin)
        await client.post(f"{API}/training/modules/{first['id']}/enroll", headers=consultant["headers"])
        await client.put(
            f"{API}/training/modules/{first['id']}/progress",
            json={"content_index": 0},
            headers=consultant["headers"],
        )
        await client.post(f"{API}/training/modules/{second['id']}/enroll", headers=consultant["headers"])

        response = await client.get(f"{API}/training/my-progress", headers=consultant["headers"])

        assert response.json()["stats"] == {
            "total": 2,
            "completed": 1,
            "in_progress": 1,
            "not_started": 0,
        }


@pytest.mark.asyncio
class TestSessions:

    async def create_session(self, client: AsyncClient, host: dict, **overrides) -> dict:
        payload = {
            "title": "Pricing clinic",
            "scheduled_date": "2030-05-01T14:00:00Z",
            "duration": 60,
            **overrides,
        }
        response = await client.post(f"{API}/training/sessions", json=payload, headers=host["headers"])
        assert response.status_code == 201, response.text
        return response.json()

    async def test_consultant_cannot_host(self, client: AsyncClient, register):
        consultant = await register()
        response = await client.post(
            f"{API}/training/sessions",
            json={"title": "x", "scheduled_date": "2030-05-01T14:00:00Z", "duration": 30},
            headers=consultant["headers"],
        )
        assert response.status_code == 403

    async def test_register_and_attendance(self, client: AsyncClient, register):
        host = await register("Knowledge Champion")
        attendee = await register()
        session = await self.create_session(client, host)
        url = f"{API}/training/sessions/{session['id']}"

        joined = await client.post(f"{url}/register", headers=attendee["headers"])
        assert joined.json()["attendees"][0]["status"] == "Registered"

        twice = await client.post(f"{url}/register", headers=attendee["headers"])
        assert twice.status_code == 400

        marked = await client.put(
            f"{url}/attendance",
            json={"user_id": attendee["id"], "status": "Attended"},
            headers=host["headers"],
        )
        assert marked.json()["attendees"][0]["status"] == "Attended"

    async def test_full_session(self, client: AsyncClient, register):
        host = await register("Knowledge Champion")
        first = await register()
        second = await register()
        session = await self.create_session(client, host, max_participants=1)
        url = f"{API}/training/sessions/{session['id']}/register"

        await client.post(url, headers=first["headers"])
        response = await client.post(url, headers=second["headers"])

        assert response.status_code == 400
        assert response.json()["message"] == "Session is full"

    async def test_only_instructor_marks_attendance(self, client: AsyncClient, register):
        host = await register("Knowledge Champion")
        other_host = await register("Knowledge Champion")
        attendee = await register()
        session = await self.create_session(client, host)
        await client.post(f"{API}/training/sessions/{session['id']}/register", headers=attendee["headers"])

        response = await client.put(
            f"{API}/training/sessions/{session['id']}/attendance",
            json={"user_id": attendee["id"], "status": "NoShow"},
            headers=other_host["headers"],
        )

        assert response.status_code == 403

    async def test_list_sessions(self, client: AsyncClient, register):
        host = await register("Administrator")
        await self.create_session(client, host, title="Later", scheduled_date="2031-01-01T09:00:00Z")
        await self.create_session(client, host, title="Sooner")

        response = await client.get(f"{API}/training/sessions", headers=host["headers"])

        assert [s["title"] for s in response.json()] == ["Sooner", "Later"]
