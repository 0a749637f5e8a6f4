"""Integration tests for the knowledge item API."""

import uuid

import pytest
from httpx import AsyncClient

API = "/api/v1"


def words(count: int = 12) -> str:
    return " ".join(uuid.uuid4().hex for _ in range(count))


@pytest.mark.asyncio
class TestUpload:

    async def test_upload_creates_pending_item(self, client: AsyncClient, register, upload):
        author = await register()

        item = await upload(author["headers"], category="Pricing", tags=["retail", "pricing"])

        assert item["status"] == "Pending"
        assert item["version"] == 1
        assert item["author"]["id"] == author["id"]
        assert item["tags"] == ["retail", "pricing"]
        assert item["region"] == "EMEA"  # taken from the author
        assert item["approvals"] == []

    async def test_upload_opens_validation(self, client: AsyncClient, register, upload):
        champion = await register("Knowledge Champion")
        author = await register()
        item = await upload(author["headers"])

        response = await client.get(f"{API}/validations", headers=champion["headers"])

        assert response.status_code == 200
        validations = [v for v in response.json() if v["knowledge_item"]["id"] == item["id"]]
        assert len(validations) == 1
        validation = validations[0]
        assert validation["status"] == "Pending"
        assert validation["assigned_reviewer"]["id"] == champion["id"]
        assert validation["history"][0]["action"] == "Assigned"
        assert validation["due_date"] is not None

    async def test_upload_scores_author(self, client: AsyncClient, register, upload):
        author = await register()
        await upload(author["headers"])

        response = await client.get(f"{API}/leaderboard/me", headers=author["headers"])

        assert response.json()["uploads"] == 1
        assert response.json()["total_score"] == 10

    async def test_missing_description(self, client: AsyncClient, register):
        author = await register()

        response = await client.post(
            f"{API}/knowledge",
            json={"title": "Market sizing", "description": "", "category": "Strategy"},
            headers=author["headers"],
        )

        assert response.status_code == 400
        assert "Description is missing" in response.json()["errors"]

    async def test_missing_category(self, client: AsyncClient, register):
        author = await register()

        response = await client.post(
            f"{API}/knowledge",
            json={"title": "Market sizing", "description": words(), "tags": ["x"]},
            headers=author["headers"],
        )

        assert response.status_code == 400
        assert response.json()["errors"] == ["Missing required metadata: category"]

    async def test_tags_derived_from_description(self, client: AsyncClient, register, upload):
        author = await register()

        item = await upload(
            author["headers"],
            description=f"benchmarking benchmarking procurement {words(3)}",
            tags=[],
        )

        assert item["tags"][0] == "benchmarking"
        assert "procurement" in item["keywords"]

    async def test_policy_violation(self, client: AsyncClient, register):
        author = await register()

        response = await client.post(
            f"{API}/knowledge",
            json={
                "title": "Confidential client pricing",
                "description": words(),
                "category": "Pricing",
                "tags": ["pricing"],
            },
            headers=author["headers"],
        )

        assert response.status_code == 403
        body = response.json()
        assert body["message"] == "Policy violation"
        assert body["violations"] == ["Title contains forbidden keyword: Confidential"]

    async def test_duplicate_rejected(self, client: AsyncClient, register, upload):
        author = await register()
        description = words()
        original = await upload(author["headers"], description=description)

        response = await client.post(
            f"{API}/knowledge",
            json={
                "title": "Copy",
                "description": description,
                "category": "Strategy",
                "tags": ["pricing"],
            },
            headers=author["headers"],
        )

        assert response.status_code == 409
        body = response.json()
        assert body["message"] == "Duplicate content detected"
        assert body["similarity_score"] == 1.0
        assert body["similar_items"][0]["id"] == original["id"]

    async def test_threshold_follows_configuration(self, client: AsyncClient, register, upload):
        admin = await register("Administrator")
        author = await register()
        shared = words(6)
        await upload(author["headers"], description=f"{shared} {words(2)}")

        # 6 shared of 10 distinct words = 0.6, below the default threshold
        second = await client.post(
            f"{API}/knowledge",
            json={"title": "Near", "description": f"{shared} {words(2)}", "category": "S", "tags": ["t"]},
            headers=author["headers"],
        )
        assert second.status_code == 201

        await client.put(
            f"{API}/config/ai.similarityThreshold",
            json={"value": 0.5},
            headers=admin["headers"],
        )
        third = await client.post(
            f"{API}/knowledge",
            json={"title": "Nearer", "description": f"{shared} {words(2)}", "category": "S", "tags": ["t"]},
            headers=author["headers"],
        )
        assert third.status_code == 409

    async def test_unauthenticated(self, client: AsyncClient):
        response = await client.post(f"{API}/knowledge", json={"title": "x"})
        assert response.status_code == 401


@pytest.mark.asyncio
class TestBrowse:

    async def test_consultant_visibility(self, client: AsyncClient, register, upload):
        me = await register()
        other = await register()
        champion = await register("Knowledge Champion")
        mine = await upload(me["headers"])
        theirs_pending = await upload(other["headers"])
        theirs_approved = await upload(other["headers"])
        await client.put(
            f"{API}/knowledge/{theirs_approved['id']}/approve",
            json={"status": "Approved"},
            headers=champion["headers"],
        )

        response = await client.get(f"{API}/knowledge", headers=me["headers"])

        ids = {item["id"] for item in response.json()["items"]}
        assert mine["id"] in ids
        assert theirs_approved["id"] in ids
        assert theirs_pending["id"] not in ids

    async def test_reviewer_sees_every_status(self, client: AsyncClient, register, upload):
        author = await register()
        champion = await register("Knowledge Champion")
        await upload(author["headers"])
        await upload(author["headers"])

        response = await client.get(f"{API}/knowledge", headers=champion["headers"])

        assert response.json()["pagination"]["total"] == 2

    async def test_manager_sees_approved_only(self, client: AsyncClient, register, upload):
        author = await register()
        manager = await register("Project Manager")
        await upload(author["headers"])

        response = await client.get(f"{API}/knowledge", headers=manager["headers"])

        assert response.json()["items"] == []

    async def test_search_and_pagination(self, client: AsyncClient, register, upload):
        author = await register()
        await upload(author["headers"], title="Supply chain diagnostic")
        await upload(author["headers"], title="Pricing diagnostic")
        await upload(author["headers"], title="Org design")

        found = await client.get(
            f"{API}/knowledge", params={"search": "DIAGNOSTIC"}, headers=author["headers"]
        )
        assert found.json()["pagination"]["total"] == 2

        paged = await client.get(
            f"{API}/knowledge", params={"page": 2, "limit": 2}, headers=author["headers"]
        )
        body = paged.json()
        assert len(body["items"]) == 1
        assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}

    async def test_get_counts_views(self, client: AsyncClient, register, upload):
        author = await register()
        reader = await register("Knowledge Champion")
        item = await upload(author["headers"])

        await client.get(f"{API}/knowledge/{item['id']}", headers=reader["headers"])
        response = await client.get(f"{API}/knowledge/{item['id']}", headers=reader["headers"])

        assert response.json()["views"] == 2
        stats = await client.get(f"{API}/leaderboard/me", headers=author["headers"])
        assert stats.json()["views"] == 2

    async def test_own_views_not_credited(self, client: AsyncClient, register, upload):
        author = await register()
        item = await upload(author["headers"])

        response = await client.get(f"{API}/knowledge/{item['id']}", headers=author["headers"])

        assert response.json()["views"] == 1
        stats = await client.get(f"{API}/leaderboard/me", headers=author["headers"])
        assert stats.json()["views"] == 0
        assert stats.json()["total_score"] == 10

    async def test_get_unknown_item(self, client: AsyncClient, register):
        user = await register()
        response = await client.get(f"{API}/knowledge/{uuid.uuid4()}", headers=user["headers"])
        assert response.status_code == 404
        assert response.json()["message"] == "Knowledge item not found"


@pytest.mark.asyncio
class TestEdit:

    async def test_only_author_can_edit(self, client: AsyncClient, register, upload):
        author = await register()
        stranger = await register("Administrator")
        item = await upload(author["headers"])

        response = await client.put(
            f"{API}/knowledge/{item['id']}",
            json={"title": "Hijacked"},
            headers=stranger["headers"],
        )

        assert response.status_code == 403

    async def test_edit_bumps_version(self, client: AsyncClient, register, upload):
        author = await register()
        item = await upload(author["headers"])

        response = await client.put(
            f"{API}/knowledge/{item['id']}",
            json={"title": "Revised title", "tags": ["revised"]},
            headers=author["headers"],
        )

        body = response.json()
        assert response.status_code == 200
        assert body["title"] == "Revised title"
        assert body["tags"] == ["revised"]
        assert body["version"] == 2
        assert body["status"] == "Pending"

    async def test_edit_approved_item_returns_to_review(self, client: AsyncClient, register, upload):
        author = await register()
        champion = await register("Knowledge Champion")
        item = await upload(author["headers"])
        await client.put(
            f"{API}/knowledge/{item['id']}/approve",
            json={"status": "Approved"},
            headers=champion["headers"],
        )

        response = await client.put(
            f"{API}/knowledge/{item['id']}",
            json={"description": words()},
            headers=author["headers"],
        )

        assert response.json()["status"] == "Pending"
        assert response.json()["version"] == 2

        validations = await client.get(
            f"{API}/validations", params={"status": "Pending"}, headers=champion["headers"]
        )
        reopened = [v for v in validations.json() if v["knowledge_item"]["id"] == item["id"]]
        assert len(reopened) == 1
        assert reopened[0]["completed_at"] is None
        assert reopened[0]["history"][-1]["comment"] == "Content updated (v2) - requires re-review"

    async def test_edit_archived_item_returns_to_review(self, client: AsyncClient, register, upload):
        author = await register()
        champion = await register("Knowledge Champion")
        item = await upload(author["headers"])
        await client.put(f"{API}/knowledge/{item['id']}/archive", headers=champion["headers"])

        response = await client.put(
            f"{API}/knowledge/{item['id']}",
            json={"title": "Revived playbook"},
            headers=author["headers"],
        )

        assert response.json()["status"] == "Pending"
        assert response.json()["version"] == 2

        validations = await client.get(
            f"{API}/validations", params={"status": "Pending"}, headers=champion["headers"]
        )
        reopened = [v for v in validations.json() if v["knowledge_item"]["id"] == item["id"]]
        assert len(reopened) == 1
        assert reopened[0]["history"][-1]["action"] == "Assigned"
        assert reopened[0]["history"][-1]["comment"] == "Content updated (v2) - requires re-review"

    async def test_edit_cannot_blank_title(self, client: AsyncClient, register, upload):
        author = await register()
        item = await upload(author["headers"])

        response = await client.put(
            f"{API}/knowledge/{item['id']}",
            json={"title": "  "},
            headers=author["headers"],
        )

        assert response.status_code == 400
        assert "Title is missing" in response.json()["errors"]

    async def test_attachments_replaced(self, client: AsyncClient, register, upload):
        author = await register()
        item = await upload(
            author["headers"],
            attachments=[{"name": "deck.pdf", "url": "https://files.local/deck.pdf"}],
        )
        assert len(item["attachments"]) == 1

        response = await client.put(
            f"{API}/knowledge/{item['id']}",
            json={"clear_attachments": True},
            headers=author["headers"],
        )

        assert response.json()["attachments"] == []


@pytest.mark.asyncio
class TestReview:

    async def test_champion_approves(self, client: AsyncClient, register, upload):
        author = await register()
        champion = await register("Knowledge Champion")
        item = await upload(author["headers"])

        response = await client.put(
            f"{API}/knowledge/{item['id']}/approve",
            json={"status": "Approved", "comment": "Solid"},
            headers=champion["headers"],
        )

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "Approved"
        assert body["approvals"][0]["approver_id"] == champion["id"]
        assert body["approvals"][0]["status"] == "Approved"

        reviewer_stats = await client.get(f"{API}/leaderboard/me", headers=champion["headers"])
        author_stats = await client.get(f"{API}/leaderboard/me", headers=author["headers"])
        assert reviewer_stats.json()["validations"] == 1
        assert author_stats.json()["approvals"] == 1

    async def test_request_changes(self, client: AsyncClient, register, upload):
        author = await register()
        champion = await register("Knowledge Champion")
        item = await upload(author["headers"])

        response = await client.put(
            f"{API}/knowledge/{item['id']}/approve",
            json={"status": "Revision", "comment": "Add sources"},
            headers=champion["headers"],
        )

        assert response.json()["status"] == "Revision"
        assert response.json()["approvals"][0]["status"] == "Request Changes"

    async def test_invalid_decision(self, client: AsyncClient, register, upload):
        author = await register()
        champion = await register("Knowledge Champion")
        item = await upload(author["headers"])

        response = await client.put(
            f"{API}/knowledge/{item['id']}/approve",
            json={"status": "Maybe"},
            headers=champion["headers"],
        )

        assert response.status_code == 400

    async def test_consultant_cannot_review(self, client: AsyncClient, register, upload):
        author = await register()
        item = await upload(author["headers"])

        response = await client.put(
            f"{API}/knowledge/{item['id']}/approve",
            json={"status": "Approved"},
            headers=author["headers"],
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized: role 'Consultant' is not permitted"

    async def test_quality_flag_and_mark_safe(self, client: AsyncClient, register, upload):
        author = await register()
        champion = await register("Knowledge Champion")
        item = await upload(author["headers"])

        flagged = await client.put(
            f"{API}/knowledge/{item['id']}/quality",
            json={"quality_flag": True, "quality_score": 40, "quality_issues": ["Outdated"]},
            headers=champion["headers"],
        )
        assert flagged.json()["quality_flag"] is True
        assert flagged.json()["quality_score"] == 40

        listed = await client.get(
            f"{API}/knowledge", params={"flagged": "true"}, headers=champion["headers"]
        )
        assert [i["id"] for i in listed.json()["items"]] == [item["id"]]

        safe = await client.put(
            f"{API}/knowledge/{item['id']}/quality",
            json={"mark_safe": True},
            headers=champion["headers"],
        )
        assert safe.json()["quality_flag"] is False
        assert safe.json()["quality_score"] == 100
        assert safe.json()["quality_issues"] == []

    async def test_archive(self, client: AsyncClient, register, upload):
        author = await register()
        admin = await register("Administrator")
        item = await upload(author["headers"])

        response = await client.put(
            f"{API}/knowledge/{item['id']}/archive", headers=admin["headers"]
        )

        assert response.json()["status"] == "Archived"
