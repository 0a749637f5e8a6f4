"""Integration tests for recommendations, trending items and interactions."""

import uuid

import pytest
from httpx import AsyncClient

API = "/api/v1"


@pytest.fixture
def approved_item(client: AsyncClient, register, upload):
    """Upload an item as a fresh author and approve it."""
    state = {}

    async def _approved_item(**fields) -> dict:
        if "champion" not in state:
            state["champion"] = await register("Knowledge Champion")
        author = await register()
        item = await upload(author["headers"], **fields)
        response = await client.put(
            f"{API}/knowledge/{item['id']}/approve",
            json={"status": "Approved"},
            headers=state["champion"]["headers"],
        )
        assert response.status_code == 200, response.text
        return {**response.json(), "author_headers": author["headers"]}

    return _approved_item


@pytest.mark.asyncio
class TestRecommendations:

    async def test_matches_skills(self, client: AsyncClient, register, approved_item):
        matching = await approved_item(tags=["pricing"])
        await approved_item(tags=["logistics"], category="Operations")
        reader = await register(skills=["pricing"])

        response = await client.get(f"{API}/recommendations", headers=reader["headers"])

        body = response.json()
        assert body["count"] == 1
        recommendation = body["recommendations"][0]
        assert recommendation["item"]["id"] == matching["id"]
        assert recommendation["reason"] == "Matches your skills: pricing"
        # base, same region, one matching tag
        assert recommendation["score"] == 0.8

    async def test_category_match(self, client: AsyncClient, register, approved_item):
        item = await approved_item(tags=["logistics"], category="Operations")
        reader = await register(skills=["operations"])

        response = await client.get(f"{API}/recommendations", headers=reader["headers"])

        recommendation = response.json()["recommendations"][0]
        assert recommendation["item"]["id"] == item["id"]
        assert recommendation["reason"] == "Matches your skills: Operations"

    async def test_popular_fallback(self, client: AsyncClient, register, approved_item):
        await approved_item()
        reader = await register(skills=["tax"])

        response = await client.get(f"{API}/recommendations", headers=reader["headers"])

        recommendation = response.json()["recommendations"][0]
        assert recommendation["reason"] == "Popular in your network"
        assert recommendation["score"] == 0.5

    async def test_excludes_own_and_unapproved(self, client: AsyncClient, register, upload):
        reader = await register(skills=["pricing"])
        other = await register()
        await upload(reader["headers"])
        await upload(other["headers"])

        response = await client.get(f"{API}/recommendations", headers=reader["headers"])

        assert response.json() == {"count": 0, "recommendations": []}


@pytest.mark.asyncio
class TestTrending:

    async def test_most_viewed_first(self, client: AsyncClient, register, approved_item):
        quiet = await approved_item()
        popular = await approved_item()
        reader = await register()
        for _ in range(2):
            await client.post(
                f"{API}/recommendations/interaction",
                json={"item_id": popular["id"], "interaction_type": "view"},
                headers=reader["headers"],
            )

        response = await client.get(f"{API}/recommendations/trending", headers=reader["headers"])

        items = response.json()
        assert [item["id"] for item in items] == [popular["id"], quiet["id"]]
        assert items[0]["views"] == 2

    async def test_invalid_period(self, client: AsyncClient, register):
        reader = await register()
        response = await client.get(
            f"{API}/recommendations/trending", params={"period": "90d"}, headers=reader["headers"]
        )
        assert response.status_code == 400


@pytest.mark.asyncio
class TestInteractions:

    async def test_view_and_download_credit_author(self, client: AsyncClient, register, approved_item):
        item = await approved_item()
        reader = await register()
        url = f"{API}/recommendations/interaction"

        viewed = await client.post(
            url, json={"item_id": item["id"], "interaction_type": "view"}, headers=reader["headers"]
        )
        await client.post(
            url, json={"item_id": item["id"], "interaction_type": "download"}, headers=reader["headers"]
        )

        assert viewed.json() == {"message": "Interaction recorded"}
        stats = (await client.get(f"{API}/leaderboard/me", headers=item["author_headers"])).json()
        assert stats["views"] == 1
        assert stats["downloads"] == 1

    async def test_invalid_type(self, client: AsyncClient, register, approved_item):
        item = await approved_item()
        reader = await register()
        response = await client.post(
            f"{API}/recommendations/interaction",
            json={"item_id": item["id"], "interaction_type": "share"},
            headers=reader["headers"],
        )
        assert response.status_code == 400

    async def test_unknown_item(self, client: AsyncClient, register):
        reader = await register()
        response = await client.post(
            f"{API}/recommendations/interaction",
            json={"item_id": str(uuid.uuid4()), "interaction_type": "view"},
            headers=reader["headers"],
        )
        assert response.status_code == 404
