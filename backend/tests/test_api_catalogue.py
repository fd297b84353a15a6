"""
Tests for weather, perfume, wishlist, user and health endpoints.
"""
import pytest


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_reports_backends(self, client, storage):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "storage": storage.name,
            "weatherConfigured": False,
            "llmConfigured": False,
        }


class TestWeatherEndpoint:
    @pytest.mark.asyncio
    async def test_post_returns_fallback_and_mood(self, client):
        response = await client.post("/api/weather", json={"lat": 37.5665, "lon": 126.978})

        assert response.status_code == 200
        data = response.json()
        assert data["temperature"] == 20
        assert data["condition"] == "Clear"
        assert data["windSpeed"] == 2.0
        assert data["location"] == "서울"
        assert data["moodText"]

    @pytest.mark.asyncio
    async def test_get_variant(self, client):
        response = await client.get("/api/weather", params={"lat": 35.1, "lon": 129.0})

        assert response.status_code == 200
        assert response.json()["condition"] == "Clear"

    @pytest.mark.asyncio
    async def test_missing_coordinates(self, client):
        response = await client.post("/api/weather", json={"lat": 37.5})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_out_of_range_coordinates(self, client):
        response = await client.post("/api/weather", json={"lat": 123, "lon": 0})
        assert response.status_code == 422


class TestPerfumeEndpoints:
    @pytest.mark.asyncio
    async def test_list(self, client):
        response = await client.get("/api/perfumes")

        assert response.status_code == 200
        perfumes = response.json()
        assert len(perfumes) == 5
        assert set(perfumes[0]) >= {"id", "name", "brand", "category", "notes", "rating", "views"}

    @pytest.mark.asyncio
    async def test_detail_counts_views(self, client):
        first = (await client.get("/api/perfumes/2")).json()
        second = (await client.get("/api/perfumes/2")).json()

        assert first["name"] == "Neroli Portofino"
        assert second["views"] == first["views"] + 1

    @pytest.mark.asyncio
    async def test_missing_perfume_records_nothing(self, client, storage):
        before = [p.views for p in await storage.get_all_perfumes()]

        response = await client.get("/api/perfumes/9999")

        assert response.status_code == 404
        assert response.json()["detail"] == "Perfume not found"
        assert [p.views for p in await storage.get_all_perfumes()] == before

    @pytest.mark.asyncio
    async def test_non_numeric_id(self, client):
        response = await client.get("/api/perfumes/abc")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_similar(self, client):
        response = await client.get("/api/perfumes/3/similar")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Flowerbomb"]

    @pytest.mark.asyncio
    async def test_similar_missing_perfume(self, client):
        response = await client.get("/api/perfumes/9999/similar")
        assert response.status_code == 404


class TestWishlistEndpoints:
    @pytest.mark.asyncio
    async def test_add_then_duplicate(self, client):
        first = await client.post("/api/wishlist", json={"userId": 1, "perfumeId": 3})
        second = await client.post("/api/wishlist", json={"userId": 1, "perfumeId": 3})

        assert first.status_code == 200
        assert first.json()["perfumeId"] == 3
        assert second.status_code == 400
        assert second.json()["detail"] == "Item already in wishlist"

    @pytest.mark.asyncio
    async def test_check_list_and_remove(self, client):
        await client.post("/api/wishlist", json={"userId": 1, "perfumeId": 4})

        check = await client.get("/api/wishlist/1/4/check")
        assert check.json() == {"isWishlisted": True}

        items = (await client.get("/api/wishlist/1")).json()
        assert len(items) == 1
        assert items[0]["perfume"]["name"] == "Black Opium"

        removed = await client.delete("/api/wishlist/1/4")
        assert removed.status_code == 200
        assert removed.json() == {"message": "Removed from wishlist"}

        check = await client.get("/api/wishlist/1/4/check")
        assert check.json() == {"isWishlisted": False}

    @pytest.mark.asyncio
    async def test_remove_missing(self, client):
        response = await client.delete("/api/wishlist/1/5")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_body(self, client):
        response = await client.post("/api/wishlist", json={"userId": 1})
        assert response.status_code == 422


class TestUserEndpoints:
    @pytest.mark.asyncio
    async def test_create_and_get(self, client):
        response = await client.post(
            "/api/users", json={"username": "jiwoo", "email": "jiwoo@example.com"}
        )

        assert response.status_code == 200
        user = response.json()
        assert user["username"] == "jiwoo"

        fetched = await client.get(f"/api/users/{user['id']}")
        assert fetched.json()["email"] == "jiwoo@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, client):
        response = await client.post(
            "/api/users", json={"username": "someone", "email": "demo@weatherscent.com"}
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    @pytest.mark.asyncio
    async def test_duplicate_username(self, client):
        response = await client.post(
            "/api/users", json={"username": "demo_user", "email": "other@example.com"}
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Username already taken"

    @pytest.mark.asyncio
    async def test_registration_race_still_reports_duplicate(self, client, storage, monkeypatch):
        original = storage.get_user_by_email
        calls = {"n": 0}

        async def stale_first_lookup(email):
            # The first check runs before the competing registration lands
            calls["n"] += 1
            if calls["n"] == 1:
                return None
            return await original(email)

        monkeypatch.setattr(storage, "get_user_by_email", stale_first_lookup)

        response = await client.post(
            "/api/users", json={"username": "late_comer", "email": "demo@weatherscent.com"}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    @pytest.mark.asyncio
    async def test_missing_user(self, client):
        response = await client.get("/api/users/9999")
        assert response.status_code == 404
