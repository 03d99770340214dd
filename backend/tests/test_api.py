"""
Drama Quotes Backend — API Endpoint Tests
=========================================

What:  HTTP-level behaviour through the full middleware and handler stack.
How:   HTTPX AsyncClient over ASGITransport; every test gets a fresh SQLite
       database (see conftest.test_client).

What we test:
    ✅ Register → token; duplicate → 409; short password → 400
    ✅ Login: good password → token, wrong password → 401
    ✅ Submit quote: drama created on first use and reused after
    ✅ Submit without / with broken token → 401, mismatched user_id → 403
    ✅ Non-Bearer Authorization scheme → 401 token missing
    ✅ Quote list, detail, 404, drama list
    ✅ /health, request id header, error body shape
"""

import pytest


async def register(client, username="alice", email="alice@x.com", password="secret1"):
    return await client.post(
        "/api/auth/register",
        json={"username": username, "email": email, "password": password},
    )


async def auth_headers(client, **kwargs) -> dict:
    response = await register(client, **kwargs)
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


QUOTE = {"text": "Hello", "drama_title": "New Drama", "character_name": "Jin"}


class TestAuthEndpoints:

    @pytest.mark.asyncio
    async def test_register_returns_token(self, test_client):
        response = await register(test_client)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "User registered successfully"
        assert body["user"]["username"] == "alice"
        assert body["token_type"] == "bearer"
        assert body["access_token"]
        assert "password" not in body["user"]
        assert "password_hash" not in body["user"]

    @pytest.mark.asyncio
    async def test_duplicate_registration_conflicts(self, test_client):
        await register(test_client)
        response = await register(test_client, username="alice2")

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_short_password_is_bad_request(self, test_client):
        response = await register(test_client, password="abc")

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_missing_field_is_bad_request(self, test_client):
        response = await test_client.post("/api/auth/register", json={"username": "alice"})

        assert response.status_code == 400
        assert "email" in response.json()["details"]["fields"]

    @pytest.mark.asyncio
    async def test_login_success(self, test_client):
        await register(test_client)

        response = await test_client.post(
            "/api/auth/login", json={"username": "alice", "password": "secret1"}
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Login successful"
        assert response.json()["access_token"]

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, test_client):
        await register(test_client)

        response = await test_client.post(
            "/api/auth/login", json={"username": "alice", "password": "wrong1"}
        )

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["message"] == "Invalid username or password"

    @pytest.mark.asyncio
    async def test_me_returns_identity(self, test_client):
        headers = await auth_headers(test_client)

        response = await test_client.get("/api/auth/me", headers=headers)

        assert response.status_code == 200
        assert response.json()["username"] == "alice"

    @pytest.mark.asyncio
    async def test_me_without_token(self, test_client):
        response = await test_client.get("/api/auth/me")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_non_bearer_scheme_is_missing_token(self, test_client):
        response = await test_client.get("/api/auth/me", headers={"Authorization": "Basic x"})

        assert response.status_code == 401
        assert response.json()["message"] == "Authentication token is missing"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_non_bearer_scheme_cannot_submit(self, test_client):
        response = await test_client.post(
            "/api/quotes", json=QUOTE, headers={"Authorization": "Basic x"}
        )

        assert response.status_code == 401
        assert (await test_client.get("/api/quotes")).json()["total_count"] == 0


class TestQuoteSubmission:

    @pytest.mark.asyncio
    async def test_submit_creates_drama_and_attributes_author(self, test_client):
        headers = await auth_headers(test_client)

        response = await test_client.post("/api/quotes", json=QUOTE, headers=headers)

        assert response.status_code == 201
        body = response.json()
        assert body["text"] == "Hello"
        assert body["drama_title"] == "New Drama"
        assert body["character_name"] == "Jin"
        assert body["author_username"] == "alice"

    @pytest.mark.asyncio
    async def test_second_submission_reuses_drama(self, test_client):
        headers = await auth_headers(test_client)

        first = await test_client.post("/api/quotes", json=QUOTE, headers=headers)
        second = await test_client.post(
            "/api/quotes",
            json={**QUOTE, "text": "Goodbye", "character_name": "Seri"},
            headers=headers,
        )

        assert first.json()["drama_id"] == second.json()["drama_id"]
        dramas = (await test_client.get("/api/dramas")).json()
        assert [d["title"] for d in dramas] == ["New Drama"]

    @pytest.mark.asyncio
    async def test_submit_without_token(self, test_client):
        response = await test_client.post("/api/quotes", json=QUOTE)

        assert response.status_code == 401
        # No drama left behind by a rejected submission
        assert (await test_client.get("/api/dramas")).json() == []

    @pytest.mark.asyncio
    async def test_submit_with_garbage_token(self, test_client):
        response = await test_client.post(
            "/api/quotes", json=QUOTE, headers={"Authorization": "Bearer not.a.token"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_submit_as_someone_else_is_forbidden(self, test_client):
        headers = await auth_headers(test_client)

        response = await test_client.post(
            "/api/quotes", json={**QUOTE, "user_id": 999}, headers=headers
        )

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    @pytest.mark.asyncio
    async def test_submit_missing_character_is_bad_request(self, test_client):
        headers = await auth_headers(test_client)

        response = await test_client.post(
            "/api/quotes", json={"text": "Hello", "drama_title": "New Drama"}, headers=headers
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_blank_drama_title_is_bad_request(self, test_client):
        headers = await auth_headers(test_client)

        response = await test_client.post(
            "/api/quotes", json={**QUOTE, "drama_title": "   "}, headers=headers
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "drama_title"


class TestQuoteReads:

    @pytest.mark.asyncio
    async def test_list_and_detail(self, test_client):
        headers = await auth_headers(test_client)
        created = (
            await test_client.post(
                "/api/quotes",
                json={**QUOTE, "drama_description": "A brand new show", "season": 1, "episode": 2},
                headers=headers,
            )
        ).json()

        listing = await test_client.get("/api/quotes")
        assert listing.status_code == 200
        assert listing.headers["X-Total-Count"] == "1"
        assert listing.json()["quotes"][0]["id"] == created["id"]
        assert listing.json()["has_more"] is False

        detail = await test_client.get(f"/api/quotes/{created['id']}")
        assert detail.status_code == 200
        assert detail.json()["drama_description"] == "A brand new show"
        assert detail.json()["season"] == 1
        assert "max-age=3600" in detail.headers["Cache-Control"]

    @pytest.mark.asyncio
    async def test_unknown_quote_is_404(self, test_client):
        response = await test_client.get("/api/quotes/12345")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_list_limit_out_of_range(self, test_client):
        response = await test_client.get("/api/quotes?limit=0")
        assert response.status_code == 400


class TestServiceEndpoints:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] == "connected"

    @pytest.mark.asyncio
    async def test_index_lists_endpoints(self, test_client):
        response = await test_client.get("/")

        assert response.status_code == 200
        assert response.json()["endpoints"]["quotes"] == "/api/quotes"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, test_client):
        response = await test_client.get("/api/quotes/999", headers={"X-Request-ID": "req-42"})
        assert response.json()["request_id"] == "req-42"
