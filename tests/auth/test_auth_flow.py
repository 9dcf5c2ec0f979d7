"""Integration tests for registration, login, token refresh and logout."""

from httpx import AsyncClient

from tests.seed import PASSWORD


class TestRegistration:
    async def test_register_returns_public_profile(self, client: AsyncClient, register_user, media_store):
        user = await register_user("alice", with_cover=True)
        assert user["username"] == "alice"
        assert user["email"] == "alice@example.com"
        assert user["fullName"] == "Alice Tester"
        assert user["avatarUrl"].startswith("memory://")
        assert user["coverImageUrl"].startswith("memory://")
        assert "passwordHash" not in user
        assert "refreshTokenHash" not in user
        assert len(media_store.objects) == 2

    async def test_username_and_email_are_lower_cased(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/users/register",
            data={"username": "  Bob ", "email": "BOB@Example.com", "fullName": "Bob", "password": PASSWORD},
            files={"avatar": ("a.png", b"png", "image/png")},
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["username"] == "bob"
        assert data["email"] == "bob@example.com"

    async def test_duplicate_username_conflicts(self, client: AsyncClient, register_user, media_store):
        await register_user("alice")
        stored_before = len(media_store.objects)
        response = await client.post(
            "/api/v1/users/register",
            data={"username": "alice", "email": "other@example.com", "fullName": "Other", "password": PASSWORD},
            files={"avatar": ("a.png", b"png", "image/png")},
        )
        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["status"] == "fail"
        assert body["message"] == "User with email or username already exists"
        # Nothing was uploaded for the rejected registration
        assert len(media_store.objects) == stored_before

    async def test_avatar_required(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/users/register",
            data={"username": "carol", "email": "carol@example.com", "fullName": "Carol", "password": PASSWORD},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Avatar file is required"

    async def test_blank_field_rejected(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/users/register",
            data={"username": "   ", "email": "d@example.com", "fullName": "D", "password": PASSWORD},
            files={"avatar": ("a.png", b"png", "image/png")},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "All fields are required"

    async def test_weak_password_rejected(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/users/register",
            data={"username": "erin", "email": "erin@example.com", "fullName": "Erin", "password": "short"},
            files={"avatar": ("a.png", b"png", "image/png")},
        )
        assert response.status_code == 400


class TestLogin:
    async def test_login_by_username_sets_cookies(self, client: AsyncClient, register_user):
        await register_user("alice")
        response = await client.post("/api/v1/users/login", json={"username": "alice", "password": PASSWORD})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["accessToken"]
        assert data["refreshToken"]
        assert data["tokenType"] == "bearer"
        assert data["user"]["username"] == "alice"
        cookies = response.headers.get_list("set-cookie")
        assert any(c.startswith("accessToken=") and "HttpOnly" in c for c in cookies)
        assert any(c.startswith("refreshToken=") and "samesite=strict" in c.lower() for c in cookies)

    async def test_login_by_email(self, client: AsyncClient, register_user):
        await register_user("alice")
        response = await client.post(
            "/api/v1/users/login", json={"email": "ALICE@example.com", "password": PASSWORD}
        )
        assert response.status_code == 200

    async def test_wrong_password(self, client: AsyncClient, register_user):
        await register_user("alice")
        response = await client.post("/api/v1/users/login", json={"username": "alice", "password": "Wrong1234"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid user credentials"

    async def test_unknown_user_looks_like_wrong_password(self, client: AsyncClient, register_user):
        await register_user("alice")
        unknown = await client.post("/api/v1/users/login", json={"username": "ghost", "password": PASSWORD})
        wrong = await client.post("/api/v1/users/login", json={"username": "alice", "password": "Wrong1234"})
        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json()["message"] == wrong.json()["message"] == "Invalid user credentials"

    async def test_identifier_required(self, client: AsyncClient):
        response = await client.post("/api/v1/users/login", json={"password": PASSWORD})
        assert response.status_code == 400


class TestCurrentUser:
    async def test_bearer_token(self, client: AsyncClient, signed_in):
        alice = await signed_in("alice")
        response = await client.get("/api/v1/users/current-user", headers=alice["headers"])
        assert response.status_code == 200
        assert response.json()["data"]["id"] == alice["id"]

    async def test_cookie_token(self, client: AsyncClient, signed_in):
        alice = await signed_in("alice")
        response = await client.get(
            "/api/v1/users/current-user", headers={"Cookie": f"accessToken={alice['access_token']}"}
        )
        assert response.status_code == 200

    async def test_missing_token(self, client: AsyncClient):
        response = await client.get("/api/v1/users/current-user")
        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized request"

    async def test_invalid_token(self, client: AsyncClient):
        response = await client.get("/api/v1/users/current-user", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401


class TestTokenRefresh:
    async def test_rotation_rejects_the_old_token(self, client: AsyncClient, signed_in):
        alice = await signed_in("alice")
        first = await client.post("/api/v1/users/refresh-token", json={"refreshToken": alice["refresh_token"]})
        assert first.status_code == 200
        rotated = first.json()["data"]
        assert rotated["refreshToken"] != alice["refresh_token"]

        replay = await client.post("/api/v1/users/refresh-token", json={"refreshToken": alice["refresh_token"]})
        assert replay.status_code == 401
        assert replay.json()["message"] == "Invalid refresh token"

        again = await client.post("/api/v1/users/refresh-token", json={"refreshToken": rotated["refreshToken"]})
        assert again.status_code == 200

    async def test_refresh_from_cookie(self, client: AsyncClient, signed_in):
        alice = await signed_in("alice")
        response = await client.post(
            "/api/v1/users/refresh-token", headers={"Cookie": f"refreshToken={alice['refresh_token']}"}
        )
        assert response.status_code == 200

    async def test_access_token_is_not_a_refresh_token(self, client: AsyncClient, signed_in):
        alice = await signed_in("alice")
        response = await client.post("/api/v1/users/refresh-token", json={"refreshToken": alice["access_token"]})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid refresh token"

    async def test_missing_token(self, client: AsyncClient):
        response = await client.post("/api/v1/users/refresh-token")
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid refresh token"


class TestLogout:
    async def test_logout_revokes_refresh_token(self, client: AsyncClient, signed_in):
        alice = await signed_in("alice")
        response = await client.post("/api/v1/users/logout", headers=alice["headers"])
        assert response.status_code == 200
        cleared = response.headers.get_list("set-cookie")
        assert any(c.startswith("accessToken=") for c in cleared)

        refresh = await client.post("/api/v1/users/refresh-token", json={"refreshToken": alice["refresh_token"]})
        assert refresh.status_code == 401

    async def test_logout_requires_auth(self, client: AsyncClient):
        response = await client.post("/api/v1/users/logout")
        assert response.status_code == 401


class TestChangePassword:
    async def test_change_password(self, client: AsyncClient, signed_in):
        alice = await signed_in("alice")
        response = await client.post(
            "/api/v1/users/change-password",
            json={"oldPassword": PASSWORD, "newPassword": "Brand1NewPass"},
            headers=alice["headers"],
        )
        assert response.status_code == 200

        old = await client.post("/api/v1/users/login", json={"username": "alice", "password": PASSWORD})
        assert old.status_code == 401
        new = await client.post("/api/v1/users/login", json={"username": "alice", "password": "Brand1NewPass"})
        assert new.status_code == 200

    async def test_change_password_revokes_refresh_token(self, client: AsyncClient, signed_in):
        alice = await signed_in("alice")
        response = await client.post(
            "/api/v1/users/change-password",
            json={"oldPassword": PASSWORD, "newPassword": "Brand1NewPass"},
            headers=alice["headers"],
        )
        assert response.status_code == 200
        cleared = response.headers.get_list("set-cookie")
        assert any(c.startswith('refreshToken=""') or c.startswith("refreshToken=;") for c in cleared)

        client.cookies.clear()
        refresh = await client.post("/api/v1/users/refresh-token", json={"refreshToken": alice["refresh_token"]})
        assert refresh.status_code == 401
        assert refresh.json()["message"] == "Invalid refresh token"

    async def test_wrong_old_password(self, client: AsyncClient, signed_in):
        alice = await signed_in("alice")
        response = await client.post(
            "/api/v1/users/change-password",
            json={"oldPassword": "Wrong1234", "newPassword": "Brand1NewPass"},
            headers=alice["headers"],
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid old password"
