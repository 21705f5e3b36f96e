"""
Tests for authentication endpoints and the user profile.

These tests verify:
  - Successful signup creates a user and returns a working token
  - Duplicate email or username signup is rejected (409 Conflict)
  - Successful login returns a fresh token
  - Wrong password and unknown email fail identically (anti-enumeration)
  - Logout revokes the token immediately
  - Profile updates can change email and username, both of which stay unique
  - Nulls for required profile fields are ignored
"""

import pytest


SIGNUP = {
    "email": "newuser@example.com",
    "username": "newuser",
    "password": "StrongPass99!",
    "first_name": "Jane",
    "last_name": "Doe",
}


# ---------------------------------------------------------------------------
# Signup Tests
# ---------------------------------------------------------------------------

class TestSignup:
    """Tests for POST /auth/signup."""

    async def test_signup_success(self, client):
        """A valid signup should return 201 with user_id, email, username and token."""
        response = await client.post("/auth/signup", json=SIGNUP)
        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "newuser@example.com"
        assert data["username"] == "newuser"
        assert data["token_type"] == "bearer"
        assert "token" in data
        assert "user_id" in data

    async def test_signup_token_is_live(self, client):
        """The signup token works straight away; no separate login needed."""
        response = await client.post("/auth/signup", json=SIGNUP)
        token = response.json()["token"]

        profile = await client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
        assert profile.status_code == 200
        assert profile.json()["username"] == "newuser"

    async def test_signup_with_phone(self, client):
        response = await client.post(
            "/auth/signup", json={**SIGNUP, "phone_number": "+20-100-555-1234"}
        )
        assert response.status_code == 201

    async def test_signup_duplicate_email(self, client):
        first = await client.post("/auth/signup", json=SIGNUP)
        assert first.status_code == 201

        second = await client.post("/auth/signup", json={**SIGNUP, "username": "other"})
        assert second.status_code == 409
        assert second.json()["error_type"] == "duplicate_email"
        assert "already registered" in second.json()["detail"]

    async def test_signup_duplicate_username(self, client):
        await client.post("/auth/signup", json=SIGNUP)

        second = await client.post(
            "/auth/signup", json={**SIGNUP, "email": "someone.else@example.com"}
        )
        assert second.status_code == 409
        assert second.json()["error_type"] == "duplicate_username"

    @pytest.mark.parametrize(
        "override",
        [
            {"password": "short"},
            {"email": "not-an-email"},
            {"first_name": ""},
            {"username": "ab"},
            {"username": "has spaces"},
        ],
    )
    async def test_signup_validation(self, client, override):
        response = await client.post("/auth/signup", json={**SIGNUP, **override})
        assert response.status_code == 422

    async def test_signup_missing_fields(self, client):
        response = await client.post("/auth/signup", json={"email": "missing@example.com"})
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Login / Logout Tests
# ---------------------------------------------------------------------------

class TestLogin:
    """Tests for POST /auth/login and POST /auth/logout."""

    async def test_login_success(self, client, register):
        alice = await register("alice", password="CorrectPass123!")

        response = await client.post(
            "/auth/login",
            json={"email": "alice@example.com", "password": "CorrectPass123!"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["token"] != alice["token"]

    async def test_login_wrong_password(self, client, register):
        await register("alice", password="CorrectPass123!")

        response = await client.post(
            "/auth/login",
            json={"email": "alice@example.com", "password": "WrongPassword!"},
        )
        assert response.status_code == 401
        assert response.json()["error_type"] == "invalid_credentials"
        assert "Invalid email or password" in response.json()["detail"]

    async def test_login_nonexistent_email(self, client):
        """Same message as the wrong-password case, to prevent user enumeration."""
        response = await client.post(
            "/auth/login",
            json={"email": "nobody@example.com", "password": "SomePassword123!"},
        )
        assert response.status_code == 401
        assert "Invalid email or password" in response.json()["detail"]

    async def test_logout_revokes_only_that_token(self, client, register):
        alice = await register("alice", password="CorrectPass123!")
        login = await client.post(
            "/auth/login",
            json={"email": "alice@example.com", "password": "CorrectPass123!"},
        )
        second_headers = {"Authorization": f"Bearer {login.json()['token']}"}

        response = await client.post("/auth/logout", headers=alice["headers"])
        assert response.status_code == 204

        assert (await client.get("/users/me", headers=alice["headers"])).status_code == 401
        assert (await client.get("/users/me", headers=second_headers)).status_code == 200

    async def test_logout_without_token_is_harmless(self, client):
        response = await client.post("/auth/logout")
        assert response.status_code == 204


# ---------------------------------------------------------------------------
# Token Validation Tests
# ---------------------------------------------------------------------------

class TestTokenValidation:
    """Tests for bearer token validation on protected endpoints."""

    async def test_no_token_returns_401(self, client):
        response = await client.get("/users/me")
        assert response.status_code == 401

    async def test_invalid_token_returns_401(self, client):
        response = await client.get(
            "/users/me", headers={"Authorization": "Bearer totally.fake.token"}
        )
        assert response.status_code == 401

    async def test_malformed_auth_header_returns_401(self, client):
        response = await client.get(
            "/users/me", headers={"Authorization": "NotBearer sometoken"}
        )
        assert response.status_code == 401

    async def test_lowercase_scheme_accepted(self, client, register):
        alice = await register("alice")
        response = await client.get(
            "/users/me", headers={"Authorization": f"bearer {alice['token']}"}
        )
        assert response.status_code == 200


# ---------------------------------------------------------------------------
# Profile Tests
# ---------------------------------------------------------------------------

class TestProfile:
    """Tests for GET and PATCH /users/me."""

    async def test_get_profile(self, client, register):
        alice = await register("alice")
        response = await client.get("/users/me", headers=alice["headers"])
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == alice["user_id"]
        assert data["email"] == "alice@example.com"
        assert "hashed_password" not in data

    async def test_change_email(self, client, register):
        """The new email is used for login; the current token keeps working."""
        alice = await register("alice", password="CorrectPass123!")
        response = await client.patch(
            "/users/me", json={"email": "alice.new@example.com"}, headers=alice["headers"]
        )
        assert response.status_code == 200
        assert response.json()["email"] == "alice.new@example.com"

        profile = await client.get("/users/me", headers=alice["headers"])
        assert profile.status_code == 200

        old = await client.post(
            "/auth/login", json={"email": "alice@example.com", "password": "CorrectPass123!"}
        )
        new = await client.post(
            "/auth/login", json={"email": "alice.new@example.com", "password": "CorrectPass123!"}
        )
        assert old.status_code == 401
        assert new.status_code == 200

    async def test_change_email_to_taken_address(self, client, register):
        alice = await register("alice")
        await register("bob")

        response = await client.patch(
            "/users/me", json={"email": "bob@example.com"}, headers=alice["headers"]
        )
        assert response.status_code == 409
        assert response.json()["error_type"] == "duplicate_email"

        profile = await client.get("/users/me", headers=alice["headers"])
        assert profile.json()["email"] == "alice@example.com"

    async def test_change_email_to_own_address(self, client, register):
        alice = await register("alice")
        response = await client.patch(
            "/users/me", json={"email": "alice@example.com"}, headers=alice["headers"]
        )
        assert response.status_code == 200

    async def test_invalid_email_rejected(self, client, register):
        alice = await register("alice")
        response = await client.patch(
            "/users/me", json={"email": "not-an-email"}, headers=alice["headers"]
        )
        assert response.status_code == 422

    async def test_null_required_fields_are_ignored(self, client, register):
        """Explicit nulls for required fields leave them unchanged instead of failing."""
        alice = await register("alice")
        response = await client.patch(
            "/users/me",
            json={"first_name": None, "last_name": None, "username": None, "email": None},
            headers=alice["headers"],
        )
        assert response.status_code == 200
        data = response.json()
        assert data["first_name"] == "Alice"
        assert data["last_name"] == "User"
        assert data["username"] == "alice"
        assert data["email"] == "alice@example.com"

    async def test_null_phone_number_clears_it(self, client, register):
        alice = await register("alice")
        await client.patch(
            "/users/me", json={"phone_number": "+1-555-000-1111"}, headers=alice["headers"]
        )

        response = await client.patch(
            "/users/me", json={"phone_number": None}, headers=alice["headers"]
        )
        assert response.status_code == 200
        assert response.json()["phone_number"] is None

    async def test_profile_update(self, client, register):
        alice = await register("alice")
        response = await client.patch(
            "/users/me",
            json={"first_name": "Updated", "phone_number": "+1-555-999-0000"},
            headers=alice["headers"],
        )
        assert response.status_code == 200
        data = response.json()
        assert data["first_name"] == "Updated"
        assert data["last_name"] == "User"
        assert data["phone_number"] == "+1-555-999-0000"

    async def test_username_change(self, client, register):
        alice = await register("alice")
        response = await client.patch(
            "/users/me", json={"username": "alice_new"}, headers=alice["headers"]
        )
        assert response.status_code == 200
        assert response.json()["username"] == "alice_new"

    async def test_username_change_to_taken_name(self, client, register):
        alice = await register("alice")
        await register("bob")

        response = await client.patch(
            "/users/me", json={"username": "bob"}, headers=alice["headers"]
        )
        assert response.status_code == 409
        assert response.json()["error_type"] == "duplicate_username"
