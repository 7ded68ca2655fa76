"""Tests for authentication endpoints."""

from datetime import timedelta

import pytest

from tests.conftest import TEST_PASSWORD


@pytest.mark.asyncio
async def test_register_returns_token(async_client, codecs):
    """Registration creates the account and logs it in."""
    response = await async_client.post(
        "/api/auth/register",
        json={
            "username": "alice",
            "email": "Alice@Example.com",
            "password": "securepassword123",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Registration successful"
    assert data["token_type"] == "bearer"
    assert data["user"]["username"] == "alice"
    assert data["user"]["email"] == "alice@example.com"
    assert "password" not in data["user"]
    assert "password_hash" not in data["user"]

    claims = codecs.auth.verify(data["token"])
    assert claims["userId"] == data["user"]["id"]


@pytest.mark.asyncio
async def test_register_duplicate_email(async_client, user_factory):
    """Registering an existing email is a conflict."""
    await user_factory(email="taken@example.com")

    response = await async_client.post(
        "/api/auth/register",
        json={"username": "bob", "email": "taken@example.com", "password": "securepassword123"},
    )
    assert response.status_code == 409
    assert response.json() == {"message": "User already exists"}


@pytest.mark.asyncio
async def test_register_missing_fields(async_client):
    """Missing fields are listed in a single 400 message."""
    response = await async_client.post("/api/auth/register", json={"username": "carol"})
    assert response.status_code == 400
    message = response.json()["message"]
    assert message.startswith("The following fields are required:")
    assert "email" in message
    assert "password" in message


@pytest.mark.asyncio
async def test_register_validates_password_length(async_client):
    response = await async_client.post(
        "/api/auth/register",
        json={"username": "carol", "email": "carol@example.com", "password": "short"},
    )
    assert response.status_code == 400
    assert "password" in response.json()["message"]


@pytest.mark.asyncio
async def test_login_success(async_client, user_factory, codecs):
    user = await user_factory(email="dave@example.com")

    response = await async_client.post(
        "/api/auth/login",
        json={"email": "dave@example.com", "password": TEST_PASSWORD},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Login successful"
    assert data["user"]["id"] == user.id
    assert 3600 <= data["expires_in"] <= 7200
    assert codecs.auth.verify(data["token"])["userId"] == user.id


@pytest.mark.asyncio
async def test_login_wrong_password(async_client, user_factory):
    await user_factory(email="erin@example.com")

    response = await async_client.post(
        "/api/auth/login",
        json={"email": "erin@example.com", "password": "wrongpassword"},
    )
    assert response.status_code == 401
    assert response.json() == {"message": "Invalid credentials"}
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_login_unknown_email(async_client):
    """Unknown email and wrong password are indistinguishable."""
    response = await async_client.post(
        "/api/auth/login",
        json={"email": "ghost@example.com", "password": "whatever123"},
    )
    assert response.status_code == 401
    assert response.json() == {"message": "Invalid credentials"}


@pytest.mark.asyncio
async def test_login_rate_limited(async_client, user_factory):
    """Repeated failures from one client are throttled."""
    await user_factory(email="frank@example.com")

    for _ in range(5):
        response = await async_client.post(
            "/api/auth/login",
            json={"email": "frank@example.com", "password": "wrongpassword"},
        )
        assert response.status_code == 401

    response = await async_client.post(
        "/api/auth/login",
        json={"email": "frank@example.com", "password": TEST_PASSWORD},
    )
    assert response.status_code == 429
    assert "Too many login attempts" in response.json()["message"]


@pytest.mark.asyncio
async def test_me(async_client, user_factory, auth_headers):
    user = await user_factory(username="grace")

    response = await async_client.get("/api/auth/me", headers=auth_headers(user))
    assert response.status_code == 200
    assert response.json() == {"id": user.id, "username": "grace", "email": user.email}


@pytest.mark.asyncio
async def test_me_requires_header(async_client):
    response = await async_client.get("/api/auth/me")
    assert response.status_code == 401
    assert "Authorization header is required" in response.json()["message"]
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_me_rejects_wrong_scheme(async_client):
    response = await async_client.get("/api/auth/me", headers={"Authorization": "Token abc"})
    assert response.status_code == 401
    assert "Bearer <token>" in response.json()["message"]


@pytest.mark.asyncio
async def test_me_rejects_garbage_token(async_client):
    response = await async_client.get(
        "/api/auth/me", headers={"Authorization": "Bearer not-a-real-token"}
    )
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token. Please provide a valid token."


@pytest.mark.asyncio
async def test_me_rejects_expired_token(async_client, user_factory, auth_headers, clock):
    user = await user_factory()
    headers = auth_headers(user)

    clock.advance(2 * 3600 + 1)

    response = await async_client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401
    assert "expired" in response.json()["message"].lower()


@pytest.mark.asyncio
async def test_me_rejects_invite_token(async_client, user_factory, codecs):
    """An invite token is never accepted as a bearer token."""
    user = await user_factory()
    invite = codecs.invite.issue({"userId": user.id}, timedelta(hours=1))

    response = await async_client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {invite.token}"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_for_deleted_user(async_client, auth_headers, db_session, user_factory):
    user = await user_factory()
    headers = auth_headers(user)
    await db_session.delete(user)
    await db_session.flush()

    response = await async_client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token. Please provide a valid token."


@pytest.mark.asyncio
async def test_logout_blacklists_token(async_client, user_factory, auth_headers):
    """After logout the same token is refused even though it has not expired."""
    user = await user_factory()
    headers = auth_headers(user)

    response = await async_client.post("/api/auth/logout", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Logged out successfully"}

    response = await async_client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["message"] == "Token is no longer valid. Please log in again."

    response = await async_client.post("/api/auth/logout", headers=headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_logout_leaves_other_sessions(async_client, user_factory, auth_headers):
    user = await user_factory()
    first = auth_headers(user)
    second = auth_headers(user)

    response = await async_client.post("/api/auth/logout", headers=first)
    assert response.status_code == 200

    response = await async_client.get("/api/auth/me", headers=second)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_logout_requires_auth(async_client):
    response = await async_client.post("/api/auth/logout")
    assert response.status_code == 401
