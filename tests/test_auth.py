import pytest
import uuid
from httpx import AsyncClient
from app.core.config import settings

def signup_data(prefix: str = "signup", **overrides):
    return {
        "email": f"{prefix}_{uuid.uuid4().hex[:8]}@example.com",
        "password": "password123",
        "first_name": "New",
        "last_name": "User",
        **overrides,
    }

@pytest.mark.asyncio
async def test_signup(client: AsyncClient):
    payload = signup_data()

    response = await client.post(f"{settings.API_V1_STR}/auth/signup", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "User created successfully"
    assert data["data"]["email"] == payload["email"]
    assert "hashed_password" not in data["data"]
    assert "password" not in data["data"]

@pytest.mark.asyncio
async def test_signup_duplicate_email(client: AsyncClient):
    payload = signup_data("dup")

    await client.post(f"{settings.API_V1_STR}/auth/signup", json=payload)
    response = await client.post(f"{settings.API_V1_STR}/auth/signup", json={**payload, "first_name": "Second"})

    assert response.status_code == 400

@pytest.mark.asyncio
async def test_signup_validation(client: AsyncClient):
    response = await client.post(f"{settings.API_V1_STR}/auth/signup", json=signup_data(password="short"))
    assert response.status_code == 400
    assert response.json()["data"][0]["field"] == "password"

    response = await client.post(f"{settings.API_V1_STR}/auth/signup", json=signup_data(email="not-an-email"))
    assert response.status_code == 400

@pytest.mark.asyncio
async def test_login(client: AsyncClient):
    payload = signup_data("login")
    signup = await client.post(f"{settings.API_V1_STR}/auth/signup", json=payload)

    response = await client.post(f"{settings.API_V1_STR}/auth/login", json={
        "email": payload["email"],
        "password": payload["password"]
    })

    assert response.status_code == 200
    data = response.json()["data"]
    assert "access_token" in data
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    assert data["user_id"] == signup.json()["data"]["id"]

@pytest.mark.asyncio
async def test_login_invalid_credentials(client: AsyncClient):
    payload = signup_data("wrong")
    await client.post(f"{settings.API_V1_STR}/auth/signup", json=payload)

    response = await client.post(f"{settings.API_V1_STR}/auth/login", json={
        "email": payload["email"],
        "password": "wrongpassword"
    })
    assert response.status_code == 400

    response = await client.post(f"{settings.API_V1_STR}/auth/login", json={
        "email": "nonexistent@example.com",
        "password": "wrongpassword"
    })
    assert response.status_code == 400

@pytest.mark.asyncio
async def test_protected_routes_need_a_valid_token(client: AsyncClient):
    response = await client.get(f"{settings.API_V1_STR}/rounds/")
    assert response.status_code in [401, 403]

    response = await client.get(f"{settings.API_V1_STR}/rounds/", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 403
