import uuid
from httpx import AsyncClient
from app.core.config import settings

API = settings.API_V1_STR

ROUND_DATA = {
    "name": "Family Savings",
    "description": "Saving for summer vacation",
    "currency": "USD",
    "contribution_amount": "100.00",
    "contribution_frequency": "weekly",
    "number_of_members": 3,
    "payout_order": "fixed",
    "start_type": "future",
    "start_date": "2024-01-01T00:00:00Z",
    "grace_period_days": 3,
    "payment_verification": "optional",
    "organizer_participates": True,
}

async def create_user(client: AsyncClient, email: str = None, password: str = "password123", first_name: str = "Test", last_name: str = "User"):
    if not email:
        email = f"user_{uuid.uuid4().hex[:8]}@example.com"

    register_data = {
        "email": email,
        "password": password,
        "first_name": first_name,
        "last_name": last_name,
    }

    resp = await client.post(f"{API}/auth/signup", json=register_data)
    assert resp.status_code == 200, resp.text
    return {**register_data, "id": resp.json()["data"]["id"]}

async def get_auth_headers(client: AsyncClient, email: str, password: str = "password123"):
    resp = await client.post(f"{API}/auth/login", json={
        "email": email,
        "password": password
    })
    assert resp.status_code == 200, resp.text
    token = resp.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}

async def create_user_and_get_headers(client: AsyncClient, **kwargs):
    user_data = await create_user(client, **kwargs)
    headers = await get_auth_headers(client, user_data["email"], user_data["password"])
    return user_data, headers

async def create_round(client: AsyncClient, headers: dict, **overrides):
    resp = await client.post(f"{API}/rounds/", json={**ROUND_DATA, **overrides}, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]

async def join_round(client: AsyncClient, headers: dict, invite_code: str):
    return await client.post(f"{API}/rounds/join/{invite_code}", headers=headers)

async def setup_full_round(client: AsyncClient, **overrides):
    """
    Organizer plus two members who joined in order, in a 3-member weekly round starting 2024-01-01.
    """
    organizer, organizer_headers = await create_user_and_get_headers(client, first_name="Olu", last_name="Organizer")
    round_data = await create_round(client, organizer_headers, **overrides)

    member_b, member_b_headers = await create_user_and_get_headers(client, first_name="Bisi", last_name="Member")
    resp = await join_round(client, member_b_headers, round_data["invite_code"])
    assert resp.status_code == 200, resp.text

    member_c, member_c_headers = await create_user_and_get_headers(client, first_name="Chidi", last_name="Member")
    resp = await join_round(client, member_c_headers, round_data["invite_code"])
    assert resp.status_code == 200, resp.text

    return {
        "round": round_data,
        "organizer": (organizer, organizer_headers),
        "member_b": (member_b, member_b_headers),
        "member_c": (member_c, member_c_headers),
    }

async def get_contributions(client: AsyncClient, round_id: str, headers: dict):
    resp = await client.get(f"{API}/rounds/{round_id}/contributions", headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]

async def find_contribution(client: AsyncClient, round_id: str, headers: dict, user_id: str, cycle_number: int = 0):
    contributions = await get_contributions(client, round_id, headers)
    return next(c for c in contributions if c["user_id"] == user_id and c["cycle_number"] == cycle_number)
