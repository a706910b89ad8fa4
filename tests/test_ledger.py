import pytest
import uuid
from datetime import datetime
from httpx import AsyncClient
from sqlalchemy import update
from sqlmodel import select

from app.models.contribution import Contribution
from app.models.enums import ContributionStatus
from app.services.ledger import effective_status, mark_paid, sweep_late
from app.worker import run_late_sweep
from tests.utils import API, create_user_and_get_headers, find_contribution, get_contributions, setup_full_round

DUE = datetime(2024, 1, 1)

def test_pending_becomes_late_only_after_grace_period():
    assert effective_status(ContributionStatus.PENDING, DUE, 3, datetime(2024, 1, 4)) == ContributionStatus.PENDING
    assert effective_status(ContributionStatus.PENDING, DUE, 3, datetime(2024, 1, 4, 0, 0, 1)) == ContributionStatus.LATE
    assert effective_status(ContributionStatus.PENDING, DUE, 3, datetime(2024, 1, 5)) == ContributionStatus.LATE
    assert effective_status(ContributionStatus.PENDING, DUE, 0, datetime(2024, 1, 1)) == ContributionStatus.PENDING

def test_settled_statuses_never_read_late():
    much_later = datetime(2025, 1, 1)
    assert effective_status(ContributionStatus.PAID, DUE, 3, much_later) == ContributionStatus.PAID
    assert effective_status(ContributionStatus.VERIFIED, DUE, 0, much_later) == ContributionStatus.VERIFIED
    assert effective_status(ContributionStatus.LATE, DUE, 3, datetime(2023, 1, 1)) == ContributionStatus.LATE

@pytest.mark.asyncio
async def test_contributions_are_materialized_per_member_and_cycle(client: AsyncClient):
    setup = await setup_full_round(client)
    organizer, headers = setup["organizer"]
    member_b = setup["member_b"][0]
    member_c = setup["member_c"][0]

    contributions = await get_contributions(client, setup["round"]["id"], headers)

    assert len(contributions) == 9
    assert all(c["status"] == "pending" and c["amount"] == "100.00" for c in contributions)
    due = {(c["user_id"], c["cycle_number"]): c["due_date"] for c in contributions}
    assert due[(organizer["id"], 0)] == "2024-01-01T00:00:00"
    assert due[(member_b["id"], 0)] == "2024-01-08T00:00:00"
    assert due[(member_c["id"], 0)] == "2024-01-15T00:00:00"
    assert due[(organizer["id"], 1)] == "2024-01-22T00:00:00"
    assert due[(member_c["id"], 2)] == "2024-02-26T00:00:00"

    # Listing again does not duplicate anything
    assert len(await get_contributions(client, setup["round"]["id"], headers)) == 9

@pytest.mark.asyncio
async def test_late_is_derived_from_the_clock(client: AsyncClient, clock):
    setup = await setup_full_round(client)
    round_id = setup["round"]["id"]
    organizer, headers = setup["organizer"]

    clock.now = datetime(2024, 1, 4)
    contribution = await find_contribution(client, round_id, headers, organizer["id"])
    assert contribution["status"] == "pending"

    clock.now = datetime(2024, 1, 5)
    contribution = await find_contribution(client, round_id, headers, organizer["id"])
    assert contribution["status"] == "late"

@pytest.mark.asyncio
async def test_mark_paid_within_grace_period_stays_paid(client: AsyncClient, clock):
    setup = await setup_full_round(client)
    round_id = setup["round"]["id"]
    organizer, headers = setup["organizer"]
    contribution = await find_contribution(client, round_id, headers, organizer["id"])

    clock.now = datetime(2024, 1, 4)
    resp = await client.post(f"{API}/contributions/{contribution['id']}/mark-paid", headers=headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["status"] == "paid"
    assert resp.json()["data"]["paid_date"] == "2024-01-04T00:00:00"

    clock.now = datetime(2024, 6, 1)
    contribution = await find_contribution(client, round_id, headers, organizer["id"])
    assert contribution["status"] == "paid"

@pytest.mark.asyncio
async def test_mark_paid_is_idempotent(client: AsyncClient, clock):
    setup = await setup_full_round(client)
    round_id = setup["round"]["id"]
    member_b, b_headers = setup["member_b"]
    contribution = await find_contribution(client, round_id, b_headers, member_b["id"])

    clock.now = datetime(2024, 1, 7)
    first = await client.post(f"{API}/contributions/{contribution['id']}/mark-paid", headers=b_headers)
    clock.now = datetime(2024, 1, 9)
    second = await client.post(f"{API}/contributions/{contribution['id']}/mark-paid", headers=b_headers)

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["data"]["paid_date"] == first.json()["data"]["paid_date"] == "2024-01-07T00:00:00"

    resp = await client.get(f"{API}/rounds/{round_id}/timeline", headers=b_headers)
    recorded = [e for e in resp.json()["data"] if e["event_type"] == "contribution_recorded"]
    assert len(recorded) == 1
    assert recorded[0]["event_data"]["contribution_id"] == contribution["id"]
    assert recorded[0]["event_data"]["contribution_amount"] == "100.00"
    assert recorded[0]["event_data"]["currency"] == "USD"

@pytest.mark.asyncio
async def test_late_contribution_can_be_marked_paid(client: AsyncClient, clock):
    setup = await setup_full_round(client)
    round_id = setup["round"]["id"]
    member_c, c_headers = setup["member_c"]
    contribution = await find_contribution(client, round_id, c_headers, member_c["id"])

    clock.now = datetime(2024, 2, 1)
    assert (await find_contribution(client, round_id, c_headers, member_c["id"]))["status"] == "late"

    resp = await client.post(f"{API}/contributions/{contribution['id']}/mark-paid", headers=c_headers)
    assert resp.json()["data"]["status"] == "paid"

@pytest.mark.asyncio
async def test_mark_paid_errors(client: AsyncClient):
    setup = await setup_full_round(client)
    round_id = setup["round"]["id"]
    organizer, headers = setup["organizer"]
    _, b_headers = setup["member_b"]
    contribution = await find_contribution(client, round_id, headers, organizer["id"])

    resp = await client.post(f"{API}/contributions/{contribution['id']}/mark-paid", headers=b_headers)
    assert resp.status_code == 403

    resp = await client.post(f"{API}/contributions/{uuid.uuid4()}/mark-paid", headers=headers)
    assert resp.status_code == 404

    await client.delete(f"{API}/rounds/{round_id}/archive", headers=headers)
    resp = await client.post(f"{API}/contributions/{contribution['id']}/mark-paid", headers=headers)
    assert resp.status_code == 409
    assert resp.json()["data"]["code"] == "INVALID_STATE"

@pytest.mark.asyncio
async def test_contributions_are_members_only(client: AsyncClient):
    setup = await setup_full_round(client)
    _, outsider_headers = await create_user_and_get_headers(client)

    resp = await client.get(f"{API}/rounds/{setup['round']['id']}/contributions", headers=outsider_headers)

    assert resp.status_code == 403

@pytest.mark.asyncio
async def test_sweep_persists_late_status(client: AsyncClient, session, clock):
    setup = await setup_full_round(client)
    round_id = setup["round"]["id"]
    member_b, b_headers = setup["member_b"]
    await get_contributions(client, round_id, b_headers)

    # Organizer's first contribution was due 2024-01-01, B's 2024-01-08; grace is 3 days
    updated = await sweep_late(session, datetime(2024, 1, 10))
    assert updated == 1

    result = await session.execute(select(Contribution).where(Contribution.status == ContributionStatus.LATE))
    late = result.scalars().all()
    assert len(late) == 1
    assert late[0].due_date == datetime(2024, 1, 1)

    assert await sweep_late(session, datetime(2024, 1, 10)) == 0

@pytest.mark.asyncio
async def test_worker_sweep_uses_its_own_engine(monkeypatch):
    calls = []

    async def fake_sweep(session, now):
        calls.append(now)
        return 3

    monkeypatch.setattr("app.services.ledger.sweep_late", fake_sweep)

    assert await run_late_sweep() == 3
    assert len(calls) == 1

@pytest.mark.asyncio
async def test_mark_paid_that_loses_the_race_returns_the_settled_row(client: AsyncClient, session):
    setup = await setup_full_round(client)
    round_id = setup["round"]["id"]
    member_b, b_headers = setup["member_b"]
    found = await find_contribution(client, round_id, b_headers, member_b["id"])
    contribution_id = uuid.UUID(found["id"])

    # Read as pending, then settled by a request from another device
    contribution = await session.get(Contribution, contribution_id)
    assert contribution.status == ContributionStatus.PENDING
    await session.execute(
        update(Contribution)
        .where(Contribution.id == contribution_id)
        .values(status=ContributionStatus.PAID, paid_date=datetime(2024, 1, 7))
        .execution_options(synchronize_session=False)
    )
    await session.commit()

    result = await mark_paid(session, contribution_id, uuid.UUID(member_b["id"]), datetime(2024, 1, 9))

    assert result.status == ContributionStatus.PAID
    assert result.paid_date == datetime(2024, 1, 7)

    resp = await client.get(f"{API}/rounds/{round_id}/timeline", headers=b_headers)
    assert "contribution_recorded" not in {e["event_type"] for e in resp.json()["data"]}
