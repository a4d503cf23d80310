"""Tests for the bid registry: submit, shortlist, withdraw."""

import uuid

import pytest
from httpx import AsyncClient

from tests.conftest import create_user, fund_wallet, place_bid, post_job


@pytest.mark.asyncio
async def test_submit_bid_increments_bid_count(client: AsyncClient) -> None:
    _, owner = await create_user(client, "owner@example.com")
    vendor_id, vendor = await create_user(client, "vendor@example.com", role="vendor")
    job = await post_job(client, owner)

    bid = await place_bid(client, vendor, job["job_id"], "250.00")
    assert bid["status"] == "pending"
    assert bid["vendor_id"] == vendor_id
    assert bid["job_id"] == job["job_id"]

    resp = await client.get(f"/jobs/{job['job_id']}", headers=owner)
    assert resp.json()["bid_count"] == 1


@pytest.mark.asyncio
async def test_duplicate_bid_rejected(client: AsyncClient) -> None:
    _, owner = await create_user(client, "owner@example.com")
    _, vendor = await create_user(client, "vendor@example.com")
    job = await post_job(client, owner)
    await place_bid(client, vendor, job["job_id"], "250.00")

    resp = await client.post(f"/jobs/{job['job_id']}/bids", json={"amount": "240.00"}, headers=vendor)
    assert resp.status_code == 409
    assert resp.json()["error"] == "state_conflict"


@pytest.mark.asyncio
async def test_rebid_after_withdraw_allowed(client: AsyncClient) -> None:
    _, owner = await create_user(client, "owner@example.com")
    _, vendor = await create_user(client, "vendor@example.com")
    job = await post_job(client, owner)
    bid = await place_bid(client, vendor, job["job_id"], "250.00")

    resp = await client.post(f"/bids/{bid['bid_id']}/withdraw", headers=vendor)
    assert resp.status_code == 200
    assert resp.json()["status"] == "withdrawn"

    await place_bid(client, vendor, job["job_id"], "230.00")
    resp = await client.get(f"/jobs/{job['job_id']}", headers=owner)
    assert resp.json()["bid_count"] == 2


@pytest.mark.asyncio
async def test_cannot_bid_on_own_job(client: AsyncClient) -> None:
    _, owner = await create_user(client, "self@example.com")
    job = await post_job(client, owner)
    resp = await client.post(f"/jobs/{job['job_id']}/bids", json={"amount": "100.00"}, headers=owner)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_bid_on_missing_job_404(client: AsyncClient) -> None:
    _, vendor = await create_user(client, "vendor@example.com")
    resp = await client.post(f"/jobs/{uuid.uuid4()}/bids", json={"amount": "100.00"}, headers=vendor)
    assert resp.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["0", "-10.00", "12.345"])
async def test_bid_amount_validated(client: AsyncClient, amount: str) -> None:
    _, owner = await create_user(client, "owner@example.com")
    _, vendor = await create_user(client, "vendor@example.com")
    job = await post_job(client, owner)
    resp = await client.post(f"/jobs/{job['job_id']}/bids", json={"amount": amount}, headers=vendor)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_bid_on_closed_job_conflicts(client: AsyncClient) -> None:
    _, owner = await create_user(client, "owner@example.com")
    _, vendor = await create_user(client, "vendor@example.com")
    job = await post_job(client, owner)
    await client.post(f"/jobs/{job['job_id']}/cancel", headers=owner)

    resp = await client.post(f"/jobs/{job['job_id']}/bids", json={"amount": "100.00"}, headers=vendor)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_withdraw_only_by_vendor(client: AsyncClient) -> None:
    _, owner = await create_user(client, "owner@example.com")
    _, vendor = await create_user(client, "vendor@example.com")
    job = await post_job(client, owner)
    bid = await place_bid(client, vendor, job["job_id"], "250.00")

    resp = await client.post(f"/bids/{bid['bid_id']}/withdraw", headers=owner)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_withdraw_accepted_bid_conflicts(client: AsyncClient) -> None:
    _, owner = await create_user(client, "owner@example.com")
    _, vendor = await create_user(client, "vendor@example.com")
    await fund_wallet(client, owner, "500.00")
    job = await post_job(client, owner)
    bid = await place_bid(client, vendor, job["job_id"], "250.00")
    await client.post(f"/jobs/{job['job_id']}/bids/{bid['bid_id']}/accept", headers=owner)

    resp = await client.post(f"/bids/{bid['bid_id']}/withdraw", headers=vendor)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_withdrawn_bid_cannot_be_accepted(client: AsyncClient) -> None:
    _, owner = await create_user(client, "owner@example.com")
    _, vendor = await create_user(client, "vendor@example.com")
    await fund_wallet(client, owner, "500.00")
    job = await post_job(client, owner)
    bid = await place_bid(client, vendor, job["job_id"], "250.00")
    await client.post(f"/bids/{bid['bid_id']}/withdraw", headers=vendor)

    resp = await client.post(f"/jobs/{job['job_id']}/bids/{bid['bid_id']}/accept", headers=owner)
    assert resp.status_code == 409
    resp = await client.get(f"/jobs/{job['job_id']}", headers=owner)
    assert resp.json()["status"] == "open"


@pytest.mark.asyncio
async def test_shortlist_then_accept(client: AsyncClient) -> None:
    _, owner = await create_user(client, "owner@example.com")
    _, vendor = await create_user(client, "vendor@example.com")
    await fund_wallet(client, owner, "500.00")
    job = await post_job(client, owner)
    bid = await place_bid(client, vendor, job["job_id"], "250.00")

    resp = await client.post(f"/bids/{bid['bid_id']}/shortlist", headers=vendor)
    assert resp.status_code == 403

    resp = await client.post(f"/bids/{bid['bid_id']}/shortlist", headers=owner)
    assert resp.status_code == 200
    assert resp.json()["status"] == "shortlisted"

    resp = await client.post(f"/jobs/{job['job_id']}/bids/{bid['bid_id']}/accept", headers=owner)
    assert resp.status_code == 200
    assert resp.json()["accepted_bid"]["status"] == "accepted"


@pytest.mark.asyncio
async def test_list_bids_owner_only_and_sorted_by_price(client: AsyncClient) -> None:
    _, owner = await create_user(client, "owner@example.com")
    job = await post_job(client, owner)
    _, cheap = await create_user(client, "cheap@example.com")
    _, pricey = await create_user(client, "pricey@example.com")
    await place_bid(client, pricey, job["job_id"], "400.00")
    await place_bid(client, cheap, job["job_id"], "150.00")

    resp = await client.get(f"/jobs/{job['job_id']}/bids", params={"sort": "price"}, headers=owner)
    assert resp.status_code == 200
    assert [b["amount"] for b in resp.json()] == ["150.00", "400.00"]

    resp = await client.get(f"/jobs/{job['job_id']}/bids", headers=cheap)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_list_my_bids(client: AsyncClient) -> None:
    _, owner = await create_user(client, "owner@example.com")
    _, vendor = await create_user(client, "vendor@example.com")
    job_a = await post_job(client, owner, title="Job A")
    job_b = await post_job(client, owner, title="Job B")
    await place_bid(client, vendor, job_a["job_id"], "100.00")
    await place_bid(client, vendor, job_b["job_id"], "120.00")

    resp = await client.get("/bids", headers=vendor)
    assert resp.status_code == 200
    assert {b["job_id"] for b in resp.json()} == {job_a["job_id"], job_b["job_id"]}
