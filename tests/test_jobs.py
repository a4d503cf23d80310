"""Tests for the job lifecycle: accept, complete, cancel, with escrow effects."""

import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient

from tests.conftest import create_user, fund_wallet, get_balances, place_bid, post_job


async def _job_with_bid(
    client: AsyncClient, owner_funds: str, bid_amount: str
) -> tuple[dict, dict, dict[str, str], dict[str, str]]:
    """Owner posts a job, a vendor bids. Returns (job, bid, owner_headers, vendor_headers)."""
    _, owner = await create_user(client, "owner@example.com", "Owner")
    _, vendor = await create_user(client, "vendor@example.com", "Vendor", role="vendor")
    await fund_wallet(client, owner, owner_funds)
    job = await post_job(client, owner)
    bid = await place_bid(client, vendor, job["job_id"], bid_amount)
    return job, bid, owner, vendor


@pytest.mark.asyncio
async def test_create_job(client: AsyncClient) -> None:
    owner_id, owner = await create_user(client, "poster@example.com")
    job = await post_job(client, owner, category="  Plumbing ")
    assert job["status"] == "open"
    assert job["owner_id"] == owner_id
    assert job["category"] == "plumbing"
    assert job["bid_count"] == 0
    assert job["assigned_vendor_id"] is None


@pytest.mark.asyncio
async def test_create_job_budget_range_validated(client: AsyncClient) -> None:
    _, owner = await create_user(client, "range@example.com")
    resp = await client.post(
        "/jobs",
        json={
            "title": "Wire a socket",
            "description": "Kitchen socket",
            "category": "electrical",
            "budget_min": "500.00",
            "budget_max": "100.00",
        },
        headers=owner,
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_job_requires_session(client: AsyncClient) -> None:
    resp = await client.post(
        "/jobs",
        json={"title": "Mow the lawn", "description": "Front and back", "category": "gardening"},
    )
    assert resp.status_code == 401

    resp = await client.post(
        "/jobs",
        json={"title": "Mow the lawn", "description": "Front and back", "category": "gardening"},
        headers={"Authorization": f"Bearer {uuid.uuid4()}.0.deadbeef"},
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_list_and_get_jobs(client: AsyncClient) -> None:
    _, owner = await create_user(client, "lister@example.com")
    _, other = await create_user(client, "other@example.com")
    mine = await post_job(client, owner, title="Clean gutters", category="cleaning")
    await post_job(client, other, title="Fix door hinge", category="carpentry")

    resp = await client.get("/jobs", params={"category": "cleaning"}, headers=owner)
    assert resp.status_code == 200
    assert [j["job_id"] for j in resp.json()] == [mine["job_id"]]

    resp = await client.get("/jobs", params={"mine": "true"}, headers=owner)
    assert [j["job_id"] for j in resp.json()] == [mine["job_id"]]

    resp = await client.get(f"/jobs/{mine['job_id']}", headers=other)
    assert resp.status_code == 200
    assert resp.json()["title"] == "Clean gutters"


@pytest.mark.asyncio
async def test_get_missing_job_404(client: AsyncClient) -> None:
    _, user = await create_user(client, "missing@example.com")
    resp = await client.get(f"/jobs/{uuid.uuid4()}", headers=user)
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_accept_bid_holds_escrow(client: AsyncClient) -> None:
    """Owner with 1000 accepts an 800 bid: 200 available, 800 in escrow."""
    job, bid, owner, vendor = await _job_with_bid(client, "1000.00", "800.00")

    resp = await client.post(f"/jobs/{job['job_id']}/bids/{bid['bid_id']}/accept", headers=owner)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["job"]["status"] == "in_progress"
    assert body["job"]["assigned_vendor_id"] == bid["vendor_id"]
    assert body["job"]["accepted_bid_id"] == bid["bid_id"]
    assert body["accepted_bid"]["status"] == "accepted"

    assert await get_balances(client, owner) == (Decimal("200.00"), Decimal("800.00"))


@pytest.mark.asyncio
async def test_complete_job_releases_escrow(client: AsyncClient) -> None:
    job, bid, owner, vendor = await _job_with_bid(client, "1000.00", "800.00")
    await client.post(f"/jobs/{job['job_id']}/bids/{bid['bid_id']}/accept", headers=owner)

    resp = await client.post(f"/jobs/{job['job_id']}/complete", headers=owner)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["job"]["status"] == "completed"
    assert Decimal(str(body["released_amount"])) == Decimal("800.00")

    assert await get_balances(client, owner) == (Decimal("200.00"), Decimal("0.00"))
    assert await get_balances(client, vendor) == (Decimal("800.00"), Decimal("0.00"))

    resp = await client.get("/wallet/transactions", headers=vendor)
    [payment] = resp.json()
    assert payment["type"] == "credit"
    assert payment["related_job_id"] == job["job_id"]


@pytest.mark.asyncio
async def test_accept_bid_insufficient_funds_changes_nothing(client: AsyncClient) -> None:
    """Owner with 500 cannot accept an 800 bid; job and bid are untouched."""
    job, bid, owner, vendor = await _job_with_bid(client, "500.00", "800.00")

    resp = await client.post(f"/jobs/{job['job_id']}/bids/{bid['bid_id']}/accept", headers=owner)
    assert resp.status_code == 422
    assert resp.json()["error"] == "resource_constraint"

    resp = await client.get(f"/jobs/{job['job_id']}", headers=owner)
    assert resp.json()["status"] == "open"
    assert resp.json()["assigned_vendor_id"] is None

    resp = await client.get(f"/jobs/{job['job_id']}/bids", headers=owner)
    assert [b["status"] for b in resp.json()] == ["pending"]

    assert await get_balances(client, owner) == (Decimal("500.00"), Decimal("0.00"))


@pytest.mark.asyncio
async def test_accept_bid_rejects_siblings(client: AsyncClient) -> None:
    """Three pending bids; accepting the second rejects the other two."""
    _, owner = await create_user(client, "multi@example.com")
    await fund_wallet(client, owner, "1000.00")
    job = await post_job(client, owner)

    bids = []
    for i in range(3):
        _, vendor = await create_user(client, f"vendor{i}@example.com", role="vendor")
        bids.append(await place_bid(client, vendor, job["job_id"], f"{300 + i * 10}.00"))

    resp = await client.post(
        f"/jobs/{job['job_id']}/bids/{bids[1]['bid_id']}/accept", headers=owner
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["job"]["bid_count"] == 3

    resp = await client.get(f"/jobs/{job['job_id']}/bids", headers=owner)
    statuses = {b["bid_id"]: b["status"] for b in resp.json()}
    assert statuses[bids[0]["bid_id"]] == "rejected"
    assert statuses[bids[1]["bid_id"]] == "accepted"
    assert statuses[bids[2]["bid_id"]] == "rejected"


@pytest.mark.asyncio
async def test_accept_bid_only_owner(client: AsyncClient) -> None:
    job, bid, owner, vendor = await _job_with_bid(client, "1000.00", "300.00")
    resp = await client.post(f"/jobs/{job['job_id']}/bids/{bid['bid_id']}/accept", headers=vendor)
    assert resp.status_code == 403
    assert resp.json()["error"] == "authorization"


@pytest.mark.asyncio
async def test_accept_bid_from_other_job_404(client: AsyncClient) -> None:
    job, bid, owner, vendor = await _job_with_bid(client, "1000.00", "300.00")
    other_job = await post_job(client, owner, title="Second job")
    resp = await client.post(
        f"/jobs/{other_job['job_id']}/bids/{bid['bid_id']}/accept", headers=owner
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_accept_twice_conflicts(client: AsyncClient) -> None:
    job, bid, owner, vendor = await _job_with_bid(client, "1000.00", "300.00")
    url = f"/jobs/{job['job_id']}/bids/{bid['bid_id']}/accept"
    assert (await client.post(url, headers=owner)).status_code == 200
    resp = await client.post(url, headers=owner)
    assert resp.status_code == 409
    assert resp.json()["error"] == "state_conflict"
    assert await get_balances(client, owner) == (Decimal("700.00"), Decimal("300.00"))


@pytest.mark.asyncio
async def test_complete_requires_in_progress(client: AsyncClient) -> None:
    job, _, owner, _ = await _job_with_bid(client, "1000.00", "300.00")
    resp = await client.post(f"/jobs/{job['job_id']}/complete", headers=owner)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_complete_only_owner(client: AsyncClient) -> None:
    job, bid, owner, vendor = await _job_with_bid(client, "1000.00", "300.00")
    await client.post(f"/jobs/{job['job_id']}/bids/{bid['bid_id']}/accept", headers=owner)
    resp = await client.post(f"/jobs/{job['job_id']}/complete", headers=vendor)
    assert resp.status_code == 403
    assert await get_balances(client, vendor) == (Decimal("0.00"), Decimal("0.00"))


@pytest.mark.asyncio
async def test_completed_job_is_terminal(client: AsyncClient) -> None:
    job, bid, owner, _ = await _job_with_bid(client, "1000.00", "300.00")
    await client.post(f"/jobs/{job['job_id']}/bids/{bid['bid_id']}/accept", headers=owner)
    await client.post(f"/jobs/{job['job_id']}/complete", headers=owner)

    assert (await client.post(f"/jobs/{job['job_id']}/complete", headers=owner)).status_code == 409
    assert (await client.post(f"/jobs/{job['job_id']}/cancel", headers=owner)).status_code == 409


@pytest.mark.asyncio
async def test_cancel_open_job_rejects_bids(client: AsyncClient) -> None:
    job, bid, owner, vendor = await _job_with_bid(client, "1000.00", "300.00")

    resp = await client.post(f"/jobs/{job['job_id']}/cancel", headers=owner)
    assert resp.status_code == 200, resp.text
    assert resp.json()["job"]["status"] == "cancelled"
    assert resp.json()["refunded_amount"] is None

    resp = await client.get(f"/jobs/{job['job_id']}/bids", headers=owner)
    assert [b["status"] for b in resp.json()] == ["rejected"]
    assert await get_balances(client, owner) == (Decimal("1000.00"), Decimal("0.00"))


@pytest.mark.asyncio
async def test_cancel_in_progress_refunds_escrow(client: AsyncClient) -> None:
    job, bid, owner, vendor = await _job_with_bid(client, "1000.00", "800.00")
    await client.post(f"/jobs/{job['job_id']}/bids/{bid['bid_id']}/accept", headers=owner)

    resp = await client.post(f"/jobs/{job['job_id']}/cancel", headers=owner)
    assert resp.status_code == 200, resp.text
    assert resp.json()["job"]["status"] == "cancelled"
    assert Decimal(str(resp.json()["refunded_amount"])) == Decimal("800.00")

    assert await get_balances(client, owner) == (Decimal("1000.00"), Decimal("0.00"))
    assert await get_balances(client, vendor) == (Decimal("0.00"), Decimal("0.00"))


@pytest.mark.asyncio
async def test_cancel_only_owner(client: AsyncClient) -> None:
    job, _, owner, vendor = await _job_with_bid(client, "1000.00", "300.00")
    resp = await client.post(f"/jobs/{job['job_id']}/cancel", headers=vendor)
    assert resp.status_code == 403
