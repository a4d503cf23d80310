"""Tests for error kinds and their HTTP mapping."""

import pytest
from httpx import AsyncClient

from app.errors import (
    AlreadyResolved,
    BidNotPending,
    DuplicateBid,
    InsufficientFunds,
    InvalidEscrowState,
    InvalidJobState,
    JobNotOpen,
    ListingUnderModeration,
    MarketplaceError,
    NotAuthorized,
    NotFound,
    OperationTimeout,
    ProfileExists,
    SelfBidForbidden,
    ValidationFailed,
)
from tests.conftest import create_user


@pytest.mark.parametrize(
    ("error", "status_code", "kind"),
    [
        (ValidationFailed("bad"), 422, "validation"),
        (NotFound("gone"), 404, "not_found"),
        (JobNotOpen("in_progress"), 409, "state_conflict"),
        (BidNotPending("withdrawn"), 409, "state_conflict"),
        (DuplicateBid(), 409, "state_conflict"),
        (InvalidJobState("completed", "cancelled"), 409, "state_conflict"),
        (AlreadyResolved("dismissed"), 409, "state_conflict"),
        (ProfileExists(), 409, "state_conflict"),
        (ListingUnderModeration("pending"), 409, "state_conflict"),
        (NotAuthorized("nope"), 403, "authorization"),
        (SelfBidForbidden(), 403, "authorization"),
        (InsufficientFunds("10.00", "20.00"), 422, "resource_constraint"),
        (InvalidEscrowState("0.00", "5.00"), 422, "resource_constraint"),
        (OperationTimeout("slow"), 503, "infrastructure"),
    ],
)
def test_error_kinds(error: MarketplaceError, status_code: int, kind: str) -> None:
    assert error.status_code == status_code
    assert error.kind == kind


def test_only_infrastructure_errors_unexpected() -> None:
    assert OperationTimeout("slow").expected is False
    assert InsufficientFunds("1", "2").expected is True


def test_messages_carry_context() -> None:
    assert "in_progress" in JobNotOpen("in_progress").detail
    err = InsufficientFunds("10.00", "20.00")
    assert err.available == "10.00"
    assert err.requested == "20.00"


@pytest.mark.asyncio
async def test_handler_shapes_response(client: AsyncClient) -> None:
    _, headers = await create_user(client, "shape@example.com")
    resp = await client.post("/wallet/withdraw", json={"amount": "100.00"}, headers=headers)
    assert resp.status_code == 422
    assert resp.json()["error"] == "resource_constraint"
    assert "Insufficient balance" in resp.json()["detail"]
