"""Wallet endpoints: balances, transaction history, deposits and withdrawals."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.middleware import AuthenticatedUser, verify_session
from app.auth.rate_limit import check_rate_limit
from app.config import settings
from app.database import get_db
from app.schemas.ledger import (
    DepositRequest,
    TransactionResponse,
    WalletResponse,
    WithdrawRequest,
)
from app.services import ledger as ledger_service
from app.services.locks import run_unit_of_work

router = APIRouter(prefix="/wallet", tags=["wallet"])


@router.get("", response_model=WalletResponse, dependencies=[Depends(check_rate_limit)])
async def get_wallet(
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> WalletResponse:
    """Current available and escrow balances. Creates the account on first use."""
    account = await ledger_service.get_account(db, auth.user_id)
    return WalletResponse.model_validate(account)


@router.get("/transactions", response_model=list[TransactionResponse], dependencies=[Depends(check_rate_limit)])
async def list_transactions(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> list[TransactionResponse]:
    entries = await ledger_service.list_transactions(db, auth.user_id, limit=limit, offset=offset)
    return [TransactionResponse.model_validate(e) for e in entries]


@router.post("/deposit", response_model=TransactionResponse, status_code=201, dependencies=[Depends(check_rate_limit)])
async def dev_deposit(
    data: DepositRequest,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> TransactionResponse:
    """Credit the caller's wallet without a payment gateway. Development only."""
    if not (settings.dev_deposit_enabled and settings.dev_endpoints_allowed):
        raise HTTPException(status_code=404, detail="Not found")
    entry = await run_unit_of_work(
        db,
        lambda: ledger_service.deposit(db, auth.user_id, data.amount, "Development deposit"),
        "deposit",
    )
    return TransactionResponse.model_validate(entry)


@router.post("/withdraw", response_model=TransactionResponse, status_code=201, dependencies=[Depends(check_rate_limit)])
async def withdraw(
    data: WithdrawRequest,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> TransactionResponse:
    """Debit the caller's available balance for a payout."""
    entry = await run_unit_of_work(
        db,
        lambda: ledger_service.withdraw(db, auth.user_id, data.amount, "Withdrawal"),
        "withdraw",
    )
    return TransactionResponse.model_validate(entry)
