"""Per-aggregate locks and the unit-of-work deadline.

Row locks (``SELECT ... FOR UPDATE``) serialize writers across processes on
Postgres. Within one process the same aggregates are also guarded by an
``asyncio.Lock`` keyed by aggregate id, so check-then-act sequences stay
atomic on stores without row locking (SQLite in tests) and concurrent
requests queue in-process instead of piling onto the database.

Lock order is global: the job lock first, then account locks sorted by key.

The deadline set by ``run_unit_of_work`` applies to the outermost locked
section only: lock waits, queries and the commit. Post-commit work such as
refreshing rows and storing notifications runs after the locks are released
and is never cut short by it.
"""

import asyncio
import logging
import uuid
import weakref
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import AsyncExitStack, asynccontextmanager
from contextvars import ContextVar
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.errors import OperationTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Entries vanish once no coroutine holds or waits on the lock
_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

# Loop time by which the current unit of work must have committed
_deadline: ContextVar[float | None] = ContextVar("unit_of_work_deadline", default=None)


def job_key(job_id: uuid.UUID) -> str:
    return f"job:{job_id}"


def account_key(user_id: uuid.UUID) -> str:
    return f"account:{user_id}"


def _get_lock(key: str) -> asyncio.Lock:
    lock = _locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _locks[key] = lock
    return lock


@asynccontextmanager
async def aggregate_locks(
    job_id: uuid.UUID | None = None,
    account_user_ids: list[uuid.UUID] | tuple[uuid.UUID, ...] = (),
) -> AsyncIterator[None]:
    """Acquire the job lock, then account locks in sorted order.

    Inside ``run_unit_of_work`` the outermost section is bounded by the
    unit-of-work deadline and raises ``TimeoutError`` when it expires.
    """
    keys: list[str] = []
    if job_id is not None:
        keys.append(job_key(job_id))
    keys.extend(sorted({account_key(uid) for uid in account_user_ids}))

    # Strong references keep the weak-valued entries alive while held
    held = [_get_lock(key) for key in keys]
    async with AsyncExitStack() as stack:
        deadline = _deadline.get()
        if deadline is not None:
            await stack.enter_async_context(asyncio.timeout_at(deadline))
            # Nested sections run under the timeout already armed here
            token = _deadline.set(None)
            stack.callback(_deadline.reset, token)
        for lock in held:
            await stack.enter_async_context(lock)
        yield


async def run_unit_of_work(
    db: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    name: str,
) -> T:
    """Run one core operation under the configured deadline.

    The deadline bounds the operation's locked section, which ends in its
    commit. On timeout the session is rolled back so no partial state
    survives.
    """
    loop = asyncio.get_running_loop()
    token = _deadline.set(loop.time() + settings.operation_timeout_seconds)
    try:
        return await operation()
    except TimeoutError:
        await db.rollback()
        logger.warning("Unit of work %s exceeded %ss, rolled back", name, settings.operation_timeout_seconds)
        raise OperationTimeout(f"{name} timed out, no changes were applied")
    finally:
        _deadline.reset(token)
