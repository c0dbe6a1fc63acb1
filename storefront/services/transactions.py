"""
Transaction Runner
==================

Runs a unit of work as one all-or-nothing database transaction, and builds
dialect-aware upserts for the writes that need one.

The work function is re-executed from scratch (after a rollback) when the
database aborts it with a serialization failure or a deadlock. Domain errors
and every other database error roll back and propagate immediately.

Usage:
    async def _work():
        ...  # reads and writes through `db`
        return order

    order = await run_in_transaction(db, _work)
"""

import logging
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from storefront.config import get_settings

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected
RETRYABLE_SQLSTATES = {"40001", "40P01"}

T = TypeVar("T")


def is_serialization_failure(exception: BaseException) -> bool:
    """Return True if the database asked us to retry the transaction."""
    if not isinstance(exception, DBAPIError):
        return False

    orig = exception.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code in RETRYABLE_SQLSTATES:
        return True

    # SQLite reports writer contention as an OperationalError string
    return "database is locked" in str(orig).lower()


def dialect_insert(db: AsyncSession, model):
    """An INSERT construct supporting ON CONFLICT for the bind serving `model`."""
    if db.get_bind(model).dialect.name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    else:
        from sqlalchemy.dialects.sqlite import insert
    return insert(model)


async def run_in_transaction(
    db: AsyncSession,
    work: Callable[[], Awaitable[T]],
    attempts: Optional[int] = None,
) -> T:
    """
    Execute `work` and commit, retrying on serialization failures.

    Args:
        db: The request's session. Any transaction already open on it is
            committed together with the work.
        work: Zero-argument coroutine function doing all reads and writes.
        attempts: Override for TX_RETRY_ATTEMPTS.

    Returns:
        Whatever `work` returned on the successful attempt.
    """
    settings = get_settings()
    retrying = AsyncRetrying(
        retry=retry_if_exception(is_serialization_failure),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=settings.TX_RETRY_MAX_WAIT),
        stop=stop_after_attempt(attempts or settings.TX_RETRY_ATTEMPTS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )

    async for attempt in retrying:
        with attempt:
            try:
                result = await work()
                await db.commit()
            except Exception:
                await db.rollback()
                raise
    return result
