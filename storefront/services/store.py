"""
Transaction handle handed to the checkout engine.

Wraps an AsyncSession so the engine only sees the handful of operations it
needs and never reaches for a module-level connection.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

import structlog
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.services.errors import PersistenceError, StorefrontError, TransactionConflictError

logger = structlog.get_logger()

# serialization_failure, deadlock_detected, lock_not_available
_CONFLICT_SQLSTATES = {"40001", "40P01", "55P03"}


class Store:
    """SQL-executing transaction handle"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, statement) -> Optional[Any]:
        """First entity (or scalar) of a SELECT, or None"""
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def all(self, statement) -> List[Any]:
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def scalar(self, statement) -> Any:
        return await self.session.scalar(statement)

    async def run(self, statement):
        """Execute a DML statement and return its result (rowcount)"""
        return await self.session.execute(statement)

    def add(self, instance) -> None:
        self.session.add(instance)

    async def flush(self) -> None:
        await self.session.flush()

    async def begin(self) -> None:
        if not self.session.in_transaction():
            await self.session.begin()

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    def savepoint(self):
        """Nested transaction; rolling it back keeps the outer one usable"""
        return self.session.begin_nested()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["Store"]:
        """
        Run a block as one atomic unit.

        Commits when the block finishes, rolls back on any exception
        (cancellation included) and re-raises it. Database errors are
        translated into the checkout error taxonomy.
        """
        await self.begin()
        try:
            yield self
            await self.commit()
        except BaseException as exc:
            try:
                await self.rollback()
            except SQLAlchemyError as rollback_error:
                logger.warning("Rollback failed", error=str(rollback_error))
            if isinstance(exc, SQLAlchemyError):
                raise translate_db_error(exc) from exc
            raise


def translate_db_error(exc: SQLAlchemyError) -> StorefrontError:
    """Map a database error onto the checkout error taxonomy"""
    if isinstance(exc, DBAPIError):
        sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
        message = str(exc.orig).lower()
        if sqlstate in _CONFLICT_SQLSTATES or "database is locked" in message or "deadlock" in message:
            logger.warning("Transaction conflict", error=str(exc.orig))
            return TransactionConflictError()

    statement = getattr(exc, "statement", None)
    logger.error("Persistence failure", error=str(exc), statement=statement)
    return PersistenceError(statement=statement)
