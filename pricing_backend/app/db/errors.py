"""
Store failure translation.

Wraps SQLAlchemy errors into PersistenceError so callers see the error
taxonomy rather than driver exceptions.
"""

import logging
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from pricing_backend.app.core.exceptions import PersistenceError

logger = logging.getLogger("fare_engine.db")


@asynccontextmanager
async def persistence_guard(db: AsyncSession, operation: str):
    """
    Roll back and re-raise store failures as PersistenceError.

    Only the operation name and the exception class are logged; bound
    parameter values never reach the log.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(
            "Store failure",
            extra={"operation": operation, "error_type": type(exc).__name__},
        )
        raise PersistenceError(operation) from exc
