"""
Async error handling utilities for database operations.

Classifies SQLAlchemy and asyncpg failures into CoachFit domain errors and
provides the transaction helper services use for multi-statement writes.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import asyncpg
from fastapi import status
from sqlalchemy.exc import (
    DataError,
    DatabaseError,
    DisconnectionError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as SQLTimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    CoachFitError,
    ConflictError,
    ServiceUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE codes
UNIQUE_VIOLATION = "23505"
EXCLUSION_VIOLATION = "23P01"
FOREIGN_KEY_VIOLATION = "23503"
CHECK_VIOLATION = "23514"
NOT_NULL_VIOLATION = "23502"


class AsyncErrorHandler:
    """
    Error classifier for database operations.

    Maps each failure to a status code, a client-safe message and the
    CoachFitError subclass to raise.
    """

    # Ordered: subclasses before their bases
    ERROR_MAPPINGS = (
        (IntegrityError, {
            'status_code': status.HTTP_409_CONFLICT,
            'detail': 'Data integrity constraint violation',
            'exception': ConflictError,
        }),
        (DisconnectionError, {
            'status_code': status.HTTP_503_SERVICE_UNAVAILABLE,
            'detail': 'Database connection lost',
            'exception': ServiceUnavailableError,
        }),
        (SQLTimeoutError, {
            'status_code': status.HTTP_503_SERVICE_UNAVAILABLE,
            'detail': 'Database operation timed out',
            'exception': ServiceUnavailableError,
        }),
        (OperationalError, {
            'status_code': status.HTTP_503_SERVICE_UNAVAILABLE,
            'detail': 'Database operation failed',
            'exception': ServiceUnavailableError,
        }),
        (DataError, {
            'status_code': status.HTTP_400_BAD_REQUEST,
            'detail': 'Invalid data format',
            'exception': ValidationError,
        }),
        (DatabaseError, {
            'status_code': status.HTTP_500_INTERNAL_SERVER_ERROR,
            'detail': 'Database error occurred',
            'exception': CoachFitError,
        }),
    )

    POSTGRES_CONSTRAINT_MESSAGES = {
        EXCLUSION_VIOLATION: 'Time slot conflicts with an existing appointment',
        UNIQUE_VIOLATION: 'A record with these values already exists',
        FOREIGN_KEY_VIOLATION: 'Referenced record does not exist',
    }

    @staticmethod
    def _sqlstate(error: Exception) -> Optional[str]:
        """Dig the SQLSTATE out of a wrapped asyncpg error, if there is one."""
        orig = getattr(error, "orig", None)
        for candidate in (orig, getattr(orig, "__cause__", None), error):
            if isinstance(candidate, asyncpg.PostgresError):
                return candidate.sqlstate
            code = getattr(candidate, "sqlstate", None)
            if code:
                return code
        return None

    @classmethod
    def classify_error(cls, error: Exception) -> Dict[str, Any]:
        """
        Classify a database error.

        Returns:
            Dictionary with status_code, detail and exception class
        """
        sqlstate = cls._sqlstate(error)
        if sqlstate in cls.POSTGRES_CONSTRAINT_MESSAGES:
            return {
                'status_code': status.HTTP_409_CONFLICT,
                'detail': cls.POSTGRES_CONSTRAINT_MESSAGES[sqlstate],
                'exception': ConflictError,
            }
        if sqlstate in (CHECK_VIOLATION, NOT_NULL_VIOLATION):
            return {
                'status_code': status.HTTP_400_BAD_REQUEST,
                'detail': 'Data validation constraint violation',
                'exception': ValidationError,
            }

        for exc_type, mapping in cls.ERROR_MAPPINGS:
            if isinstance(error, exc_type):
                return dict(mapping)

        return {
            'status_code': status.HTTP_500_INTERNAL_SERVER_ERROR,
            'detail': 'An unexpected database error occurred',
            'exception': CoachFitError,
        }

    @classmethod
    def handle_error(cls, error: Exception, operation_name: str = "database operation") -> CoachFitError:
        """
        Turn a database error into the domain error to raise.

        Args:
            error: The exception that occurred
            operation_name: Name of the operation for logging
        """
        error_info = cls.classify_error(error)

        if error_info['status_code'] >= 500:
            logger.error(f"Error in {operation_name}: {error}")
        else:
            logger.warning(f"Rejected {operation_name}: {error}")

        return error_info['exception'](error_info['detail'])


@asynccontextmanager
async def async_transaction(db: AsyncSession, operation_name: str = "database operation"):
    """
    Commit on success, roll back on any error.

    Usage:
        async with async_transaction(db, "create appointment"):
            ...  # statements share one transaction
    """
    try:
        yield db
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise AsyncErrorHandler.handle_error(e, operation_name) from e
    except Exception:
        await db.rollback()
        raise
