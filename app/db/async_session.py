import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings

logger = logging.getLogger(__name__)


class AsyncDatabaseManager:
    """
    Manages async database connections and sessions.

    Owns the single async engine for the process, its connection pool and the
    session factory used by request handlers.
    """

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.async_database_url
        self.async_engine = None
        self.async_session_factory = None
        self._is_initialized = False
        self._initialize_engine()

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def _initialize_engine(self):
        """Initialize the async database engine."""
        if not self.database_url:
            raise ValueError("Async database URL is not configured")

        logger.info(f"Initializing async database engine with URL: {self.database_url[:50]}...")
        logger.info(f"Environment: {settings.ENVIRONMENT}")

        if self.is_sqlite:
            # aiosqlite does not use a sized queue pool
            engine_kwargs = {"connect_args": {"check_same_thread": False}}
        else:
            pool_size = settings.ASYNC_DB_POOL_SIZE
            max_overflow = settings.ASYNC_DB_MAX_OVERFLOW
            if settings.ENVIRONMENT == "development":
                pool_size = min(pool_size, 5)
                max_overflow = min(max_overflow, 5)

            logger.info(f"Pool configuration - Size: {pool_size}, Max Overflow: {max_overflow}, "
                        f"Timeout: {settings.ASYNC_DB_POOL_TIMEOUT}s, Recycle: {settings.ASYNC_DB_POOL_RECYCLE}s")

            engine_kwargs = {
                "pool_pre_ping": settings.ASYNC_DB_POOL_PRE_PING,
                "pool_size": pool_size,
                "max_overflow": max_overflow,
                "pool_recycle": settings.ASYNC_DB_POOL_RECYCLE,
                "pool_timeout": settings.ASYNC_DB_POOL_TIMEOUT,
                "connect_args": {
                    "server_settings": {"application_name": "coachfit_backend"},
                    "command_timeout": settings.ASYNC_DB_COMMAND_TIMEOUT,
                },
            }

        self.async_engine = create_async_engine(self.database_url, echo=settings.ASYNC_DB_ECHO, **engine_kwargs)
        self.async_session_factory = async_sessionmaker(
            bind=self.async_engine,
            class_=AsyncSession,
            expire_on_commit=False,  # Keep objects accessible after commit
            autoflush=False,
        )
        self._is_initialized = True
        logger.info("Async database engine initialized successfully")

    async def get_async_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get an async database session with proper lifecycle management.

        Rolls back on any exception and always closes the session.
        """
        if not self._is_initialized:
            raise RuntimeError("AsyncDatabaseManager is not initialized")

        async with self.async_session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Database error in session: {e}")
                raise
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def create_tables(self):
        """Create all tables from model metadata (development and SQLite setups)."""
        from app.db.base_class import Base
        import app.models  # noqa: F401  registers every model on Base.metadata

        async with self.async_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created from model metadata")

    async def test_connection(self) -> bool:
        try:
            async with self.async_session_factory() as session:
                await session.execute(text("SELECT 1"))
                return True
        except Exception as e:
            logger.error(f"Database connection test failed: {e}")
            return False

    async def close(self):
        """Dispose of the engine and all pooled connections."""
        if self.async_engine:
            try:
                await self.async_engine.dispose()
                logger.info("Async database engine disposed successfully")
            finally:
                self._is_initialized = False
                self.async_engine = None
                self.async_session_factory = None

# Global async database manager instance (singleton pattern)
_async_db_manager: Optional[AsyncDatabaseManager] = None
_manager_lock = asyncio.Lock()


async def get_async_db_manager() -> AsyncDatabaseManager:
    """Get or create the global async database manager instance."""
    global _async_db_manager

    if _async_db_manager is None:
        async with _manager_lock:
            # Double-check locking pattern
            if _async_db_manager is None:
                _async_db_manager = AsyncDatabaseManager()
                logger.info("Created new AsyncDatabaseManager singleton instance")

    return _async_db_manager


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for async database session injection.

    Yields:
        AsyncSession: Database session for async operations
    """
    manager = await get_async_db_manager()
    async for session in manager.get_async_session():
        yield session


async def startup_async_database():
    """Initialize async database connections on application startup."""
    logger.info("Starting async database initialization...")
    manager = await get_async_db_manager()

    if settings.AUTO_CREATE_TABLES:
        await manager.create_tables()

    if not await manager.test_connection():
        raise RuntimeError("Failed to establish database connection during startup")
    logger.info("Async database startup completed")


async def shutdown_async_database():
    """Clean up async database connections on application shutdown."""
    global _async_db_manager

    if _async_db_manager is not None:
        await _async_db_manager.close()
        _async_db_manager = None
    logger.info("Async database shutdown completed successfully")


async def check_async_database_health(session: AsyncSession) -> dict:
    """
    Run a trivial query on the given session and report latency.

    Returns:
        dict: {"status", "response_time_ms", "timestamp", "error"}
    """
    start_time = time.time()
    health_status = {
        "status": "unhealthy",
        "response_time_ms": 0,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "error": None,
    }

    try:
        await session.execute(text("SELECT 1"))
        health_status["status"] = "healthy"
    except SQLAlchemyError as e:
        health_status["error"] = str(e)
        logger.error(f"Database health check failed: {e}")
    finally:
        health_status["response_time_ms"] = round((time.time() - start_time) * 1000, 2)

    return health_status
