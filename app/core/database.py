"""
Async database configuration with lazy engine creation and session management
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.logging import log


class DatabaseConfig:
    """Database configuration with environment-based settings"""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.database_url
        self.pool_size = settings.db_pool_size
        self.max_overflow = settings.db_max_overflow
        self.pool_pre_ping = settings.db_pool_pre_ping
        self.echo = settings.db_echo

        # Advanced pool settings
        self.pool_recycle = 3600  # Recycle connections after 1 hour
        self.pool_timeout = 30  # Pool timeout in seconds

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def engine_kwargs(self) -> Dict[str, Any]:
        """Get async engine configuration"""
        if self.is_sqlite:
            return {"echo": self.echo}

        return {
            "echo": self.echo,
            "pool_pre_ping": self.pool_pre_ping,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_recycle": self.pool_recycle,
            "pool_timeout": self.pool_timeout,
            "connect_args": {"server_settings": {"application_name": settings.PROJECT_NAME, "jit": "off"}},
        }


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory producing sqlmodel sessions (exec() support)"""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


class DatabaseSessionManager:
    """Manages database session lifecycle with proper error handling"""

    def __init__(self, config: Optional[DatabaseConfig] = None):
        self.config = config or DatabaseConfig()
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_async_engine(self.config.database_url, **self.config.engine_kwargs)
            self._sessionmaker = create_session_factory(self._engine)
        return self._engine

    @property
    def sessionmaker(self) -> async_sessionmaker:
        if self._sessionmaker is None:
            self._sessionmaker = create_session_factory(self.engine)
        return self._sessionmaker

    async def init(self):
        """Initialize the database connection"""
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
                log.info("Database connection established successfully")
        except Exception as e:
            log.error("Failed to connect to database", error=str(e))
            raise

    async def close(self):
        """Close database connection"""
        if self._engine is None:
            return

        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        log.info("Database connection closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a transactional scope with proper error handling"""
        async with self.sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                log.error("Database session error", error=str(e))
                raise

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide an explicit transaction scope"""
        async with self.session() as session:
            async with session.begin():
                yield session


# Global session manager instance
db_manager = DatabaseSessionManager()


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Async session dependency with proper lifecycle management"""
    async with db_manager.session() as session:
        yield session


async def init_db():
    """Create tables (development/seeding; production uses Alembic)"""
    # Import models so their tables are registered on the metadata
    import app.models  # noqa: F401

    async with db_manager.engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
        log.info("Database tables created")


async def check_database_health() -> dict:
    """Check database health and connection status"""
    try:
        async with db_manager.session() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()

        return {"status": "healthy", "pool_status": db_manager.engine.pool.status()}
    except Exception as e:
        log.error("Database health check failed", error=str(e))
        return {"status": "unhealthy", "error": str(e)}


__all__ = [
    "DatabaseConfig",
    "DatabaseSessionManager",
    "create_session_factory",
    "db_manager",
    "get_async_session",
    "init_db",
    "check_database_health",
]
