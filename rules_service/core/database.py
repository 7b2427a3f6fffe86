import logging
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from typing import AsyncGenerator

from rules_service.models import Base
from .config import settings


def _engine_options(url: str) -> dict:
    """Pool and driver options for the configured database."""
    if url.startswith("sqlite"):
        # aiosqlite picks its own pool; sizing arguments are rejected
        return {"connect_args": {"check_same_thread": False}}

    return {
        "pool_pre_ping": True,  # Verify connections before use
        "pool_recycle": 3600 if not settings.is_local else -1,
        "pool_size": 10 if not settings.is_local else 5,
        "max_overflow": 20 if not settings.is_local else 10,
        "pool_timeout": 30,  # Wait up to 30 seconds for connection from pool
        "connect_args": {
            "command_timeout": 30,  # Command timeout in seconds
            "timeout": 10,  # Connection timeout in seconds
            "server_settings": {
                "application_name": "rules-service",
            },
        },
    }


DATABASE_URL = settings.database_url

engine = create_async_engine(
    DATABASE_URL,
    echo=False,  # Disable SQLAlchemy query logging (use Python logging config instead)
    future=True,
    **_engine_options(DATABASE_URL),
)

# Create async session factory
AsyncSessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables():
    """Create all database tables"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_database():
    """Initialize database with tables and the default threat/template catalog"""
    logger = logging.getLogger(__name__)

    try:
        await create_tables()
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating database tables: {e}", exc_info=True)
        raise RuntimeError(f"Failed to initialize database: {e}") from e

    if settings.SEED_DEFAULTS:
        from rules_service.core.seed import seed_defaults

        async with AsyncSessionLocal() as session:
            await seed_defaults(session)
