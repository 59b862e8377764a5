from typing import AsyncIterator

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import DeclarativeBase

from app.config import Config


# SQLAlchemy Base for ORM models
class Base(DeclarativeBase):
    pass


def get_async_url(url: str) -> str:
    """Convert database URL to async SQLAlchemy format."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif url.startswith("mysql://"):
        return url.replace("mysql://", "mysql+aiomysql://", 1)
    elif url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


# Async engine for SQLAlchemy
engine: AsyncEngine = create_async_engine(
    get_async_url(Config.DATABASE_URL),
    echo=Config.SQL_ECHO
)

# Session factory
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    """One session per request."""
    async with async_session() as session:
        yield session


async def create_tables():
    """Create all tables that do not exist yet."""
    # Register models on Base.metadata
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine():
    """Close pooled connections."""
    await engine.dispose()
