"""
Database setup and session management.
"""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from aseguradora.config import DatabaseConfig


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


def get_database_url(config: DatabaseConfig) -> str:
    """Get the synchronous database URL from config.

    Converts async URLs to sync URLs if needed.
    e.g., sqlite+aiosqlite:// -> sqlite://
          postgresql+asyncpg:// -> postgresql://
    """
    url = config.url

    if "+aiosqlite" in url:
        return url.replace("+aiosqlite", "")
    elif "+asyncpg" in url:
        return url.replace("+asyncpg", "")

    return url


def get_async_database_url(config: DatabaseConfig) -> str:
    """Get the async database URL from config.

    Converts sync URLs to async URLs if needed.
    e.g., sqlite:// -> sqlite+aiosqlite://
          postgresql:// -> postgresql+asyncpg://
    """
    url = config.url

    if "+aiosqlite" in url or "+asyncpg" in url:
        return url

    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://")
    elif url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://")

    return url


def _ensure_sqlite_parent_dir(url: str) -> None:
    """Ensure parent directory exists for a file-backed SQLite database."""
    if not url.startswith("sqlite") or ":///" not in url:
        return

    # sqlite+aiosqlite:///./data/aseguradora.db -> ./data/aseguradora.db
    # sqlite+aiosqlite:////var/lib/app.db       -> /var/lib/app.db
    path = url.split(":///", 1)[1].split("?", 1)[0]
    if path and path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)


def create_db_engine(config: DatabaseConfig):
    """Create a synchronous database engine."""
    url = get_database_url(config)
    return create_engine(url, echo=False)


def create_async_db_engine(config: DatabaseConfig):
    """Create an async database engine."""
    url = get_async_database_url(config)
    _ensure_sqlite_parent_dir(url)
    return create_async_engine(url, echo=False)


def create_session_factory(engine):
    """Create a synchronous session factory."""
    return sessionmaker(bind=engine)


def create_async_session_factory(engine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory."""
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine) -> None:
    """Create all tables on the given async engine."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
