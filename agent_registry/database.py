from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from typing import AsyncGenerator
from urllib.parse import urlparse, parse_qs, urlencode, urlunparse
from fastapi import Request
import logging

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


def convert_database_url(url: str) -> str:
    """
    Convert a database URL to an async-driver compatible format.
    PostgreSQL URLs are rewritten for asyncpg; sqlite+aiosqlite URLs pass through.
    """
    if not url:
        raise ValueError("DATABASE_URL cannot be empty")

    if url.startswith("sqlite+aiosqlite://"):
        return url

    # Replace postgresql:// with postgresql+asyncpg://
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif not url.startswith("postgresql+asyncpg://"):
        raise ValueError(f"Invalid DATABASE_URL format: {url[:50]}...")

    parsed = urlparse(url)
    query_params = parse_qs(parsed.query)

    # asyncpg uses ssl parameter, not sslmode
    if "sslmode" in query_params:
        sslmode = query_params["sslmode"][0].lower()
        del query_params["sslmode"]
        if sslmode in ["require", "prefer", "allow"]:
            query_params["ssl"] = ["require"]

    # Parameters asyncpg rejects
    for param in ["channel_binding", "connect_timeout", "application_name"]:
        query_params.pop(param, None)

    new_query = urlencode(query_params, doseq=True)
    return urlunparse(parsed._replace(query=new_query))


class Database:
    """Async engine plus session factory, created once per process"""

    def __init__(self, url: str, echo: bool = False):
        self.url = convert_database_url(url)

        if self.url.startswith("sqlite"):
            # Single shared connection so in-memory databases survive across sessions
            self.engine = create_async_engine(
                self.url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_async_engine(
                self.url,
                echo=echo,
                pool_size=10,
                max_overflow=20,
                pool_pre_ping=True,  # Verify connections before using
                pool_recycle=3600,   # Recycle connections after 1 hour
            )

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    async def init_db(self):
        """Create tables for all registered models"""
        # Import models so they're registered on Base.metadata
        from agent_registry.models import agent, user  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self):
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session"""
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
