"""
Async database engine, connection pool and session factory.

Uses SQLAlchemy 2.x async engine with the asyncpg driver for PostgreSQL.  The
pool is bounded (``pool_size`` connections, no overflow) so it doubles as the
ingestor's backpressure: when every connection is busy, new message handlers
wait for one instead of opening more.

CHANGELOG:
- 2026-10-16: Accept libpq-style DSNs (postgres://, sslmode=)
- 2026-10-15: Take pool limits from DatabaseSettings, add check_connection()
"""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ingestor.src.config import DatabaseSettings

_ASYNC_SCHEME = "postgresql+asyncpg"


def normalize_database_url(url: str) -> str:
    """Rewrite a libpq-style DSN into an SQLAlchemy asyncpg URL.

    ``postgres://`` and ``postgresql://`` become ``postgresql+asyncpg://``.
    asyncpg does not understand ``sslmode``; it is translated to ``ssl``
    (``sslmode=disable`` is dropped).

    Args:
        url: DSN as configured in ``PG_DSN``.

    Returns:
        str: URL usable with :func:`create_async_engine`.
    """
    parts = urlsplit(url)
    scheme = parts.scheme
    if scheme in ("postgres", "postgresql"):
        scheme = _ASYNC_SCHEME

    query: list[tuple[str, str]] = []
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key == "sslmode":
            if value != "disable":
                query.append(("ssl", value))
            continue
        query.append((key, value))

    return urlunsplit(
        (scheme, parts.netloc, parts.path, urlencode(query), parts.fragment)
    )


def create_engine(settings: DatabaseSettings) -> AsyncEngine:
    """Create an async SQLAlchemy engine with a bounded pool.

    Args:
        settings: Database settings (DSN and pool limits).

    Returns:
        AsyncEngine: Configured async engine for PostgreSQL via asyncpg.
    """
    return create_async_engine(
        normalize_database_url(settings.pg_dsn),
        echo=False,
        pool_size=settings.db_pool_size,
        max_overflow=0,
        pool_timeout=settings.db_pool_timeout_s,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to *engine*.

    Args:
        engine: Async engine owning the connection pool.

    Returns:
        async_sessionmaker: Factory for creating AsyncSession instances.
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def check_connection(engine: AsyncEngine) -> None:
    """Round-trip ``SELECT 1`` to fail fast on an unreachable database.

    Raises:
        sqlalchemy.exc.SQLAlchemyError: If the database cannot be reached.
        OSError: If the host cannot be reached at all.
    """
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))

