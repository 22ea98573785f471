from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.core.config import Settings


def to_async_database_url(database_url: str) -> str:
    """Rewrite a plain postgresql:// URL for asyncpg.

    asyncpg does not accept psycopg params like sslmode/channel_binding, so they are
    stripped; SSL is enabled via connect_args instead.
    """
    url = make_url(database_url)
    if url.drivername not in ("postgresql", "postgres", "postgresql+asyncpg"):
        return database_url
    url = url.set(drivername="postgresql+asyncpg").difference_update_query(["sslmode", "channel_binding"])
    return url.render_as_string(hide_password=False)


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    if not settings.database_url:
        raise ValueError("DATABASE_URL must be set when STORAGE_BACKEND=database")
    url = to_async_database_url(settings.database_url)
    connect_args = {}
    if settings.db_ssl and url.startswith("postgresql+asyncpg"):
        connect_args["ssl"] = True
    return create_async_engine(
        url,
        echo=settings.env == "development",
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        connect_args=connect_args,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create the agendamentos table and its indexes if missing."""
    # Register the table on SQLModel.metadata
    from app.models.agendamento import Agendamento  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def server_version(engine: AsyncEngine) -> str:
    async with engine.connect() as conn:
        if engine.dialect.name == "postgresql":
            result = await conn.execute(text("SELECT version()"))
        elif engine.dialect.name == "sqlite":
            result = await conn.execute(text("SELECT 'SQLite ' || sqlite_version()"))
        else:
            return engine.dialect.name
        return str(result.scalar_one())
