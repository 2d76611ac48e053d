from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from core.config import settings


class Base(DeclarativeBase):
    pass


def _serialize_sqlite_writers(engine: AsyncEngine) -> None:
    # SQLite has no row locks; take the write lock when the transaction starts.
    @event.listens_for(engine.sync_engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, echo: bool = False, **kwargs) -> AsyncEngine:
    eng = create_async_engine(url, echo=echo, **kwargs)
    if eng.dialect.name == "sqlite":
        _serialize_sqlite_writers(eng)
    return eng


def build_session_maker(eng: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(eng, expire_on_commit=False)


engine = build_engine(settings.database_url, echo=settings.database_echo)
async_session_maker = build_session_maker(engine)


async def create_db_and_tables(eng: AsyncEngine | None = None):
    # register every mapped table on Base.metadata
    import db.textile  # noqa: F401

    async with (eng or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session
