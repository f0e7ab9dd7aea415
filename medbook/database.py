import logging
from typing import AsyncIterator, Callable

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from .config import settings
from .db import models  # noqa: F401  (registers tables on SQLModel.metadata)

logger = logging.getLogger(__name__)

REFERENCE_SEQUENCE = "appointment_ref_seq"


def async_database_url(url: str) -> str:
    """Map plain driver URLs onto their asyncio drivers."""
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    if url.startswith("sqlite://") and not url.startswith("sqlite+"):
        return "sqlite+aiosqlite://" + url[len("sqlite://"):]
    return url


def build_engine(url: str, **kwargs) -> AsyncEngine:
    url = async_database_url(url)
    engine_kwargs = {}
    if url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        # Better resiliency for managed Postgres
        engine_kwargs.update({
            "pool_pre_ping": True,
            "pool_recycle": 300,
            "pool_size": 5,
            "max_overflow": 10,
        })
    engine_kwargs.update(kwargs)
    return create_async_engine(url, echo=settings.DEBUG, **engine_kwargs)


engine = build_engine(settings.DATABASE_URL)


async def create_db_and_tables(db_engine: AsyncEngine) -> None:
    async with db_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
        if db_engine.dialect.name == "postgresql":
            await conn.execute(text(f"CREATE SEQUENCE IF NOT EXISTS {REFERENCE_SEQUENCE} START 1"))
            logger.info("Reference sequence %s ready", REFERENCE_SEQUENCE)
        else:
            logger.info(
                "Dialect %s has no sequences; references use the latest-reference fallback",
                db_engine.dialect.name,
            )


def session_factory(db_engine: AsyncEngine) -> Callable[[], AsyncSession]:
    def _make() -> AsyncSession:
        return AsyncSession(db_engine, expire_on_commit=False)
    return _make


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    async with AsyncSession(request.app.state.engine, expire_on_commit=False) as session:
        yield session
