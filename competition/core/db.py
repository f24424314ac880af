import os

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy import text
from sqlalchemy.pool import NullPool
from .config import settings
from .logger import get_logger

_use_null_pool = bool(os.getenv("PYTEST_CURRENT_TEST")) or settings.is_test_env
engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,
    poolclass=NullPool if _use_null_pool else None,
)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
log = get_logger("db")


async def _has_table(conn, table_name: str) -> bool:
    res = await conn.execute(
        text(
            """
            SELECT 1
            FROM information_schema.tables
            WHERE table_schema='public'
              AND table_type='BASE TABLE'
              AND table_name=:name
            LIMIT 1
            """
        ),
        {"name": table_name},
    )
    return res.first() is not None


_SCHEMA_CHECKS = (
    ("matches", "standings schema missing; run `alembic upgrade head`"),
    (
        "alembic_version",
        "standings tables exist but alembic is not initialized; run `alembic stamp head` "
        "(if schema already matches) or `alembic upgrade head`",
    ),
)


async def schema_problem(conn) -> str | None:
    """First missing-schema message, or None when migrations are in place."""
    for table_name, msg in _SCHEMA_CHECKS:
        if not await _has_table(conn, table_name):
            return msg
    return None


async def init_db():
    async with engine.begin() as conn:
        problem = await schema_problem(conn)
    if problem is None:
        return
    # Dev only warns.
    if (settings.app_env or "").strip().lower() == "dev":
        log.warning("init_db %s", problem)
        return
    raise RuntimeError(problem)


async def get_session():
    async with SessionLocal() as session:
        yield session
