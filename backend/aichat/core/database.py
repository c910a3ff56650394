"""
database.py — SQLAlchemy async engine, session factory, and base class.

ASYNCPG vs PSYCOPG2 URL DIFFERENCES:
  Hosted Postgres dashboards hand out libpq-style connection strings:
    ?sslmode=require&channel_binding=require
  asyncpg does NOT accept these as URL query params and raises:
    TypeError: connect() got an unexpected keyword argument 'sslmode'
  _prepare_asyncpg_url() strips them and passes ssl=True via connect_args
  instead, so DATABASE_URL can be pasted straight into .env.

SQLITE:
  sqlite+aiosqlite:// URLs are accepted for local development and the test
  suite.  SQLite has no server-side connection pool to size, so the pool
  arguments are only applied to Postgres.

HOW IT FLOWS:
  1. `engine`           – single async engine.
  2. `AsyncSessionLocal`– session factory; each HTTP request gets its own
                          short-lived session via the `get_db` dependency.
  3. `Base`             – declarative base that all ORM models inherit from.
  4. `get_db()`         – FastAPI dependency that opens a session, yields it,
                          then commits (or rolls back on error) and closes it.
  5. `init_db()`        – creates tables and the built-in "default"
                          conversation; called from the app lifespan.
"""

import logging
from urllib.parse import urlencode, urlparse, urlunparse, parse_qs

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from aichat.core.config import settings

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------ #
# URL normalisation for asyncpg
# ------------------------------------------------------------------ #
def _prepare_asyncpg_url(url: str) -> tuple[str, dict]:
    """
    Convert a psycopg2-style DATABASE_URL to one asyncpg accepts.

    Specifically:
      - Removes `sslmode` and `channel_binding` query params.
      - Returns a `connect_args` dict with `ssl=True` when sslmode was
        'require', 'verify-ca', or 'verify-full'.

    Non-Postgres URLs are returned untouched with empty connect_args.

    Returns:
        (clean_url, connect_args): pass both to create_async_engine().
    """
    if not url.startswith("postgresql"):
        return url, {}

    parsed = urlparse(url)

    # parse_qs returns {key: [value, ...]}: we only ever have one value
    params = parse_qs(parsed.query, keep_blank_values=True)

    sslmode_values = params.pop("sslmode", ["disable"])
    params.pop("channel_binding", None)

    sslmode = sslmode_values[0] if sslmode_values else "disable"

    new_query = urlencode({k: v[0] for k, v in params.items()})
    clean_url = urlunparse(parsed._replace(query=new_query))

    connect_args: dict = {}
    if sslmode in ("require", "verify-ca", "verify-full"):
        connect_args["ssl"] = True

    return clean_url, connect_args


def _engine_options(url: str, connect_args: dict) -> dict:
    """Keyword arguments for create_async_engine() appropriate to the backend."""
    options: dict = {"echo": False, "connect_args": connect_args}
    if url.startswith("postgresql"):
        # pool_pre_ping=True tests stale connections before use, preventing
        # "server closed the connection unexpectedly" on idle serverless hosts.
        options.update(pool_pre_ping=True, pool_size=5, max_overflow=10)
    return options


_db_url, _connect_args = _prepare_asyncpg_url(settings.DATABASE_URL)


# ------------------------------------------------------------------ #
# Engine
# ------------------------------------------------------------------ #
engine = create_async_engine(_db_url, **_engine_options(_db_url, _connect_args))

# ------------------------------------------------------------------ #
# Session factory
# ------------------------------------------------------------------ #
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,  # keep ORM objects usable after commit
    autoflush=False,
    autocommit=False,
)


# ------------------------------------------------------------------ #
# Declarative base
# ------------------------------------------------------------------ #
class Base(DeclarativeBase):
    """All ORM models inherit from this class."""
    pass


# ------------------------------------------------------------------ #
# FastAPI dependency
# ------------------------------------------------------------------ #
async def get_db():
    """
    Yield an async SQLAlchemy session for the duration of one HTTP request.

    Usage in a route:
        async def my_route(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()   # auto-commit on clean exit
        except Exception:
            await session.rollback() # roll back on any error
            raise


# ------------------------------------------------------------------ #
# Schema bootstrap
# ------------------------------------------------------------------ #
async def init_db() -> None:
    """Create all tables (if missing) and make sure the default conversation exists."""
    # Imported here so the models register on Base.metadata before create_all
    from aichat.models import tables

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        existing = await session.get(tables.Conversation, tables.DEFAULT_CONVERSATION_ID)
        if existing is None:
            session.add(tables.Conversation(
                id=tables.DEFAULT_CONVERSATION_ID,
                title=tables.DEFAULT_CONVERSATION_TITLE,
            ))
            await session.commit()
            logger.info("Created the default conversation")
