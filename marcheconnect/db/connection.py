"""
Async SQLite engine and per-request sessions.

The market data is a single SQLite file (DATABASE_URL, aiosqlite driver);
the schema is created at startup.
"""
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from marcheconnect.db.models import Base
from marcheconnect.config import settings
import logging

logger = logging.getLogger(__name__)

engine = None
async_session_maker = None


async def init_db(database_url: str = None):
    """
    Open the engine and create the market tables if missing.

    Args:
        database_url: Overrides settings.database_url (tests point it at a scratch file)
    """
    global engine, async_session_maker

    database_url = database_url or settings.database_url
    logger.info(f"Opening market database: {database_url}")

    # One shared connection: aiosqlite runs it on its own thread
    engine = create_async_engine(
        database_url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("✅ Market database ready")


async def get_db_session() -> AsyncSession:
    """
    FastAPI dependency: one session per request.

    Whatever the Unit of Work left pending is committed when the endpoint
    returns; any exception rolls it back.
    """
    if async_session_maker is None:
        raise RuntimeError("Market database not opened - call init_db() first")

    async with async_session_maker() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Rolled back market database session: {e}")
            raise
        else:
            await session.commit()


async def close_db():
    """Dispose the engine; init_db() must run again before the next session."""
    global engine, async_session_maker
    if engine is not None:
        await engine.dispose()
        engine = None
        async_session_maker = None
        logger.info("Market database closed")
