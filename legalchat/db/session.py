# legalchat/db/session.py
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from legalchat.core.config import settings

DATABASE_URL = settings.DATABASE_URL

engine_options = {
    "echo": settings.LOG_LEVEL == "DEBUG",  # Enable SQL logging in debug mode
    "future": True,
    "pool_pre_ping": True,  # Verify connections before using
}
if ":memory:" in DATABASE_URL:
    # One shared connection, otherwise every checkout sees an empty database
    engine_options.update(poolclass=StaticPool)
elif not DATABASE_URL.startswith("sqlite"):
    engine_options.update(pool_size=10, max_overflow=20)

engine = create_async_engine(DATABASE_URL, **engine_options)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False
)


async def get_db() -> AsyncSession:
    """
    Dependency function that provides a database session
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
