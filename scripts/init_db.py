import asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from legalchat.core.config import settings
from legalchat.db.base import Base
# Импортируем модели
import legalchat.db.models  # noqa: F401  registers every table on Base.metadata


async def init_db(drop: bool = False):
    """Create all tables (optionally dropping the old ones first)"""
    print(f"🔗 Connecting to {settings.DATABASE_URL}")

    engine = create_async_engine(settings.DATABASE_URL, echo=True)

    async with engine.begin() as conn:
        if drop:
            print("🗑️  Dropping existing tables...")
            await conn.run_sync(Base.metadata.drop_all)

        print("📦 Creating tables...")
        await conn.run_sync(Base.metadata.create_all)

    await engine.dispose()
    print("✅ Database initialized")


if __name__ == "__main__":
    import sys

    asyncio.run(init_db(drop="--drop" in sys.argv))
