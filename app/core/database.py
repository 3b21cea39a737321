from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from app.config import settings
from app.models import Base

engine = create_async_engine(settings.DATABASE_URL)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def get_db():
    async with SessionLocal() as session:
        yield session


async def init_models(bind: AsyncEngine = engine):
    # Alembic owns the schema in deployed databases; this covers the local SQLite file
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
