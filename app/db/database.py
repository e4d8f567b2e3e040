from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
import os
from dotenv import load_dotenv
from app.db.base import Base
from app.db import models  # noqa: F401  registers ledger_state on Base.metadata

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./registry.db")

engine = create_async_engine(DATABASE_URL)
# one session per invocation; the endpoint owns begin/commit
AsyncSessionLocal = async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

async def create_ledger_tables(bind=engine):
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

async def get_db():
    async with AsyncSessionLocal() as session:
        yield session
