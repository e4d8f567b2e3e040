import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from app.api.v1 import registry
from app.contract.dispatcher import init
from app.core.redis_client import close_redis_client
from app.db.database import create_ledger_tables, engine

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_ledger_tables()
    init()
    yield
    await close_redis_client()
    await engine.dispose()


app = FastAPI(title="House Registry", lifespan=lifespan)

@app.get("/", tags=["Health Check"])
async def read_root():
    return {"status": "ok", "message": "Welcome to the House Registry"}

app.include_router(registry.router, prefix="/api/v1")
