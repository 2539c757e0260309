from fastapi import FastAPI

from app.core.config import settings
from app.core.db import engine
from app.core.logging_config import setup_logging
from app.infrastructure.cache.redis_client import close_redis_client
from app.infrastructure.db import models  # noqa: F401  (registers tables on Base)
from app.infrastructure.db.base import Base
from app.api.routes import health, ussd
from app.api.v1 import v1_router

setup_logging()

app = FastAPI(title=f"{settings.USSD_APP_TITLE} USSD", debug=settings.DEBUG)

@app.on_event("startup")
async def startup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

@app.on_event("shutdown")
async def shutdown():
    await close_redis_client()
    await engine.dispose()

app.include_router(health.router)
app.include_router(ussd.router)
app.include_router(v1_router)
