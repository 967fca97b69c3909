import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi_cache import FastAPICache
from fastapi_cache.backends.redis import RedisBackend

from api_service.routers import admin_router, widget_router
from config import settings, redis_session
from engine import db
from models import Base


@asynccontextmanager
async def lifespan(app: FastAPI):
    redis = redis_session()
    FastAPICache.init(RedisBackend(redis), prefix="cache")
    logging.info("FastAPICache initialized")
    await db.create_tables(Base.metadata)
    try:
        yield
    finally:
        await redis.aclose()
        await db.engine.dispose()


app = FastAPI(lifespan=lifespan, docs_url=settings.api.docs_url, title="Energy Calculator Admin API")
app.add_middleware(CORSMiddleware, allow_origins=settings.api.cors,
                   allow_methods=["*"],
                   allow_headers=["*"],
                   allow_credentials=True)

app.include_router(admin_router)
app.include_router(widget_router)

if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("python_multipart.multipart").setLevel(logging.WARNING)
    uvicorn.run("main:app", host='0.0.0.0', port=5000)
