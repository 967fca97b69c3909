import os
import tempfile

os.environ["DB_URL"] = f"sqlite+aiosqlite:///{tempfile.mkdtemp()}/import.db"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ["FORMULA_MISSING_FIELD_POLICY"] = "error"

import pytest
import pytest_asyncio
from fakeredis import aioredis
from fastapi_cache import FastAPICache
from fastapi_cache.backends.inmemory import InMemoryBackend
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from api_service.dependencies import get_rate_limiter
from api_service.formula.context import ResolutionContext
from api_service.formula.guard import RateLimiter
from api_service.schemas import Formula
from engine import db
from main import app
from models import Base

ADMIN_HEADERS = {"Authorization": "Bearer test-admin-token"}


def make_context(fields=None, formulas=None, lookups=(), card_fields=(), missing_fields="error"):
    """`formulas` maps a name to formula text, or to a Formula when unit/is_active matter."""
    formula_list = list()
    for name, value in (formulas or {}).items():
        formula_list.append(value if isinstance(value, Formula) else Formula(name=name, formula_text=value))
    return ResolutionContext(fields=fields, formulas=formula_list, lookups=lookups,
                             card_fields=card_fields, missing_fields=missing_fields)


@pytest.fixture
def fake_redis():
    return aioredis.FakeRedis(decode_responses=True)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(session_factory, fake_redis):
    async def override_session():
        async with session_factory() as session:
            yield session

    limiter = RateLimiter(redis=fake_redis, limit=5, window=60)
    app.dependency_overrides[db.session_dependency] = override_session
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    FastAPICache.init(InMemoryBackend(), prefix="test-cache")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test",
                           headers=ADMIN_HEADERS) as ac:
        yield ac

    app.dependency_overrides.clear()
