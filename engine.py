from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from config import settings


class LaunchDbEngine:
    def __init__(self, url: str, echo: bool = False):
        self.engine = create_async_engine(url=url, echo=echo, pool_pre_ping=True)
        self.session_factory = async_sessionmaker(
            bind=self.engine, autoflush=False, autocommit=False, expire_on_commit=False
        )

    async def session_dependency(self) -> AsyncGenerator:
        async with self.session_factory() as session:
            try:
                yield session
            finally:
                await session.close()

    async def create_tables(self, metadata):
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)


db = LaunchDbEngine(url=settings.db.url, echo=settings.db.echo)
