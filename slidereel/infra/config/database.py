"""
Async engine and session factory.

Repositories open one short session per call through ``get_session_factory``;
nothing holds a session across awaits of the render loop.
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from slidereel.infra.config.settings import get_settings


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        # The render task and request handlers share the file from one loop.
        return create_async_engine(
            url, echo=echo, connect_args={"check_same_thread": False}
        )
    return create_async_engine(url, echo=echo, pool_pre_ping=True, pool_recycle=300)


settings = get_settings()
engine = build_engine(settings.database_url, echo=settings.debug_sql)
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def get_session_factory() -> async_sessionmaker:
    return async_session_factory


async def create_tables() -> None:
    """Create tables that do not exist yet."""
    from slidereel.data.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
