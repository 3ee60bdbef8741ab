"""
Async SQLAlchemy engine, session factory and schema bootstrap.

A ``Database`` is a process-scoped handle: the app factory builds one and
stores it on ``app.state``; route dependencies borrow sessions from it.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator
from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from fastapi import Request

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Owns the connection pool for the credential store."""

    def __init__(
        self,
        url,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 0,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
    ):
        self.url = make_url(url)
        self.echo = echo

        engine_kwargs = {"echo": echo}
        if not self.is_sqlite:
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
                pool_pre_ping=True,
            )
        self.engine = create_async_engine(self.url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(
            settings.sqlalchemy_url,
            echo=settings.db_echo,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
        )

    @property
    def is_sqlite(self) -> bool:
        return self.url.get_backend_name() == "sqlite"

    async def ensure_database(self):
        """Create the target database on the server if it does not exist."""
        name = self.url.database
        if self.is_sqlite or not name:
            return

        server_url = URL.create(
            self.url.drivername,
            username=self.url.username,
            password=self.url.password,
            host=self.url.host,
            port=self.url.port,
            query=self.url.query,
        )
        server_engine = create_async_engine(server_url, echo=self.echo)
        try:
            async with server_engine.begin() as conn:
                quoted = conn.dialect.identifier_preparer.quote_identifier(name)
                await conn.execute(text(f"CREATE DATABASE IF NOT EXISTS {quoted}"))
        finally:
            await server_engine.dispose()
        logger.info("Database '%s' is ready", name)

    async def ensure_schema(self):
        """Create missing tables. Existing tables are left untouched."""
        # Register models on Base.metadata
        from skyearth import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables synchronized")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session; rolled back on error and always closed."""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def dispose(self):
        await self.engine.dispose()
        logger.info("Database connection pool closed")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get a session from the application's database."""
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
