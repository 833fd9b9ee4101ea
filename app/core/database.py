"""Conexión asíncrona a la base de datos con SQLAlchemy 2.0.

No hay engine global: la aplicación crea uno en su lifespan y pasa la fábrica
de sesiones a los servicios de forma explícita.
"""
from fastapi import Request
from sqlalchemy import BigInteger, Integer
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

# SQLite solo autoincrementa columnas INTEGER PRIMARY KEY
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    """Base para todos los modelos SQLAlchemy."""

    pass


def create_engine_for(url: str | None = None) -> AsyncEngine:
    """Crea el engine asíncrono para la URL indicada (por defecto la de settings)."""
    url = url or settings.database_url_async
    if url.startswith("sqlite"):
        # Los pools de SQLite no aceptan pool_size / max_overflow
        return create_async_engine(url, echo=settings.debug)
    return create_async_engine(
        url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Fábrica de sesiones ligada a un engine concreto."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Dependencia: devuelve la fábrica de sesiones creada en el lifespan."""
    return request.app.state.session_factory


async def get_db(request: Request):
    """Dependencia para obtener una sesión de solo lectura por request."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(engine: AsyncEngine) -> None:
    """Inicializa la base de datos (crear tablas si no existen)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
