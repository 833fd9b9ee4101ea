"""Coordinador de transacciones: una unidad de trabajo confirma completa o no confirma nada."""
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import Conflict, RecordError, TransactionAborted

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Sesión de la unidad de trabajo en curso (permite llamadas anidadas a run())
_sesion_activa: ContextVar[AsyncSession | None] = ContextVar("sesion_activa", default=None)


class TransactionCoordinator:
    """Único camino de escritura de los libros de notas y asistencia.

    Recibe la fábrica de sesiones de forma explícita. El aislamiento frente a
    lotes concurrentes lo da el motor (restricciones únicas y upsert atómico),
    no este coordinador.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def reader(self) -> AsyncIterator[AsyncSession]:
        """Sesión de solo lectura sobre el estado confirmado."""
        async with self._session_factory() as session:
            yield session

    async def run(self, unit_of_work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Ejecuta ``unit_of_work(session)`` en una transacción.

        Confirma si la función retorna; ante cualquier excepción revierte todo y
        lanza ``TransactionAborted`` con la causa original. Si ya hay una unidad
        de trabajo activa en este contexto, se une a ella sin abrir otra.
        """
        activa = _sesion_activa.get()
        if activa is not None:
            return await unit_of_work(activa)

        async with self._session_factory() as session:
            token = _sesion_activa.set(session)
            try:
                async with session.begin():
                    result = await unit_of_work(session)
            except TransactionAborted:
                raise
            except RecordError as exc:
                logger.warning("Unidad de trabajo revertida: %s (clave=%s)", exc.reason, exc.key)
                raise TransactionAborted(exc) from exc
            except IntegrityError as exc:
                logger.error("Violación de unicidad pese al upsert: %s", exc.orig)
                conflict = Conflict(f"Violación de restricción en almacenamiento: {exc.orig}")
                raise TransactionAborted(conflict) from exc
            except DBAPIError as exc:
                logger.error("Falla de almacenamiento; la unidad se revirtió", exc_info=True)
                raise TransactionAborted(exc, retryable=True) from exc
            finally:
                _sesion_activa.reset(token)
        return result
