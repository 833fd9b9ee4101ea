"""Upsert por clave natural en una sola sentencia (INSERT ... ON CONFLICT)."""
from collections.abc import Sequence
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import Base

ModelT = TypeVar("ModelT", bound=Base)


async def upsert(
    session: AsyncSession,
    model: type[ModelT],
    values: dict[str, Any],
    key_columns: Sequence[str],
    update_columns: Sequence[str],
) -> ModelT:
    """Inserta la fila o, si la clave natural ya existe, actualiza ``update_columns``.

    Las columnas de la clave natural nunca se tocan en la rama de actualización.
    Devuelve la fila resultante leída dentro de la misma transacción.
    """
    conn = await session.connection()
    dialect = conn.dialect.name

    if dialect == "postgresql":
        stmt = postgresql.insert(model).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(key_columns),
            set_={c: stmt.excluded[c] for c in update_columns},
        )
    elif dialect == "sqlite":
        stmt = sqlite.insert(model).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(key_columns),
            set_={c: stmt.excluded[c] for c in update_columns},
        )
    elif dialect in ("mysql", "mariadb"):
        stmt = mysql.insert(model).values(**values)
        stmt = stmt.on_duplicate_key_update({c: stmt.inserted[c] for c in update_columns})
    else:
        raise NotImplementedError(f"Upsert no soportado para el dialecto '{dialect}'")

    await session.execute(stmt)

    q = (
        select(model)
        .where(*[getattr(model, c) == values[c] for c in key_columns])
        .execution_options(populate_existing=True)
    )
    result = await session.execute(q)
    return result.scalar_one()
