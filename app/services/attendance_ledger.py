"""Libro de asistencia: registro por lote (todo o nada) y porcentaje de presencia."""
import calendar
import logging
from collections.abc import Mapping, Sequence
from datetime import MAXYEAR, MINYEAR, date
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import InvalidValue
from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.schemas.attendance import (
    AttendanceHistory,
    AttendanceMarkIn,
    AttendanceRecordOut,
    BatchSummary,
    PresenceRatio,
)
from app.schemas.common import validate_row
from app.schemas.identity import IdentityContext
from app.services import aggregates
from app.services.reference_validator import ReferenceValidator
from app.services.transaction import TransactionCoordinator
from app.services.upsert import upsert

logger = logging.getLogger(__name__)


def _student_id_of(row: Any) -> Any:
    """student_id de una fila todavía sin validar (para identificarla en errores)."""
    if isinstance(row, Mapping):
        return row.get("student_id")
    return getattr(row, "student_id", None)


def date_window(month: int | None, year: int | None) -> tuple[date, date] | None:
    """Rango [inicio, fin] (ambos inclusive) para el mes/año indicado; None si no hay filtro.

    Solo año: el año completo. Mes sin año, mes fuera de 1..12 o año fuera
    de 1..9999: InvalidValue.
    """
    if month is None and year is None:
        return None
    if year is None:
        raise InvalidValue("Si se indica el mes también debe indicarse el año", key={"month": month})
    if not MINYEAR <= year <= MAXYEAR:
        raise InvalidValue(f"Año fuera de rango: {year}", key={"month": month, "year": year})
    if month is None:
        return date(year, 1, 1), date(year, 12, 31)
    if not 1 <= month <= 12:
        raise InvalidValue(f"Mes fuera de rango: {month}", key={"month": month, "year": year})
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


class AttendanceLedger:
    """Registro de asistencia por clase y estadísticas de presencia."""

    def __init__(
        self,
        coordinator: TransactionCoordinator,
        validator: ReferenceValidator | None = None,
    ):
        self._coordinator = coordinator
        self._validator = validator or ReferenceValidator()

    async def record_batch(
        self,
        subject_id: int,
        class_date: date,
        rows: Sequence[AttendanceMarkIn | Mapping[str, Any]],
        recorder: IdentityContext,
    ) -> BatchSummary:
        """
        Registra la asistencia de una clase como una unidad.

        Las filas se procesan en el orden recibido; la primera fila inválida
        (estado, justificación, duplicado o matrícula) revierte el lote completo
        y es la que se informa. Cada fila hace upsert por
        (student_id, subject_id, class_date).
        """
        if len(rows) > settings.max_batch_rows:
            raise InvalidValue(
                f"El lote supera el máximo de {settings.max_batch_rows} filas",
                key={"subject_id": subject_id, "class_date": class_date.isoformat()},
            )

        async with self._coordinator.reader() as session:
            await self._validator.authorize_write(session, recorder, subject_id)

        async def unit(session: AsyncSession) -> list[AttendanceMarkIn]:
            # Primero se validan las filas en orden; la primera que falle se
            # informa después de revisar las anteriores (duplicado, matrícula).
            validas: list[tuple[dict[str, Any], AttendanceMarkIn]] = []
            pendiente: InvalidValue | None = None
            for indice, row in enumerate(rows):
                clave = {
                    "row": indice,
                    "student_id": _student_id_of(row),
                    "subject_id": subject_id,
                    "class_date": class_date.isoformat(),
                }
                try:
                    validas.append((clave, validate_row(AttendanceMarkIn, row, key=clave)))
                except InvalidValue as exc:
                    pendiente = exc
                    break

            activos = await self._validator.active_students(
                session, subject_id, [marca.student_id for _, marca in validas]
            )
            vistos: set[int] = set()
            for clave, marca in validas:
                clave["student_id"] = marca.student_id
                if marca.student_id in vistos:
                    raise InvalidValue(
                        f"El estudiante {marca.student_id} aparece más de una vez en el lote",
                        key=clave,
                    )
                vistos.add(marca.student_id)
                await self._validator.validate_enrollment(
                    session, marca.student_id, subject_id, active=activos
                )
            if pendiente is not None:
                raise pendiente

            for _, marca in validas:
                await upsert(
                    session,
                    AttendanceRecord,
                    {
                        "student_id": marca.student_id,
                        "subject_id": subject_id,
                        "class_date": class_date,
                        "status": marca.status,
                        "justification": marca.justification,
                        "recorder_id": recorder.actor_id,
                    },
                    AttendanceRecord.NATURAL_KEY,
                    AttendanceRecord.MUTABLE,
                )
            return [marca for _, marca in validas]

        marcas = await self._coordinator.run(unit)
        conteo = aggregates.count_statuses(m.status for m in marcas)
        summary = BatchSummary(
            subject_id=subject_id,
            class_date=class_date,
            total=conteo["total"],
            present=conteo[AttendanceStatus.PRESENT],
            absent=conteo[AttendanceStatus.ABSENT],
            excused=conteo[AttendanceStatus.EXCUSED],
            late=conteo[AttendanceStatus.LATE],
            presence_ratio=aggregates.presence_percentage(
                conteo["present_equivalent"], conteo["total"]
            ),
        )
        logger.info(
            "Asistencia registrada: materia=%s fecha=%s filas=%s presencia=%s%%",
            subject_id, class_date, summary.total, summary.presence_ratio,
        )
        return summary

    async def presence_ratio(
        self,
        student_id: int,
        subject_id: int,
        month: int | None = None,
        year: int | None = None,
    ) -> PresenceRatio:
        """Porcentaje de clases con estado present o late, opcionalmente en un mes/año."""
        ventana = date_window(month, year)
        presentes = func.sum(
            case((AttendanceRecord.status.in_(AttendanceStatus.PRESENT_EQUIVALENT), 1), else_=0)
        )
        q = select(func.count(AttendanceRecord.id), presentes).where(
            AttendanceRecord.student_id == student_id,
            AttendanceRecord.subject_id == subject_id,
        )
        if ventana:
            q = q.where(
                AttendanceRecord.class_date >= ventana[0],
                AttendanceRecord.class_date <= ventana[1],
            )
        async with self._coordinator.reader() as session:
            r = await session.execute(q)
            total, present_equivalent = r.one()
        total = total or 0
        present_equivalent = int(present_equivalent or 0)
        return PresenceRatio(
            student_id=student_id,
            subject_id=subject_id,
            month=month,
            year=year,
            total=total,
            present_equivalent=present_equivalent,
            ratio=aggregates.presence_percentage(present_equivalent, total),
        )

    async def history(
        self,
        student_id: int,
        subject_id: int | None = None,
        month: int | None = None,
        year: int | None = None,
    ) -> AttendanceHistory:
        """Registros del estudiante (clase más reciente primero) con estadísticas."""
        ventana = date_window(month, year)
        q = (
            select(AttendanceRecord)
            .where(AttendanceRecord.student_id == student_id)
            .order_by(AttendanceRecord.class_date.desc(), AttendanceRecord.id.desc())
        )
        if subject_id is not None:
            q = q.where(AttendanceRecord.subject_id == subject_id)
        if ventana:
            q = q.where(
                AttendanceRecord.class_date >= ventana[0],
                AttendanceRecord.class_date <= ventana[1],
            )
        async with self._coordinator.reader() as session:
            r = await session.execute(q)
            registros = r.scalars().all()

        conteo = aggregates.count_statuses(a.status for a in registros)
        return AttendanceHistory(
            student_id=student_id,
            subject_id=subject_id,
            month=month,
            year=year,
            total=conteo["total"],
            present=conteo[AttendanceStatus.PRESENT],
            absent=conteo[AttendanceStatus.ABSENT],
            excused=conteo[AttendanceStatus.EXCUSED],
            late=conteo[AttendanceStatus.LATE],
            presence_ratio=aggregates.presence_percentage(
                conteo["present_equivalent"], conteo["total"]
            ),
            records=[AttendanceRecordOut.model_validate(a) for a in registros],
        )
