"""Libro de notas: upsert por clave natural y promedio ponderado."""
import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.grade_entry import GradeEntry
from app.models.subject import Subject
from app.schemas.common import validate_row
from app.schemas.grade import (
    GradeEntryIn,
    GradeEntryOut,
    GradeRecordResult,
    ReportCard,
    SubjectGrades,
    WeightedAverage,
)
from app.schemas.identity import IdentityContext
from app.services import aggregates
from app.services.reference_validator import ReferenceValidator
from app.services.transaction import TransactionCoordinator
from app.services.upsert import upsert

logger = logging.getLogger(__name__)


class GradeLedger:
    """Registro de notas y cálculo del promedio ponderado por estudiante y materia."""

    def __init__(
        self,
        coordinator: TransactionCoordinator,
        validator: ReferenceValidator | None = None,
    ):
        self._coordinator = coordinator
        self._validator = validator or ReferenceValidator()

    async def record_grade(
        self, entry: GradeEntryIn | Mapping[str, Any], actor: IdentityContext
    ) -> GradeRecordResult:
        """
        Registra (o reemplaza) la nota de la clave natural
        (estudiante, materia, tipo de evaluación, día) y devuelve el promedio recalculado.

        Una segunda nota con la misma clave sobrescribe score, weight y notes; nunca duplica.
        """
        entry = validate_row(GradeEntryIn, entry)

        async with self._coordinator.reader() as session:
            await self._validator.authorize_write(session, actor, entry.subject_id)
            await self._validator.validate_enrollment(session, entry.student_id, entry.subject_id)

        values = {
            "student_id": entry.student_id,
            "subject_id": entry.subject_id,
            "assessment_kind": entry.assessment_kind,
            "evaluated_on": entry.evaluated_on,
            "score": entry.score,
            "weight": entry.weight,
            "notes": entry.notes,
            "grader_id": actor.actor_id,
        }

        async def unit(session: AsyncSession) -> GradeEntry:
            # La matrícula pudo cambiar entre la validación previa y la transacción
            await self._validator.validate_enrollment(session, entry.student_id, entry.subject_id)
            return await upsert(
                session, GradeEntry, values, GradeEntry.NATURAL_KEY, GradeEntry.MUTABLE
            )

        stored = await self._coordinator.run(unit)
        # El promedio se lee después del commit, siempre desde el estado confirmado
        average = await self.weighted_average(entry.student_id, entry.subject_id)
        logger.info(
            "Nota registrada %s por %s; promedio=%s (%s notas)",
            entry.natural_key, actor.actor_id, average.average, average.entry_count,
        )
        return GradeRecordResult(
            entry=GradeEntryOut.model_validate(stored),
            new_average=average.average,
            entry_count=average.entry_count,
        )

    async def weighted_average(self, student_id: int, subject_id: int) -> WeightedAverage:
        """Promedio ponderado sobre todas las notas vigentes del par; 0 si no hay notas."""
        async with self._coordinator.reader() as session:
            r = await session.execute(
                select(GradeEntry.score, GradeEntry.weight).where(
                    GradeEntry.student_id == student_id,
                    GradeEntry.subject_id == subject_id,
                )
            )
            pares = r.all()
        return WeightedAverage(
            student_id=student_id,
            subject_id=subject_id,
            average=float(aggregates.weighted_average(pares)),
            entry_count=len(pares),
        )

    async def report_card(self, student_id: int, subject_id: int | None = None) -> ReportCard:
        """Notas del estudiante agrupadas por materia, con el promedio de cada una."""
        q = (
            select(GradeEntry, Subject.name)
            .join(Subject, Subject.id == GradeEntry.subject_id)
            .where(GradeEntry.student_id == student_id)
            .order_by(GradeEntry.evaluated_on.desc(), GradeEntry.id.desc())
        )
        if subject_id is not None:
            q = q.where(GradeEntry.subject_id == subject_id)
        async with self._coordinator.reader() as session:
            r = await session.execute(q)
            filas = r.all()

        # Agrupar conservando el orden (materia con la evaluación más reciente primero)
        grupos: dict[int, tuple[str, list[GradeEntry]]] = {}
        for nota, nombre in filas:
            grupos.setdefault(nota.subject_id, (nombre, []))[1].append(nota)

        materias = [
            SubjectGrades(
                subject_id=sid,
                subject_name=nombre,
                average=float(aggregates.weighted_average((n.score, n.weight) for n in notas)),
                entry_count=len(notas),
                entries=[GradeEntryOut.model_validate(n) for n in notas],
            )
            for sid, (nombre, notas) in grupos.items()
        ]
        return ReportCard(student_id=student_id, subjects=materias)
