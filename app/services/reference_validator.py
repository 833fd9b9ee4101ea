"""Validación de referencias: asignación materia–profesor y matrícula activa.

Solo lectura. Ambos libros (notas y asistencia) la usan igual, antes de abrir
la transacción y otra vez dentro de ella.
"""
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import Forbidden, NotEnrolled
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.role import Role
from app.models.subject_assignment import SubjectAssignment
from app.schemas.identity import IdentityContext


class ReferenceValidator:
    """Reglas de autorización de escritura y de matrícula."""

    async def authorize_write(
        self, session: AsyncSession, actor: IdentityContext, subject_id: int
    ) -> None:
        """Lanza Forbidden salvo que el actor sea coordinador o el profesor asignado."""
        if actor.actor_role not in Role.WRITERS:
            raise Forbidden(
                f"El rol '{actor.actor_role}' no puede registrar notas ni asistencia",
                key={"actor_id": actor.actor_id, "subject_id": subject_id},
            )
        if actor.is_coordinator:
            return
        r = await session.execute(
            select(SubjectAssignment.id).where(
                SubjectAssignment.subject_id == subject_id,
                SubjectAssignment.grader_id == actor.actor_id,
            )
        )
        if r.first() is None:
            raise Forbidden(
                f"El profesor {actor.actor_id} no tiene asignada la materia {subject_id}",
                key={"actor_id": actor.actor_id, "subject_id": subject_id},
            )

    async def active_students(
        self, session: AsyncSession, subject_id: int, student_ids: Iterable[int]
    ) -> set[int]:
        """IDs (de los indicados) con matrícula activa en la materia, en una sola consulta."""
        ids = set(student_ids)
        if not ids:
            return set()
        r = await session.execute(
            select(Enrollment.student_id).where(
                Enrollment.subject_id == subject_id,
                Enrollment.status == EnrollmentStatus.ACTIVE,
                Enrollment.student_id.in_(ids),
            )
        )
        return set(r.scalars().all())

    async def validate_enrollment(
        self,
        session: AsyncSession,
        student_id: int,
        subject_id: int,
        *,
        active: set[int] | None = None,
    ) -> None:
        """Lanza NotEnrolled si el par no tiene matrícula activa.

        ``active`` permite reutilizar el resultado de ``active_students`` en lotes.
        """
        if active is None:
            active = await self.active_students(session, subject_id, [student_id])
        if student_id not in active:
            raise NotEnrolled(
                f"El estudiante {student_id} no tiene matrícula activa en la materia {subject_id}",
                key={"student_id": student_id, "subject_id": subject_id},
            )
