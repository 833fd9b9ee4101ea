"""Endpoints de consulta por estudiante: boletín de notas e historial de asistencia."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.endpoints.attendance import get_attendance_ledger
from app.api.endpoints.auth import ensure_can_read_student, get_identity
from app.api.endpoints.grades import get_grade_ledger
from app.schemas.attendance import AttendanceHistory
from app.schemas.grade import ReportCard
from app.schemas.identity import IdentityContext
from app.services.attendance_ledger import AttendanceLedger
from app.services.grade_ledger import GradeLedger

router = APIRouter(prefix="/students", tags=["estudiantes"])


@router.get(
    "/{student_id}/grades",
    response_model=ReportCard,
    summary="Boletín del estudiante",
    description="Notas del estudiante agrupadas por materia, con el promedio ponderado de cada una.",
)
async def boletin(
    student_id: int,
    subject_id: Annotated[int | None, Query(description="Filtrar por materia")] = None,
    ledger: GradeLedger = Depends(get_grade_ledger),
    identity: IdentityContext = Depends(get_identity),
):
    ensure_can_read_student(identity, student_id)
    return await ledger.report_card(student_id, subject_id)


@router.get(
    "/{student_id}/attendance",
    response_model=AttendanceHistory,
    summary="Historial de asistencia",
    description="Registros de asistencia del estudiante (más reciente primero) con conteo por estado y porcentaje de presencia.",
)
async def historial_asistencia(
    student_id: int,
    subject_id: Annotated[int | None, Query(description="Filtrar por materia")] = None,
    month: Annotated[int | None, Query(ge=1, le=12, description="Mes (1-12)")] = None,
    year: Annotated[int | None, Query(ge=1, le=9999, description="Año")] = None,
    ledger: AttendanceLedger = Depends(get_attendance_ledger),
    identity: IdentityContext = Depends(get_identity),
):
    ensure_can_read_student(identity, student_id)
    return await ledger.history(student_id, subject_id, month, year)
