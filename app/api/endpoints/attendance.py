"""Endpoints de asistencias (registro por lote y porcentaje de presencia)."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.endpoints.auth import ensure_can_read_student, get_identity
from app.core.database import get_session_factory
from app.schemas.attendance import AttendanceBatchRequest, BatchSummary, PresenceRatio
from app.schemas.identity import IdentityContext
from app.services.attendance_ledger import AttendanceLedger
from app.services.transaction import TransactionCoordinator

router = APIRouter(prefix="/attendance", tags=["asistencias"])


def get_attendance_ledger(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AttendanceLedger:
    return AttendanceLedger(TransactionCoordinator(session_factory))


@router.post(
    "/batch",
    response_model=BatchSummary,
    status_code=status.HTTP_201_CREATED,
    summary="Registrar asistencia de una clase",
    description="Registra la asistencia de todos los estudiantes de una clase. Si una fila falla, no se guarda ninguna. Requiere rol professor o coordinator.",
)
async def registrar_asistencia(
    body: AttendanceBatchRequest,
    ledger: AttendanceLedger = Depends(get_attendance_ledger),
    identity: IdentityContext = Depends(get_identity),
):
    """El usuario autenticado queda como responsable de todos los registros del lote."""
    return await ledger.record_batch(body.subject_id, body.class_date, body.rows, identity)


@router.get(
    "/ratio",
    response_model=PresenceRatio,
    summary="Porcentaje de presencia",
    description="(present + late) / total * 100 del estudiante en la materia, opcionalmente filtrado por mes y año.",
)
async def porcentaje_presencia(
    student_id: Annotated[int, Query(description="ID del estudiante")],
    subject_id: Annotated[int, Query(description="ID de la materia")],
    month: Annotated[int | None, Query(ge=1, le=12, description="Mes (1-12)")] = None,
    year: Annotated[int | None, Query(ge=1, le=9999, description="Año")] = None,
    ledger: AttendanceLedger = Depends(get_attendance_ledger),
    identity: IdentityContext = Depends(get_identity),
):
    ensure_can_read_student(identity, student_id)
    return await ledger.presence_ratio(student_id, subject_id, month, year)
