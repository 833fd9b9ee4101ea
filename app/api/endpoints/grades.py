"""Endpoints de notas (registro y promedio ponderado)."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.endpoints.auth import ensure_can_read_student, get_identity
from app.core.database import get_session_factory
from app.schemas.grade import GradeEntryIn, GradeRecordResult, WeightedAverage
from app.schemas.identity import IdentityContext
from app.services.grade_ledger import GradeLedger
from app.services.transaction import TransactionCoordinator

router = APIRouter(prefix="/grades", tags=["notas"])


def get_grade_ledger(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> GradeLedger:
    return GradeLedger(TransactionCoordinator(session_factory))


@router.post(
    "",
    response_model=GradeRecordResult,
    summary="Registrar nota",
    description="Inserta o reemplaza la nota de (estudiante, materia, tipo de evaluación, día). Devuelve el promedio ponderado recalculado. Requiere rol professor o coordinator.",
    responses={
        403: {"description": "El profesor no tiene asignada la materia"},
        400: {"description": "Estudiante sin matrícula activa en la materia"},
        422: {"description": "Nota o peso fuera de dominio"},
    },
)
async def registrar_nota(
    body: GradeEntryIn,
    ledger: GradeLedger = Depends(get_grade_ledger),
    identity: IdentityContext = Depends(get_identity),
):
    """Reenviar el mismo formulario es seguro: la clave natural evita duplicados."""
    return await ledger.record_grade(body, identity)


@router.get(
    "/average",
    response_model=WeightedAverage,
    summary="Promedio ponderado",
    description="Σ(nota×peso)/Σ(peso) del estudiante en la materia. entry_count = 0 indica que no hay notas.",
)
async def promedio_ponderado(
    student_id: Annotated[int, Query(description="ID del estudiante")],
    subject_id: Annotated[int, Query(description="ID de la materia")],
    ledger: GradeLedger = Depends(get_grade_ledger),
    identity: IdentityContext = Depends(get_identity),
):
    ensure_can_read_student(identity, student_id)
    return await ledger.weighted_average(student_id, subject_id)
