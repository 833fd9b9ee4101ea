"""Routers de la API."""
from fastapi import APIRouter, Depends

from app.api.endpoints import attendance, grades, students
from app.api.endpoints.auth import get_identity
from app.schemas.identity import IdentityContext

router = APIRouter()
router.include_router(grades.router)
router.include_router(attendance.router)
router.include_router(students.router)


@router.get(
    "/me",
    tags=["api"],
    summary="Identidad actual (protegido)",
    response_model=IdentityContext,
    responses={401: {"description": "Token no enviado, inválido o expirado"}},
)
async def get_me(identity: IdentityContext = Depends(get_identity)):
    """Devuelve id, rol y materias asignadas del actor según el JWT."""
    return identity


@router.get(
    "/",
    tags=["api"],
    summary="Raíz de la API v1",
    response_description="Mensaje de bienvenida y enlace a la documentación",
)
async def api_root():
    """Información básica de la API y enlace a la documentación Swagger."""
    return {"message": "Registro Académico API v1", "docs": "/docs", "redoc": "/redoc"}
