"""Dependencias de autenticación: identidad del actor a partir del JWT."""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import read_access_token
from app.models import SubjectAssignment, User
from app.schemas.identity import IdentityContext

security = HTTPBearer(auto_error=False)


async def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> IdentityContext:
    """Dependencia: exige un JWT válido y devuelve la identidad del actor. Usar en endpoints protegidos."""
    if not credentials or credentials.scheme != "Bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token de autenticación no proporcionado o inválido",
            headers={"WWW-Authenticate": "Bearer"},
        )
    claims = read_access_token(credentials.credentials)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token inválido o expirado",
            headers={"WWW-Authenticate": "Bearer"},
        )
    result = await db.execute(select(User).where(User.id == int(claims.sub)))
    usuario = result.scalar_one_or_none()
    if not usuario:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuario no encontrado",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if usuario.status != "active":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Usuario inactivo. Contacte al administrador.",
        )
    # El rol vigente es el de la base, no el del token
    r = await db.execute(
        select(SubjectAssignment.subject_id).where(SubjectAssignment.grader_id == usuario.id)
    )
    return IdentityContext(
        actor_id=usuario.id,
        actor_role=usuario.role,
        assigned_subjects=frozenset(r.scalars().all()),
    )


def ensure_can_read_student(identity: IdentityContext, student_id: int) -> None:
    """Un estudiante solo consulta sus propios registros; el personal, los de cualquiera."""
    if identity.is_staff or identity.actor_id == student_id:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="No tiene acceso a los registros de este estudiante",
    )
