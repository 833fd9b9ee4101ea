"""Esquemas para el JWT recibido de la capa de autenticación."""
from pydantic import BaseModel, EmailStr


class TokenPayload(BaseModel):
    """Datos que viajan dentro del JWT (para la dependencia get_identity)."""
    sub: str
    role: str | None = None
    email: EmailStr | None = None
