"""Utilidades de seguridad: JWT del actor (sub = id del usuario, role = rol)."""
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from pydantic import ValidationError

from app.core.config import settings
from app.schemas.auth import TokenPayload


def create_access_token(subject: str | int, role: str, extra: dict[str, Any] | None = None) -> str:
    """Genera un JWT para el actor. La emisión real vive en el servicio de autenticación;
    aquí se usa en pruebas y herramientas internas."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(subject),
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expire_minutes),
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def read_access_token(token: str) -> TokenPayload | None:
    """Verifica firma y expiración del JWT; devuelve sus claims o None si es inválido."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
        claims = TokenPayload.model_validate(payload)
        int(claims.sub)
    except (jwt.PyJWTError, ValidationError, ValueError):
        return None
    return claims
