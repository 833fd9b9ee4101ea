"""Errores del registro académico (notas y asistencia).

Cada error lleva un ``reason`` legible y, cuando aplica, la ``key`` natural de
la fila que lo provocó (ej. ``{"student_id": 7}``), para que el llamador sepa
qué fila corregir antes de reenviar el lote completo.
"""
from typing import Any


class RecordError(Exception):
    """Base de los errores de negocio del registro académico."""

    status_code = 400

    def __init__(self, reason: str, key: dict[str, Any] | None = None):
        super().__init__(reason)
        self.reason = reason
        self.key = key

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.reason, "key": self.key, "retryable": False}


class InvalidValue(RecordError):
    """Nota, peso, estado o justificación fuera de dominio."""

    status_code = 422


class Forbidden(RecordError):
    """El actor no puede escribir en la materia."""

    status_code = 403


class NotEnrolled(RecordError):
    """El par estudiante–materia no tiene matrícula activa."""

    status_code = 400


class Conflict(RecordError):
    """Violación de unicidad a nivel de almacenamiento pese al upsert."""

    status_code = 409


class TransactionAborted(RecordError):
    """La unidad de trabajo se revirtió por completo.

    ``cause`` es el error original: un ``RecordError`` si fue una regla de
    negocio, o la excepción del driver si fue una falla de almacenamiento
    (en cuyo caso ``retryable`` es True).
    """

    def __init__(self, cause: BaseException, retryable: bool = False):
        if isinstance(cause, RecordError):
            reason, key = cause.reason, cause.key
        else:
            reason, key = f"Falla de almacenamiento: {cause}", None
        super().__init__(reason, key)
        self.cause = cause
        self.retryable = retryable

    @property
    def status_code(self) -> int:  # type: ignore[override]
        if isinstance(self.cause, RecordError):
            return self.cause.status_code
        return 503

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["retryable"] = self.retryable
        return data
