"""Identidad del actor que llama al núcleo (provista por la capa de autenticación)."""
from pydantic import BaseModel, ConfigDict, Field

from app.models.role import Role


class IdentityContext(BaseModel):
    """Actor autenticado: id, rol y materias que tiene asignadas."""

    model_config = ConfigDict(frozen=True)

    actor_id: int = Field(description="ID del usuario autenticado")
    actor_role: str = Field(description="Rol del usuario (student, professor, coordinator, ...)")
    assigned_subjects: frozenset[int] = Field(
        default_factory=frozenset, description="IDs de materias asignadas al actor"
    )

    @property
    def is_coordinator(self) -> bool:
        return self.actor_role == Role.COORDINATOR

    @property
    def is_staff(self) -> bool:
        return self.actor_role in Role.STAFF
