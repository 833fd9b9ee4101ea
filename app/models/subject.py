"""Modelo Materia (disciplina)."""
from typing import TYPE_CHECKING

from sqlalchemy import Identity, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BigIntPK

if TYPE_CHECKING:
    from app.models.enrollment import Enrollment
    from app.models.subject_assignment import SubjectAssignment


class Subject(Base):
    """Materia: ej. Matemática, Física I."""

    __tablename__ = "subjects"

    id: Mapped[int] = mapped_column(BigIntPK, Identity(always=True), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    enrollments: Mapped[list["Enrollment"]] = relationship(
        "Enrollment", back_populates="subject"
    )
    assignments: Mapped[list["SubjectAssignment"]] = relationship(
        "SubjectAssignment", back_populates="subject"
    )
