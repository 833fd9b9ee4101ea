"""Modelo Asignación de materia (qué profesor califica qué materia)."""
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, ForeignKey, Identity, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BigIntPK

if TYPE_CHECKING:
    from app.models.subject import Subject
    from app.models.user import User


class SubjectAssignment(Base):
    """Asignación materia–profesor; tabla de referencia de solo lectura."""

    __tablename__ = "subject_assignments"
    __table_args__ = (
        UniqueConstraint("subject_id", "grader_id", name="uq_subject_assignments_subject_grader"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, Identity(always=True), primary_key=True)
    subject_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("subjects.id"), nullable=False
    )
    grader_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )

    subject: Mapped["Subject"] = relationship("Subject", back_populates="assignments")
    grader: Mapped["User"] = relationship("User", back_populates="assignments")
