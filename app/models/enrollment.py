"""Modelo Matrícula (estudiante–materia), tabla de referencia de solo lectura."""
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, ForeignKey, Identity, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BigIntPK

if TYPE_CHECKING:
    from app.models.subject import Subject
    from app.models.user import User


class EnrollmentStatus:
    """Valores permitidos para el estado de la matrícula."""
    ACTIVE = "active"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Enrollment(Base):
    """Matrícula: solo status = active habilita notas y asistencia."""

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "subject_id", name="uq_enrollments_student_subject"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, Identity(always=True), primary_key=True)
    student_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    subject_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("subjects.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=EnrollmentStatus.ACTIVE,
        server_default=text(f"'{EnrollmentStatus.ACTIVE}'"),
    )

    student: Mapped["User"] = relationship("User", back_populates="enrollments")
    subject: Mapped["Subject"] = relationship("Subject", back_populates="enrollments")
