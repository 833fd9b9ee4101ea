"""Modelo Asistencia (registro por estudiante, materia y fecha de clase)."""
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    ForeignKey,
    Identity,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BigIntPK

if TYPE_CHECKING:
    from app.models.subject import Subject
    from app.models.user import User


class AttendanceStatus:
    """Valores permitidos para estado de asistencia."""
    PRESENT = "present"
    ABSENT = "absent"
    EXCUSED = "excused"
    LATE = "late"

    ALL = (PRESENT, ABSENT, EXCUSED, LATE)
    # Cuentan como asistencia en el porcentaje de presencia
    PRESENT_EQUIVALENT = (PRESENT, LATE)


class AttendanceRecord(Base):
    """Asistencia: presente/ausente/justificado/atraso por fecha, estudiante y materia."""

    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "subject_id", "class_date",
            name="uq_attendance_records_natural_key",
        ),
        CheckConstraint(
            "status IN ('present', 'absent', 'excused', 'late')",
            name="ck_attendance_records_status",
        ),
        CheckConstraint(
            "status <> 'excused' OR (justification IS NOT NULL AND justification <> '')",
            name="ck_attendance_records_justification",
        ),
    )

    NATURAL_KEY = ("student_id", "subject_id", "class_date")
    MUTABLE = ("status", "justification", "recorder_id")

    id: Mapped[int] = mapped_column(BigIntPK, Identity(always=True), primary_key=True)
    class_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False)
    justification: Mapped[str | None] = mapped_column(Text, nullable=True)
    student_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False, index=True
    )
    subject_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("subjects.id"), nullable=False
    )
    recorder_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )

    student: Mapped["User"] = relationship("User", foreign_keys=[student_id])
    subject: Mapped["Subject"] = relationship("Subject")
    recorder: Mapped["User"] = relationship("User", foreign_keys=[recorder_id])
