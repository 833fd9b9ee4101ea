"""Modelo Nota (una calificación por estudiante, materia, tipo de evaluación y día)."""
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    ForeignKey,
    Identity,
    Numeric,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BigIntPK

if TYPE_CHECKING:
    from app.models.subject import Subject
    from app.models.user import User


class AssessmentKind:
    """Valores permitidos para el tipo de evaluación."""
    FIRST_TEST = "first-test"
    SECOND_TEST = "second-test"
    PROJECT = "project"
    PARTICIPATION = "participation"
    FINAL_EXAM = "final-exam"

    ALL = (FIRST_TEST, SECOND_TEST, PROJECT, PARTICIPATION, FINAL_EXAM)


class GradeEntry(Base):
    """Nota: clave natural (estudiante, materia, tipo, día de evaluación)."""

    __tablename__ = "grade_entries"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "subject_id", "assessment_kind", "evaluated_on",
            name="uq_grade_entries_natural_key",
        ),
        CheckConstraint("score >= 0 AND score <= 20", name="ck_grade_entries_score"),
        CheckConstraint("weight > 0 AND weight <= 1", name="ck_grade_entries_weight"),
    )

    # Columnas de la clave natural; el upsert nunca las modifica
    NATURAL_KEY = ("student_id", "subject_id", "assessment_kind", "evaluated_on")
    MUTABLE = ("score", "weight", "notes", "grader_id")

    id: Mapped[int] = mapped_column(BigIntPK, Identity(always=True), primary_key=True)
    student_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False, index=True
    )
    subject_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("subjects.id"), nullable=False
    )
    assessment_kind: Mapped[str] = mapped_column(Text, nullable=False)
    score: Mapped[Decimal] = mapped_column(Numeric(10, 6), nullable=False)
    weight: Mapped[Decimal] = mapped_column(Numeric(10, 6), nullable=False, default=Decimal("1"))
    evaluated_on: Mapped[date] = mapped_column(Date, nullable=False)
    grader_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    student: Mapped["User"] = relationship("User", foreign_keys=[student_id])
    subject: Mapped["Subject"] = relationship("Subject")
    grader: Mapped["User"] = relationship("User", foreign_keys=[grader_id])
