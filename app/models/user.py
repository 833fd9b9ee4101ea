"""Modelo Usuario (dueño: módulo de administración; aquí solo se lee)."""
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Identity, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BigIntPK
from app.models.role import Role

if TYPE_CHECKING:
    from app.models.enrollment import Enrollment
    from app.models.subject_assignment import SubjectAssignment


class User(Base):
    """Usuario del portal: estudiantes, profesores, coordinadores, etc."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role IN (" + ", ".join(f"'{r}'" for r in Role.ALL) + ")",
            name="ck_users_role",
        ),
    )

    id: Mapped[int] = mapped_column(BigIntPK, Identity(always=True), primary_key=True)
    full_name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    role: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default="active", server_default=text("'active'")
    )

    enrollments: Mapped[list["Enrollment"]] = relationship(
        "Enrollment", back_populates="student"
    )
    assignments: Mapped[list["SubjectAssignment"]] = relationship(
        "SubjectAssignment", back_populates="grader"
    )
