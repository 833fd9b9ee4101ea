"""Esquemas para notas (registro, promedio ponderado y boletín)."""
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

AssessmentKindLiteral = Literal[
    "first-test", "second-test", "project", "participation", "final-exam"
]

# Decimales con que se almacenan nota y peso
ESCALA = Decimal("0.000001")


class GradeEntryIn(BaseModel):
    """Nota a registrar. El evaluador es siempre el actor que la envía."""

    student_id: int = Field(description="ID del estudiante")
    subject_id: int = Field(description="ID de la materia")
    assessment_kind: AssessmentKindLiteral = Field(description="Tipo de evaluación")
    score: Decimal = Field(ge=0, le=20, description="Nota de 0 a 20")
    weight: Decimal = Field(default=Decimal("1.0"), gt=0, le=1, description="Peso en (0, 1]; por defecto 1.0")
    evaluated_on: date = Field(default_factory=date.today, description="Día de la evaluación")
    notes: str | None = Field(default=None, description="Observaciones opcionales")

    @field_validator("weight", mode="before")
    @classmethod
    def peso_por_defecto(cls, v):
        # Un peso ausente (null) equivale a 1.0
        return Decimal("1.0") if v is None else v

    @field_validator("score", "weight")
    @classmethod
    def a_precision_de_almacenamiento(cls, v: Decimal, info):
        # Se guarda con ESCALA decimales; un peso que se redondea a 0 queda fuera de dominio
        v = v.quantize(ESCALA, rounding=ROUND_HALF_UP)
        if info.field_name == "weight" and v <= 0:
            raise ValueError("el peso se redondea a 0 con 6 decimales")
        return v

    @field_validator("evaluated_on", mode="before")
    @classmethod
    def truncar_a_dia(cls, v):
        if v is None:
            return date.today()
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and len(v) > 10:
            return datetime.fromisoformat(v.replace("Z", "+00:00")).date()
        return v

    @property
    def natural_key(self) -> dict:
        return {
            "student_id": self.student_id,
            "subject_id": self.subject_id,
            "assessment_kind": self.assessment_kind,
            "evaluated_on": self.evaluated_on.isoformat(),
        }


class GradeEntryOut(BaseModel):
    """Nota almacenada."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    subject_id: int
    assessment_kind: str
    score: float
    weight: float
    evaluated_on: date
    grader_id: int
    notes: str | None = None


class WeightedAverage(BaseModel):
    """Promedio ponderado de un estudiante en una materia."""

    student_id: int
    subject_id: int
    average: float = Field(description="Σ(nota×peso)/Σ(peso); 0 si no hay notas")
    entry_count: int = Field(description="Cantidad de notas consideradas (0 = sin datos)")

    @property
    def has_data(self) -> bool:
        return self.entry_count > 0


class GradeRecordResult(BaseModel):
    """Respuesta de registrar una nota: la nota guardada y el promedio recalculado."""

    entry: GradeEntryOut
    new_average: float
    entry_count: int


class SubjectGrades(BaseModel):
    """Notas de una materia dentro del boletín."""

    subject_id: int
    subject_name: str
    average: float
    entry_count: int
    entries: list[GradeEntryOut]


class ReportCard(BaseModel):
    """Boletín del estudiante: notas agrupadas por materia con su promedio."""

    student_id: int
    subjects: list[SubjectGrades]
