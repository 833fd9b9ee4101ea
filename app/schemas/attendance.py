"""Esquemas para asistencias (registro por lote, porcentaje de presencia e historial)."""
from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ESTADOS_ASISTENCIA = ("present", "absent", "excused", "late")


class AttendanceMarkIn(BaseModel):
    """Fila del lote: id del estudiante, estado y justificación (obligatoria si excused)."""

    student_id: int = Field(description="ID del estudiante")
    status: str = Field(description="Estado: present, absent, excused, late")
    justification: str | None = Field(default=None, description="Justificación (obligatoria si excused)")

    @field_validator("status")
    @classmethod
    def validar_estado(cls, v: str) -> str:
        if v not in ESTADOS_ASISTENCIA:
            raise ValueError(f"status debe ser uno de: {', '.join(ESTADOS_ASISTENCIA)}")
        return v

    @model_validator(mode="after")
    def justificacion_obligatoria(self):
        if self.status == "excused" and not (self.justification or "").strip():
            raise ValueError("justification es obligatoria cuando status = excused")
        return self


class AttendanceBatchRequest(BaseModel):
    """Body para registrar la asistencia de una clase completa."""

    subject_id: int = Field(description="ID de la materia")
    class_date: date = Field(description="Fecha de la clase")
    rows: list[AttendanceMarkIn] = Field(description="Listado de asistencias (student_id, status, justification)")


class BatchSummary(BaseModel):
    """Resumen del lote confirmado."""

    subject_id: int
    class_date: date
    total: int
    present: int
    absent: int
    excused: int
    late: int
    presence_ratio: float = Field(description="(present + late) / total * 100; 0 si total = 0")


class PresenceRatio(BaseModel):
    """Porcentaje de presencia de un estudiante en una materia (opcionalmente por mes)."""

    student_id: int
    subject_id: int
    month: int | None = None
    year: int | None = None
    total: int
    present_equivalent: int = Field(description="Clases con estado present o late")
    ratio: float


class AttendanceRecordOut(BaseModel):
    """Registro de asistencia almacenado."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    subject_id: int
    class_date: date
    status: str
    justification: str | None = None
    recorder_id: int


class AttendanceHistory(BaseModel):
    """Historial de asistencia del estudiante con estadísticas."""

    student_id: int
    subject_id: int | None = None
    month: int | None = None
    year: int | None = None
    total: int
    present: int
    absent: int
    excused: int
    late: int
    presence_ratio: float
    records: list[AttendanceRecordOut]
