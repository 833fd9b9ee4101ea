"""Fórmulas de agregados: promedio ponderado y porcentaje de presencia.

Funciones puras sobre filas ya leídas; nunca se cachean ni se mantienen de
forma incremental.
"""
from collections import Counter
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from app.models.attendance import AttendanceStatus

DOS_DECIMALES = Decimal("0.01")


def weighted_average(pairs: Iterable[tuple[Decimal, Decimal]]) -> Decimal:
    """Σ(nota×peso) / Σ(peso), redondeado a 2 decimales; 0 si no hay notas."""
    total_ponderado = Decimal("0")
    total_pesos = Decimal("0")
    for score, weight in pairs:
        score, weight = Decimal(str(score)), Decimal(str(weight))
        total_ponderado += score * weight
        total_pesos += weight
    if total_pesos <= 0:
        return Decimal("0.00")
    return (total_ponderado / total_pesos).quantize(DOS_DECIMALES, rounding=ROUND_HALF_UP)


def presence_percentage(present_equivalent: int, total: int) -> float:
    """(presentes + atrasos) / total * 100, redondeado a 2 decimales; 0 si total = 0."""
    if not total:
        return 0.0
    return round(present_equivalent / total * 100.0, 2)


def count_statuses(statuses: Iterable[str]) -> dict[str, int]:
    """Cuenta estados de asistencia; siempre incluye los cuatro estados y ``total``."""
    conteo = Counter(statuses)
    resultado = {estado: conteo.get(estado, 0) for estado in AttendanceStatus.ALL}
    resultado["total"] = sum(conteo.values())
    resultado["present_equivalent"] = sum(
        conteo.get(estado, 0) for estado in AttendanceStatus.PRESENT_EQUIVALENT
    )
    return resultado
