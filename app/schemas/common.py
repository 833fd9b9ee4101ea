"""Utilidades compartidas por los esquemas de entrada."""
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from app.core.exceptions import InvalidValue

M = TypeVar("M", bound=BaseModel)


def validate_row(model: type[M], data: M | Any, key: dict[str, Any] | None = None) -> M:
    """Construye ``model`` a partir de ``data`` y traduce ValidationError a InvalidValue."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        campo = ".".join(str(p) for p in first.get("loc", ())) or "fila"
        raise InvalidValue(f"{campo}: {first.get('msg')}", key=key) from exc
