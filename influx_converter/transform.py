"""
Conversión de filas anchas (``time`` + N columnas) en N puntos por fila.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Dict, List, Sequence

from .errors import DecodeError
from .schemas import Point

logger = logging.getLogger(__name__)


def _decode_number(raw, column):
    # bool es subclase de int pero no es un valor numérico de la serie
    if isinstance(raw, bool) or raw is None:
        raise DecodeError(f"Valor no numérico en la columna '{column}': {raw!r}")
    if isinstance(raw, (int, float)):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            return float(raw)
        except ValueError as e:
            raise DecodeError(
                f"Valor no numérico en la columna '{column}': {raw!r}"
            ) from e
    raise DecodeError(f"Valor no numérico en la columna '{column}': {raw!r}")


def decode_timestamp(raw, column="time") -> datetime:
    """Convierte un epoch en segundos a un datetime UTC, descartando fracciones."""
    value = _decode_number(raw, column)
    if isinstance(value, float) and not math.isfinite(value):
        raise DecodeError(f"Timestamp no válido en la columna '{column}': {raw!r}")
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise DecodeError(
            f"Timestamp fuera de rango en la columna '{column}': {raw!r}"
        ) from e


def decode_value(raw, column) -> float:
    """Convierte un valor a float; solo se admiten valores finitos."""
    try:
        value = float(_decode_number(raw, column))
    except OverflowError as e:
        raise DecodeError(f"Valor fuera de rango en la columna '{column}': {raw!r}") from e
    if not math.isfinite(value):
        raise DecodeError(f"Valor no finito en la columna '{column}': {raw!r}")
    return value


def new_point(name, timestamp, value, default_tags) -> Point:
    tags = dict(default_tags)
    tags["__name__"] = name
    return Point(measurement=name, time=timestamp, value=value, tags=tags)


def transform(
    columns: Sequence[str], rows: Sequence[Sequence], default_tags: Dict[str, str]
) -> List[Point]:
    """
    Convierte cada columna de cada fila en un punto independiente.

    La columna 0 es el timestamp y no genera punto. Las filas se recorren en
    orden y, dentro de cada fila, las columnas de izquierda a derecha. Si un
    valor no se puede decodificar se lanza ``DecodeError`` y no se devuelve
    ningún punto del lote.
    """
    points = []
    for values in rows:
        timestamp = decode_timestamp(values[0], columns[0])

        for i in range(1, len(columns)):
            value = decode_value(values[i], columns[i])
            points.append(new_point(columns[i], timestamp, value, default_tags))

    logger.debug(f"Convertidas {len(rows)} filas en {len(points)} puntos")
    return points
