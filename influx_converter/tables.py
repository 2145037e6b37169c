"""
Tablas de origen que se migran y tags que se añaden a cada punto.

Cada consulta renombra las columnas de origen al nombre de la métrica de
destino, de modo que el nombre de columna devuelto ya es el ``__name__``.
"""

from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict

DEFAULT_WINDOW = "10h"

DEFAULT_TAGS: Dict[str, str] = {
    "job": "pronestheus",
    "instance": "pronestheus:2112",
    "name": "Living-Room",
    "id": "JyHyG8n7kBXBV0_KHqQhNsmUnpmzy3o_",
}

# inside:
# has_leaf -> nest_leaf
# humidity -> nest_humidity
# is_heating -> nest_heating
# target -> nest_target_temp
# temperature -> nest_current_temp
INSIDE_COLUMNS: List[Tuple[str, str]] = [
    ("has_leaf", "nest_leaf"),
    ("humidity", "nest_humidity"),
    ("is_heating", "nest_heating"),
    ("target", "nest_target_temp"),
    ("temperature", "nest_current_temp"),
]

# outside:
# humidity -> nest_weather_humidity
# pressure -> nest_weather_pressure
# temperature -> nest_weather_temp
OUTSIDE_COLUMNS: List[Tuple[str, str]] = [
    ("humidity", "nest_weather_humidity"),
    ("pressure", "nest_weather_pressure"),
    ("temperature", "nest_weather_temp"),
]


class TableSpec(BaseModel):
    """
    Par de consultas (datos, conteo) que describe una tabla lógica de origen.

    :param name: Nombre usado en los logs y en el resumen.
    :type name: str
    :param query: Consulta de datos. La primera columna devuelta es ``time``.
    :type query: str
    :param count_query: Consulta de conteo sobre la misma ventana temporal.
    :type count_query: str
    """

    model_config = ConfigDict(frozen=True)

    name: str
    query: str
    count_query: str


def build_table_spec(measurement, columns, window=DEFAULT_WINDOW):
    """Construye las consultas de datos y de conteo para una medición."""
    select_clause = ", ".join(f"{source} as {target}" for source, target in columns)
    where_clause = f"where time > now() - {window}"
    return TableSpec(
        name=measurement,
        query=f"select {select_clause} from {measurement} {where_clause}",
        count_query=f"select count(*) from {measurement} {where_clause}",
    )


def default_tables(window=DEFAULT_WINDOW) -> Tuple[TableSpec, ...]:
    """Tablas ``inside`` y ``outside`` del termostato."""
    return (
        build_table_spec("inside", INSIDE_COLUMNS, window),
        build_table_spec("outside", OUTSIDE_COLUMNS, window),
    )
