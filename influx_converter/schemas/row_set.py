from typing import Any, Tuple

from pydantic import BaseModel, ConfigDict


class RowSet(BaseModel):
    """
    Resultado tabular de una consulta: una única serie de InfluxDB.

    :param columns: Nombres de las columnas. La columna 0 siempre es ``time``.
    :type columns: Tuple[str, ...]
    :param rows: Filas en el orden devuelto por el servidor. Cada fila tiene
                 exactamente ``len(columns)`` valores.
    :type rows: Tuple[Tuple[Any, ...], ...]
    """

    model_config = ConfigDict(frozen=True)

    columns: Tuple[str, ...]
    rows: Tuple[Tuple[Any, ...], ...] = ()
