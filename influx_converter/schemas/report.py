from typing import Optional

from pydantic import BaseModel


class TableReport(BaseModel):
    """
    Resumen de la migración de una tabla.

    :param table: Nombre lógico de la tabla (``inside``, ``outside``...).
    :param reported_count: Filas que anunció la consulta de conteo, si se pudo leer.
    :param received_rows: Filas devueltas por la consulta de datos.
    :param batches: Número de lotes procesados.
    :param points_written: Puntos escritos en el destino (0 en modo ``dry_run``).
    """

    table: str
    reported_count: Optional[int] = None
    received_rows: int = 0
    batches: int = 0
    points_written: int = 0
    dry_run: bool = False

    @property
    def count_matches(self) -> bool:
        return self.reported_count is None or self.reported_count == self.received_rows
