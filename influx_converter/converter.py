import logging
from typing import List, Optional

from .batching import split_batches
from .config import ConverterSettings
from .errors import CountMismatchError, DecodeError, QueryError, WriteError
from .influx_client import InfluxClient
from .schemas import RowSet, TableReport
from .tables import TableSpec
from .transform import transform

logger = logging.getLogger(__name__)


class Converter:
    """
    Migra las tablas configuradas del InfluxDB de origen al de destino.

    Cada tabla se procesa de forma secuencial: consulta de conteo, consulta
    de datos, división en lotes y, por cada lote, conversión y escritura.
    Cualquier error se registra y se propaga; no hay reintentos.
    """

    def __init__(
        self,
        settings: ConverterSettings,
        source_client: InfluxClient,
        dest_client: InfluxClient,
    ):
        self.settings = settings
        self.source_client = source_client
        self.dest_client = dest_client

    def run(self) -> List[TableReport]:
        """Procesa todas las tablas en orden y devuelve un resumen por tabla."""
        reports = []
        for table in self.settings.tables:
            reports.append(self.run_on_table(table))

        total_points = sum(report.points_written for report in reports)
        total_rows = sum(report.received_rows for report in reports)
        logger.info(
            f"Migración completada: {len(reports)} tablas, {total_rows} filas, "
            f"{total_points} puntos escritos en '{self.settings.destination.database}'."
        )
        return reports

    def _reported_count(self, row_set: RowSet) -> Optional[int]:
        """Lee el conteo de la primera fila (la columna 0 es ``time``)."""
        if not row_set.rows or len(row_set.rows[0]) < 2:
            logger.warning("La consulta de conteo no devolvió ningún valor.")
            return None
        raw = row_set.rows[0][1]
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            logger.warning(f"La consulta de conteo devolvió un valor no numérico: {raw!r}")
            return None
        return int(raw)

    def run_on_table(self, table: TableSpec) -> TableReport:
        """Migra una tabla y devuelve su resumen."""
        source_db = self.settings.source.database
        dest_db = self.settings.destination.database

        logger.info("-------------------------------")
        logger.info(f"[{table.name}] Ejecutando consulta: {table.query}")

        try:
            count_result = self.source_client.query(table.count_query, source_db)
            reported_count = self._reported_count(count_result)

            result = self.source_client.query(table.query, source_db)
        except QueryError as e:
            logger.error(f"[{table.name}] Fallo al consultar '{source_db}': {e}")
            raise

        received = len(result.rows)
        logger.info(
            f"[{table.name}] La consulta contó {reported_count} métricas y se recibieron {received} métricas"
        )

        report = TableReport(
            table=table.name,
            reported_count=reported_count,
            received_rows=received,
            dry_run=self.settings.dry_run,
        )
        if not report.count_matches:
            message = (
                f"[{table.name}] El conteo ({reported_count}) no coincide con las filas recibidas ({received})"
            )
            if self.settings.strict_count:
                logger.error(message)
                raise CountMismatchError(message)
            logger.warning(message)

        batches = split_batches(result.rows, self.settings.batch_size)
        total = len(batches)
        report.batches = total
        if not batches:
            logger.info(f"[{table.name}] No hay filas que migrar en la ventana consultada.")
            return report

        for i, batch in enumerate(batches, start=1):
            try:
                logger.info(f"[{table.name}] Convirtiendo lote {i} / {total}")
                points = transform(
                    result.columns, batch, self.settings.default_tags
                )

                if self.settings.dry_run:
                    logger.info(
                        f"[{table.name}] (dry-run) Se omite la escritura de {len(points)} puntos del lote {i} / {total}"
                    )
                    continue

                logger.info(f"[{table.name}] Escribiendo lote {i} / {total}")
                self.dest_client.write_points(points, dest_db)
                report.points_written += len(points)
            except (DecodeError, WriteError) as e:
                logger.error(
                    f"[{table.name}] Fallo en el lote {i} / {total} hacia '{dest_db}': {e}"
                )
                raise

        logger.info(
            f"[{table.name}] Tabla completada: {report.points_written} puntos escritos en {total} lotes."
        )
        return report
