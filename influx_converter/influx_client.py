import logging
from urllib.parse import urlparse

from influxdb import InfluxDBClient
from influxdb.exceptions import InfluxDBClientError, InfluxDBServerError
from requests.exceptions import RequestException

from .errors import ConnectionSetupError, QueryError, WriteError
from .schemas import RowSet

logger = logging.getLogger(__name__)

# Con precisión de segundos es suficiente
PRECISION = "s"


class InfluxClient:
    """
    Cliente para leer y escribir en un servidor InfluxDB 1.x.
    """

    def __init__(
        self, url, user="", password="", timeout=20, ssl=None, verify_ssl=True
    ):
        self.url = url
        self.user = user
        self.timeout = timeout

        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            logger.error(
                f"URL de InfluxDB no válida: {url}. Formato esperado: http(s)://hostname[:puerto]"
            )
            raise ConnectionSetupError(f"URL de InfluxDB no válida: {url}")

        if ssl is None:
            ssl = parsed.scheme == "https"
        try:
            port = parsed.port or (443 if ssl else 80)
        except ValueError as e:
            raise ConnectionSetupError(f"Puerto no válido en la URL {url}") from e

        self.client = InfluxDBClient(
            host=parsed.hostname,
            port=port,
            username=user,
            password=password,
            timeout=timeout,
            ssl=ssl,
            verify_ssl=verify_ssl,
            path=parsed.path.strip("/"),
        )

    def test_connection(self):
        """Prueba la conexión con el servidor InfluxDB."""
        try:
            version = self.client.ping()
        except (RequestException, InfluxDBClientError, InfluxDBServerError) as e:
            raise ConnectionSetupError(
                f"No se pudo conectar a la instancia de InfluxDB en {self.url}: {e}"
            ) from e
        logger.info(f"Conexión exitosa a {self.url}. Versión de InfluxDB: {version}")

    def query(self, query_string, database) -> RowSet:
        """
        Ejecuta una consulta y devuelve su única serie.

        La respuesta debe contener exactamente un resultado con exactamente
        una serie; cualquier otra forma se considera un error.
        """
        logger.debug(f"Ejecutando consulta en DB '{database}': {query_string}")
        try:
            result = self.client.query(
                query_string,
                database=database,
                epoch=PRECISION,
                raise_errors=True,
            )
        except (RequestException, InfluxDBClientError, InfluxDBServerError) as e:
            logger.error(
                f"Error al ejecutar consulta en '{database}': {query_string} - Error: {e}"
            )
            raise QueryError(
                f"Error al ejecutar la consulta '{query_string}' en '{database}': {e}"
            ) from e

        # Con varias sentencias (o ninguna) el cliente devuelve una lista
        if isinstance(result, list):
            raise QueryError(
                f"Se recibieron {len(result)} resultados para la consulta '{query_string}', se esperaba 1"
            )

        series = result.raw.get("series", [])
        if len(series) != 1:
            raise QueryError(
                f"Se recibieron {len(series)} series en el resultado de la consulta '{query_string}', se esperaba 1"
            )

        columns = tuple(series[0].get("columns", []))
        rows = tuple(tuple(values) for values in series[0].get("values", []))
        for index, row in enumerate(rows):
            if len(row) != len(columns):
                raise QueryError(
                    f"La fila {index} de la consulta '{query_string}' tiene {len(row)} valores "
                    f"y la serie {len(columns)} columnas"
                )

        return RowSet(columns=columns, rows=rows)

    def write_points(self, points, database):
        """Escribe un lote de puntos en una base de datos en una sola petición."""
        if not points:
            return
        logger.debug(
            f"Escribiendo {len(points)} puntos en la base de datos '{database}'"
        )
        try:
            written = self.client.write_points(
                [point.to_influx() for point in points],
                time_precision=PRECISION,
                database=database,
            )
        except (RequestException, InfluxDBClientError, InfluxDBServerError) as e:
            logger.error(f"Error al escribir datos en '{database}': {e}")
            raise WriteError(
                f"Error al escribir {len(points)} puntos en '{database}': {e}"
            ) from e

        if not written:
            raise WriteError(
                f"InfluxDB rechazó la escritura de {len(points)} puntos en '{database}'"
            )
