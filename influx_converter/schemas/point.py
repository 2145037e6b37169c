from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class Point(BaseModel):
    """
    Punto de datos del destino: una métrica, un instante y un valor.

    :param measurement: Nombre de la métrica (también va en el tag ``__name__``).
    :type measurement: str
    :param time: Instante en UTC con precisión de segundos.
    :type time: datetime
    :param value: Valor numérico de la métrica.
    :type value: float
    :param tags: Tags por defecto más ``__name__``.
    :type tags: Dict[str, str]
    """

    model_config = ConfigDict(frozen=True)

    measurement: str
    time: datetime
    value: float
    tags: Dict[str, str]

    def to_influx(self) -> Dict[str, Any]:
        """Devuelve el punto en el formato que espera ``InfluxDBClient.write_points``."""
        return {
            "measurement": self.measurement,
            "tags": dict(self.tags),
            "time": int(self.time.timestamp()),
            "fields": {"value": self.value},
        }
