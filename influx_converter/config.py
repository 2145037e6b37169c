"""
Configuración del conversor.

Se combinan, de menor a mayor prioridad:

1. Valores por defecto.
2. Archivo YAML (``config/converter_config.yaml`` si existe).
3. Variables de entorno (``SOURCE_URL``, ``DEST_URL``...), incluido ``.env``.
4. Argumentos de línea de comandos.

El resultado es un ``ConverterSettings`` inmutable que se pasa explícitamente
al conversor.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError
from .tables import DEFAULT_TAGS, DEFAULT_WINDOW, TableSpec, default_tables

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/converter_config.yaml"
DEFAULT_SOURCE_URL = "https://influxdb.hq.grdl.pl"
DEFAULT_SOURCE_DB = "nestats"
DEFAULT_TARGET_DB = "prometheus"
DEFAULT_BATCH_SIZE = 10000

WINDOW_PATTERN = re.compile(r"^\d+[smhdw]$")


def replace_env_vars(value: str) -> str:
    """
    Sustituye las referencias ${VAR}, ${VAR:-valor} y $VAR por el valor de la
    variable de entorno (o el valor por defecto indicado, o cadena vacía).
    """
    pattern = r"\$\{([^}^{]+)\}|\$([a-zA-Z_][a-zA-Z0-9_]*)"

    def replace_var(match):
        env_var = match.group(1) or match.group(2)
        if ":-" in env_var:
            env_var, default = env_var.split(":-", 1)
        else:
            default = ""
        return os.getenv(env_var, default)

    return re.sub(pattern, replace_var, value)


def process_config(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Aplica ``replace_env_vars`` a todas las cadenas del YAML, también dentro de listas."""
    result = {}

    for key, value in config_dict.items():
        if isinstance(value, dict):
            result[key] = process_config(value)
        elif isinstance(value, list):
            result[key] = [
                process_config(item) if isinstance(item, dict) else
                replace_env_vars(item) if isinstance(item, str) else item
                for item in value
            ]
        elif isinstance(value, str):
            result[key] = replace_env_vars(value)
        else:
            result[key] = value

    return result


class Config:
    """
    Carga el archivo YAML de configuración y permite consultarlo por rutas.
    """

    def __init__(self, config_path=DEFAULT_CONFIG_PATH, required=True):
        self.config_path = Path(config_path)
        self.required = required
        self.config = self._load_config()

    def _load_config(self):
        """Carga el archivo de configuración YAML."""
        if not self.config_path.is_file():
            if self.required:
                logger.error(
                    f"El archivo de configuración no se encuentra en: {self.config_path}"
                )
                raise ConfigurationError(
                    f"El archivo de configuración no se encuentra en: {self.config_path}"
                )
            logger.debug(
                f"Sin archivo de configuración en {self.config_path}, se usan los valores por defecto."
            )
            return {}

        logger.info(f"Cargando configuración desde: {self.config_path}")
        with open(self.config_path, "r") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                logger.error(f"Error al parsear el archivo YAML: {e}")
                raise ConfigurationError(
                    f"Error al parsear el archivo YAML {self.config_path}: {e}"
                ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"El archivo {self.config_path} debe contener un diccionario en la raíz."
            )
        return process_config(data)

    def get(self, key_path, default=None):
        """
        Obtiene un valor de la configuración usando una ruta de claves anidadas.
        Ejemplo: get('source.url')
        """
        keys = key_path.split(".")
        value = self.config
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value


class InfluxConnection(BaseModel):
    """Datos de conexión a un servidor InfluxDB y base de datos a usar."""

    model_config = ConfigDict(frozen=True)

    url: str
    user: str = ""
    password: str = ""
    database: str
    ssl: Optional[bool] = None
    verify_ssl: bool = True


class LogRotation(BaseModel):
    """Rotación por tiempo del archivo de log (``TimedRotatingFileHandler``)."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    when: str = "D"
    interval: int = Field(1, ge=1)
    backup_count: int = Field(5, ge=0)


class LokiOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    url: str = "loki"
    port: int = 3100
    tags: Dict[str, str] = Field(default_factory=dict)

    @property
    def push_url(self) -> str:
        return f"http://{self.url}:{self.port}/loki/api/v1/push"


class LoggingOptions(BaseModel):
    """
    Opciones de logging de una ejecución.

    :param log_level: Nivel del logger raíz.
    :param log_file: Archivo de log; vacío o None para escribir solo en consola.
    :param log_rotation: Rotación del archivo de log.
    :param loki: Envío de los logs a Loki.
    """

    model_config = ConfigDict(frozen=True)

    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_rotation: LogRotation = Field(default_factory=LogRotation)
    loki: LokiOptions = Field(default_factory=LokiOptions)


class ConverterSettings(BaseModel):
    """
    Configuración inmutable de una ejecución.

    :param source: Conexión al InfluxDB de origen.
    :param destination: Conexión al InfluxDB de destino.
    :param batch_size: Número máximo de filas por lote de escritura.
    :param window: Ventana temporal hacia atrás que se relee en cada ejecución.
    :param timeout_client: Timeout en segundos de cada petición HTTP.
    :param strict_count: Si es True, un conteo distinto de las filas recibidas aborta.
    :param dry_run: Convierte los lotes pero no los escribe.
    :param default_tags: Tags añadidos a todos los puntos.
    :param tables: Tablas a migrar, en orden.
    :param logging_options: Opciones de logging.
    """

    model_config = ConfigDict(frozen=True)

    source: InfluxConnection
    destination: InfluxConnection
    batch_size: int = Field(DEFAULT_BATCH_SIZE, ge=1)
    window: str = DEFAULT_WINDOW
    timeout_client: int = Field(20, ge=1)
    strict_count: bool = False
    dry_run: bool = False
    default_tags: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_TAGS))
    tables: Tuple[TableSpec, ...] = ()
    logging_options: LoggingOptions = Field(default_factory=LoggingOptions)

    @field_validator("window")
    @classmethod
    def _check_window(cls, value):
        if not WINDOW_PATTERN.match(value):
            raise ValueError(
                f"Formato de ventana inválido: '{value}'. Ejemplos válidos: '10h', '30m', '2d'."
            )
        return value

    @field_validator("default_tags")
    @classmethod
    def _check_tags(cls, value):
        if "__name__" in value:
            raise ValueError("El tag '__name__' se asigna automáticamente a cada punto.")
        return value


def _first(*values):
    """Devuelve el primer valor que no sea None."""
    for value in values:
        if value is not None:
            return value
    return None


def load_settings(config_path=None, overrides=None) -> ConverterSettings:
    """
    Construye la configuración de la ejecución.

    :param config_path: Ruta del YAML. Si no se indica, se usa el archivo por
                        defecto solo si existe.
    :param overrides: Valores de la línea de comandos, con claves en forma de
                      ruta (``source.url``, ``options.batch_size``...). Los
                      valores None se ignoran.
    :return: Configuración validada.
    """
    load_dotenv()
    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}

    config = Config(
        config_path or DEFAULT_CONFIG_PATH, required=config_path is not None
    )

    def option(key, env=None, default=None):
        return _first(
            overrides.get(key),
            os.getenv(env) if env else None,
            config.get(key),
            default,
        )

    source_url = option("source.url", "SOURCE_URL", DEFAULT_SOURCE_URL)
    source_user = option("source.user", "SOURCE_USER", "")
    source_password = option("source.password", "SOURCE_PASSWORD", "")

    window = option("options.window", default=DEFAULT_WINDOW)
    tables_config = config.get("tables")

    if tables_config and option("options.window") is not None:
        logger.warning(
            f"Se ignora la ventana '{window}': la sección 'tables' define sus propias consultas."
        )

    try:
        if tables_config:
            tables = tuple(TableSpec(**table) for table in tables_config)
        else:
            tables = default_tables(window)

        settings = ConverterSettings(
            source=InfluxConnection(
                url=source_url,
                user=source_user,
                password=source_password,
                database=option("source.database", default=DEFAULT_SOURCE_DB),
                ssl=config.get("source.ssl"),
                verify_ssl=config.get("source.verify_ssl", True),
            ),
            # El destino hereda la conexión del origen si no se indica otra
            destination=InfluxConnection(
                url=option("destination.url", "DEST_URL", source_url),
                user=option("destination.user", "DEST_USER", source_user),
                password=option(
                    "destination.password", "DEST_PASSWORD", source_password
                ),
                database=option(
                    "destination.database", default=DEFAULT_TARGET_DB
                ),
                ssl=config.get("destination.ssl"),
                verify_ssl=config.get("destination.verify_ssl", True),
            ),
            batch_size=option("options.batch_size", default=DEFAULT_BATCH_SIZE),
            window=window,
            timeout_client=option("options.timeout_client", default=20),
            strict_count=option("options.strict_count", default=False),
            dry_run=option("options.dry_run", default=False),
            default_tags=option("options.default_tags", default=dict(DEFAULT_TAGS)),
            tables=tables,
            logging_options=LoggingOptions(
                log_level=option("options.log_level", "LOG_LEVEL", "INFO"),
                log_file=option("options.log_file", "LOG_FILE"),
                log_rotation=config.get("options.log_rotation") or {},
                loki=config.get("options.loki") or {},
            ),
        )
    except (ValidationError, TypeError) as e:
        raise ConfigurationError(f"Configuración no válida: {e}") from e

    if not settings.tables:
        raise ConfigurationError("No hay ninguna tabla que migrar.")

    logger.debug(
        f"Configuración: origen={settings.source.url}/{settings.source.database}, "
        f"destino={settings.destination.url}/{settings.destination.database}, "
        f"batch_size={settings.batch_size}, tablas={[t.name for t in settings.tables]}"
    )
    return settings
