#!/usr/bin/env python3
"""
Conversor de métricas de InfluxDB
=================================

Lee las tablas ``inside`` y ``outside`` de la base de datos del termostato
(ventana de las últimas horas), convierte cada columna en una métrica
independiente con los tags que espera Prometheus y las escribe por lotes en
la base de datos de destino.

Cualquier error aborta la ejecución con código de salida 1.
"""

import argparse
import logging
import sys

from .config import LoggingOptions, load_settings
from .converter import Converter
from .errors import ConverterError
from .influx_client import InfluxClient
from .logger_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="influx-converter",
        description="Convierte métricas de InfluxDB al formato de Prometheus.",
    )
    parser.add_argument(
        "--config",
        help="Archivo YAML de configuración (por defecto config/converter_config.yaml si existe).",
    )
    parser.add_argument(
        "--batch-size", type=int, help="Número de filas insertadas en cada lote."
    )
    parser.add_argument("--source-url", help="URL del InfluxDB de origen.")
    parser.add_argument("--source-username", help="Usuario del InfluxDB de origen.")
    parser.add_argument("--source-password", help="Contraseña del InfluxDB de origen.")
    parser.add_argument(
        "--target-url", help="URL del InfluxDB de destino. Si falta, se usa la de origen."
    )
    parser.add_argument(
        "--target-username",
        help="Usuario del InfluxDB de destino. Si falta, se usa el de origen.",
    )
    parser.add_argument(
        "--target-password",
        help="Contraseña del InfluxDB de destino. Si falta, se usa la de origen.",
    )
    parser.add_argument("--source-db", help="Base de datos de origen (nestats).")
    parser.add_argument("--target-db", help="Base de datos de destino (prometheus).")
    parser.add_argument("--window", help="Ventana temporal a migrar, p. ej. '10h'.")
    parser.add_argument(
        "--strict-count",
        action="store_true",
        default=None,
        help="Abortar si el conteo no coincide con las filas recibidas.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Convertir los lotes sin escribirlos en el destino.",
    )
    parser.add_argument("--log-level", help="Nivel de log (DEBUG, INFO, WARNING...).")
    return parser


def settings_overrides(args):
    """Traduce los argumentos de la línea de comandos a rutas de configuración."""
    return {
        "options.batch_size": args.batch_size,
        "source.url": args.source_url,
        "source.user": args.source_username,
        "source.password": args.source_password,
        "destination.url": args.target_url,
        "destination.user": args.target_username,
        "destination.password": args.target_password,
        "source.database": args.source_db,
        "destination.database": args.target_db,
        "options.window": args.window,
        "options.strict_count": args.strict_count,
        "options.dry_run": args.dry_run,
        "options.log_level": args.log_level,
    }


def initialize_clients(settings):
    """Crea y verifica los clientes de origen y destino."""
    logger.info("Inicializando clientes de InfluxDB...")
    clients = []
    for connection in (settings.source, settings.destination):
        client = InfluxClient(
            url=connection.url,
            user=connection.user,
            password=connection.password,
            timeout=settings.timeout_client,
            ssl=connection.ssl,
            verify_ssl=connection.verify_ssl,
        )
        client.test_connection()
        clients.append(client)
    logger.info("Clientes de InfluxDB inicializados correctamente.")
    return tuple(clients)


def main(argv=None):
    """
    Punto de entrada. Devuelve el código de salida del proceso.
    """
    args = build_parser().parse_args(argv)

    # Logging mínimo hasta tener la configuración completa
    setup_logging(LoggingOptions(log_level=args.log_level or "INFO"))

    try:
        settings = load_settings(args.config, settings_overrides(args))

        setup_logging(settings.logging_options)

        source_client, dest_client = initialize_clients(settings)
        Converter(settings, source_client, dest_client).run()

    except ConverterError as e:
        logger.critical(f"La migración ha fallado: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
