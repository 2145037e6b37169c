import logging
import sys
from logging import FileHandler
from logging.handlers import TimedRotatingFileHandler

from logging_loki import LokiHandler

from .config import LoggingOptions

PROCESS_NAME = "influx-converter"


def _file_handler(options: LoggingOptions):
    """Handler del archivo de log, con rotación por tiempo si está habilitada."""
    rotation = options.log_rotation
    if rotation.enabled:
        return TimedRotatingFileHandler(
            options.log_file,
            when=rotation.when,
            interval=rotation.interval,
            backupCount=rotation.backup_count,
            encoding="utf-8",
        )
    return FileHandler(options.log_file, encoding="utf-8")


def _loki_handler(options: LoggingOptions, process_name):
    tags = dict(options.loki.tags)
    if process_name:
        tags["config_name"] = process_name
    return LokiHandler(url=options.loki.push_url, tags=tags, version="1")


def setup_logging(options: LoggingOptions, process_name=PROCESS_NAME):
    """
    Configura el logger raíz a partir de las opciones de la ejecución.

    Siempre escribe en consola; además en archivo si ``log_file`` está
    definido y en Loki si ``loki.enabled``. Se puede llamar varias veces: los
    handlers anteriores se sustituyen.
    """
    prefix = f"[{process_name}] - " if process_name else ""
    formatter = logging.Formatter(
        f"%(asctime)s - {prefix}%(name)s - %(levelname)s - %(message)s"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, options.log_level.upper(), logging.INFO))
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        if isinstance(handler, FileHandler):
            handler.close()

    handlers = [logging.StreamHandler(sys.stdout)]
    file_error = None
    if options.log_file:
        try:
            handlers.append(_file_handler(options))
        except OSError as e:
            file_error = e
    if options.loki.enabled:
        handlers.append(_loki_handler(options, process_name))

    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    if file_error is not None:
        logging.warning(
            f"No se puede escribir en '{options.log_file}' ({file_error}); los logs solo irán a consola."
        )
    logging.debug(
        f"Logging: nivel={options.log_level.upper()}, archivo={options.log_file or '-'}, "
        f"rotación={options.log_rotation.enabled}, loki={options.loki.enabled}"
    )
