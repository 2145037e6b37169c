"""
Excepciones del conversor.

Todas heredan de ``ConverterError`` para que el punto de entrada pueda
capturarlas en un único sitio y terminar el proceso con código distinto de 0.
"""


class ConverterError(Exception):
    """Error base de la migración."""


class ConfigurationError(ConverterError):
    """La configuración está incompleta o no es válida."""


class ConnectionSetupError(ConverterError):
    """URL o credenciales mal formadas, o servidor inaccesible al arrancar."""


class QueryError(ConverterError):
    """Fallo de red, error devuelto por InfluxDB o respuesta con forma inesperada."""


class DecodeError(ConverterError):
    """Un valor que debería ser numérico no lo es."""


class WriteError(ConverterError):
    """Fallo de red o rechazo del servidor al escribir un lote."""


class CountMismatchError(ConverterError):
    """El conteo previo no coincide con las filas recibidas (solo en modo estricto)."""
