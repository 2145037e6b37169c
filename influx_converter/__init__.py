"""
Conversor de métricas de InfluxDB al formato de Prometheus.
"""

__version__ = "1.0.0"
