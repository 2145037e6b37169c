import pytest

from influx_converter.config import ConverterSettings, InfluxConnection
from influx_converter.schemas import RowSet
from influx_converter.tables import default_tables

from .helpers import INSIDE_COLUMNS, FakeSourceClient, count_row_set


@pytest.fixture
def make_settings():
    def _make(**kwargs):
        values = {
            "source": InfluxConnection(url="http://source:8086", database="nestats"),
            "destination": InfluxConnection(
                url="http://target:8086", database="prometheus"
            ),
            "tables": default_tables(),
        }
        values.update(kwargs)
        return ConverterSettings(**values)

    return _make


@pytest.fixture
def inside_table():
    return default_tables()[0]


@pytest.fixture
def single_table_source(inside_table):
    def _make(rows, reported_count=None):
        if reported_count is None:
            reported_count = len(rows)
        return FakeSourceClient(
            [
                (
                    inside_table,
                    count_row_set(reported_count),
                    RowSet(columns=INSIDE_COLUMNS, rows=rows),
                )
            ]
        )

    return _make

