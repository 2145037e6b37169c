"""Test doubles for the source and target stores."""

from influx_converter.errors import WriteError
from influx_converter.schemas import RowSet

INSIDE_COLUMNS = (
    "time",
    "nest_leaf",
    "nest_humidity",
    "nest_heating",
    "nest_target_temp",
    "nest_current_temp",
)


class FakeSourceClient:
    """Source store double: answers count and data queries per table."""

    def __init__(self, tables):
        # {query text: RowSet}
        self.responses = {}
        self.queries = []
        for spec, count_result, data_result in tables:
            self.responses[spec.count_query] = count_result
            self.responses[spec.query] = data_result

    def query(self, query_string, database):
        self.queries.append((query_string, database))
        response = self.responses[query_string]
        if isinstance(response, Exception):
            raise response
        return response


class FakeDestClient:
    """Target store double recording every write, optionally failing on one call."""

    def __init__(self, fail_on_call=None):
        self.writes = []
        self.calls = 0
        self.fail_on_call = fail_on_call

    def write_points(self, points, database):
        self.calls += 1
        if self.calls == self.fail_on_call:
            raise WriteError(f"rejected write #{self.calls}")
        self.writes.append((list(points), database))


def count_row_set(count):
    return RowSet(
        columns=("time", "count_has_leaf", "count_humidity"),
        rows=((0, count, count),),
    )


def inside_rows(n, start=1700000000):
    return tuple(
        (start + 60 * i, 1, 45.5 + i, 0, 21.0, 20.5 + i) for i in range(n)
    )
