import pytest

from influx_converter.converter import Converter
from influx_converter.errors import CountMismatchError, DecodeError, QueryError, WriteError
from influx_converter.schemas import RowSet
from influx_converter.tables import DEFAULT_TAGS, default_tables

from .helpers import (
    INSIDE_COLUMNS,
    FakeDestClient,
    FakeSourceClient,
    count_row_set,
    inside_rows,
)


def test_inside_table_is_written_in_two_batches(make_settings, single_table_source, inside_table):
    settings = make_settings(batch_size=2, tables=(inside_table,))
    source = single_table_source(inside_rows(3))
    dest = FakeDestClient()

    report = Converter(settings, source, dest).run_on_table(inside_table)

    assert [len(points) for points, _ in dest.writes] == [10, 5]
    assert {db for _, db in dest.writes} == {"prometheus"}
    names = {p.tags["__name__"] for points, _ in dest.writes for p in points}
    assert names == {
        "nest_leaf",
        "nest_humidity",
        "nest_heating",
        "nest_target_temp",
        "nest_current_temp",
    }
    assert report.reported_count == 3
    assert report.received_rows == 3
    assert report.batches == 2
    assert report.points_written == 15


def test_count_query_runs_before_data_query(make_settings, single_table_source, inside_table):
    settings = make_settings(tables=(inside_table,))
    source = single_table_source(inside_rows(1))

    Converter(settings, source, FakeDestClient()).run()

    assert source.queries == [
        (inside_table.count_query, "nestats"),
        (inside_table.query, "nestats"),
    ]


def test_points_carry_default_tags(make_settings, single_table_source, inside_table):
    settings = make_settings(tables=(inside_table,))
    dest = FakeDestClient()

    Converter(settings, single_table_source(inside_rows(1)), dest).run()

    for point in dest.writes[0][0]:
        for key, value in DEFAULT_TAGS.items():
            assert point.tags[key] == value


def test_empty_window_completes_without_writing(make_settings, single_table_source, inside_table):
    settings = make_settings(tables=(inside_table,))
    dest = FakeDestClient()

    reports = Converter(settings, single_table_source((), reported_count=0), dest).run()

    assert dest.calls == 0
    assert reports[0].batches == 0
    assert reports[0].points_written == 0


def test_write_failure_aborts_remaining_batches(make_settings, single_table_source, inside_table):
    settings = make_settings(batch_size=1, tables=(inside_table,))
    dest = FakeDestClient(fail_on_call=2)

    with pytest.raises(WriteError):
        Converter(settings, single_table_source(inside_rows(3)), dest).run()

    assert dest.calls == 2
    # The first batch stays written, there is no rollback
    assert len(dest.writes) == 1


def test_decode_failure_aborts_before_writing_the_batch(make_settings, single_table_source, inside_table):
    rows = inside_rows(2) + ((1700000300, 1, "broken", 0, 21.0, 20.0),)
    settings = make_settings(batch_size=2, tables=(inside_table,))
    dest = FakeDestClient()

    with pytest.raises(DecodeError):
        Converter(settings, single_table_source(rows), dest).run()

    assert dest.calls == 1


def test_query_failure_propagates(make_settings, inside_table):
    source = FakeSourceClient(
        [(inside_table, QueryError("timeout"), RowSet(columns=INSIDE_COLUMNS))]
    )
    settings = make_settings(tables=(inside_table,))
    dest = FakeDestClient()

    with pytest.raises(QueryError, match="timeout"):
        Converter(settings, source, dest).run()

    assert dest.calls == 0


def test_count_mismatch_is_advisory_by_default(make_settings, single_table_source, inside_table, caplog):
    settings = make_settings(tables=(inside_table,))
    dest = FakeDestClient()

    report = Converter(settings, single_table_source(inside_rows(2), reported_count=5), dest).run_on_table(inside_table)

    assert report.count_matches is False
    assert dest.calls == 1
    assert "no coincide" in caplog.text


def test_strict_count_mismatch_aborts_before_writing(make_settings, single_table_source, inside_table):
    settings = make_settings(strict_count=True, tables=(inside_table,))
    dest = FakeDestClient()

    with pytest.raises(CountMismatchError):
        Converter(settings, single_table_source(inside_rows(2), reported_count=5), dest).run()

    assert dest.calls == 0


def test_unreadable_count_is_not_a_mismatch(make_settings, inside_table):
    source = FakeSourceClient(
        [
            (
                inside_table,
                RowSet(columns=("time",), rows=((0,),)),
                RowSet(columns=INSIDE_COLUMNS, rows=inside_rows(1)),
            )
        ]
    )
    settings = make_settings(strict_count=True, tables=(inside_table,))

    report = Converter(settings, source, FakeDestClient()).run_on_table(inside_table)

    assert report.reported_count is None
    assert report.points_written == 5


def test_dry_run_converts_without_writing(make_settings, single_table_source, inside_table):
    settings = make_settings(dry_run=True, batch_size=2, tables=(inside_table,))
    dest = FakeDestClient()

    report = Converter(settings, single_table_source(inside_rows(3)), dest).run_on_table(inside_table)

    assert dest.calls == 0
    assert report.batches == 2
    assert report.points_written == 0
    assert report.dry_run is True


def test_run_processes_tables_in_order(make_settings):
    inside, outside = default_tables()
    outside_columns = ("time", "nest_weather_humidity", "nest_weather_pressure", "nest_weather_temp")
    source = FakeSourceClient(
        [
            (inside, count_row_set(1), RowSet(columns=INSIDE_COLUMNS, rows=inside_rows(1))),
            (
                outside,
                count_row_set(2),
                RowSet(
                    columns=outside_columns,
                    rows=((1700000000, 80, 1013, 9.5), (1700000060, 81, 1012, 9.0)),
                ),
            ),
        ]
    )
    dest = FakeDestClient()

    reports = Converter(make_settings(), source, dest).run()

    assert [r.table for r in reports] == ["inside", "outside"]
    assert [r.points_written for r in reports] == [5, 6]
    assert [q for q, _ in source.queries] == [
        inside.count_query,
        inside.query,
        outside.count_query,
        outside.query,
    ]
