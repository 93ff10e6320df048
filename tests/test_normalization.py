from datetime import datetime, timedelta, timezone

import pytest

from llu_uploader.models.librelink import GraphData
from llu_uploader.models.nightscout import Entry, TrendDirection
from llu_uploader.utils.normalization import format_measurements, map_trend_arrow, parse_factory_timestamp

from conftest import factory_timestamp


def at(minute: int) -> datetime:
    return datetime(2024, 6, 30, 20, minute, tzinfo=timezone.utc)


def make_graph(current_minute: int, history_minutes, trend_arrow: int = 3) -> GraphData:
    return GraphData.model_validate({
        "connection": {
            "glucoseMeasurement": {
                "FactoryTimestamp": factory_timestamp(current_minute),
                "ValueInMgPerDl": 200 + current_minute,
                "TrendArrow": trend_arrow,
            },
        },
        "graphData": [
            {"FactoryTimestamp": factory_timestamp(m), "ValueInMgPerDl": 100 + m}
            for m in history_minutes
        ],
    })


def test_parse_factory_timestamp_pm():
    assert parse_factory_timestamp("6/30/2024 8:05:00 PM") == at(5)


def test_parse_factory_timestamp_am_and_padding():
    assert parse_factory_timestamp("01/02/2024 12:30:00 AM") == datetime(2024, 1, 2, 0, 30, tzinfo=timezone.utc)


def test_parse_factory_timestamp_invalid():
    with pytest.raises(ValueError):
        parse_factory_timestamp("2024-06-30T20:05:00Z")


@pytest.mark.parametrize("arrow,expected", [
    (1, TrendDirection.SINGLE_DOWN),
    (2, TrendDirection.FORTY_FIVE_DOWN),
    (3, TrendDirection.FLAT),
    (4, TrendDirection.FORTY_FIVE_UP),
    (5, TrendDirection.SINGLE_UP),
    (0, TrendDirection.NOT_COMPUTABLE),
    (None, TrendDirection.NOT_COMPUTABLE),
])
def test_map_trend_arrow(arrow, expected):
    assert map_trend_arrow(arrow) == expected


def test_without_watermark_everything_is_included(graph_data):
    entries = format_measurements(graph_data, None)

    assert [e.date for e in entries] == [at(15), at(0), at(5), at(10)]
    assert [e.sgv for e in entries] == [131, 110, 118, 125]
    # Only the current reading carries a direction
    assert entries[0].direction == TrendDirection.FORTY_FIVE_UP
    assert all(e.direction is None for e in entries[1:])


def test_equal_timestamps_are_excluded():
    # watermark 8:05; history 8:00, 8:05, 8:10 -> only 8:10 survives
    graph = make_graph(current_minute=5, history_minutes=[0, 5, 10])
    watermark = Entry(date=at(5), sgv=100)

    entries = format_measurements(graph, watermark)

    assert [e.date for e in entries] == [at(10)]
    assert entries[0].direction is None


def test_current_reading_first_when_newer():
    graph = make_graph(current_minute=20, history_minutes=[0, 5, 10, 15])
    entries = format_measurements(graph, Entry(date=at(10)))

    assert [e.date for e in entries] == [at(20), at(15)]
    assert entries[0].direction == TrendDirection.FLAT
    assert entries[0].sgv == 220


def test_nothing_newer_than_watermark():
    graph = make_graph(current_minute=10, history_minutes=[0, 5, 10])
    assert format_measurements(graph, Entry(date=at(10))) == []


def test_history_order_is_preserved():
    graph = make_graph(current_minute=30, history_minutes=[25, 15, 20])
    entries = format_measurements(graph, Entry(date=at(12)))

    assert [e.date for e in entries] == [at(30), at(25), at(15), at(20)]


def test_naive_watermark_is_treated_as_utc():
    graph = make_graph(current_minute=10, history_minutes=[5])
    watermark = Entry(date=datetime(2024, 6, 30, 20, 5))

    entries = format_measurements(graph, watermark)

    assert [e.date for e in entries] == [at(10)]


def test_watermark_one_second_earlier_includes_reading():
    graph = make_graph(current_minute=10, history_minutes=[])
    watermark = Entry(date=at(10) - timedelta(seconds=1))

    assert len(format_measurements(graph, watermark)) == 1
