"""Tests for the aggregation engine."""
from datetime import date, time

import pytest

from flightperf.analytics.aggregation import (
    TimeOfDay,
    aggregate,
    assign_sequence_positions,
    resolve_delay_field,
    time_of_day,
)
from flightperf.errors import UnknownDelayType, UnknownFilterKey


def test_worked_example(make_flight):
    records = [make_flight(dep_delay=d) for d in (10, 20, 90)]

    rows = aggregate(records, ('origin', 'dest'))

    assert len(rows) == 1
    row = rows[0]
    assert row.key_dict() == {'origin': 'JFK', 'dest': 'LAX'}
    assert row.count == 3
    assert row.on_time_rate == pytest.approx(33.33, abs=0.01)
    assert row.avg_delay == pytest.approx(40.0)
    assert row.cancel_rate == 0.0
    assert row.q1_delay <= row.median_delay <= row.q3_delay


def test_min_support_is_exclusive(make_flight):
    records = (
        [make_flight(origin='JFK') for _ in range(10)]
        + [make_flight(origin='BOS') for _ in range(11)]
    )

    rows = aggregate(records, ('origin',), min_support=10)

    assert [r.get('origin') for r in rows] == ['BOS']


def test_cancelled_flights_count_in_rates_not_delays(make_flight):
    records = [
        make_flight(dep_delay=20),
        make_flight(dep_delay=None, cancelled=True, cancellation_code='A'),
        make_flight(dep_delay=None),
        make_flight(dep_delay=0),
    ]

    row = aggregate(records, ('airline',))[0]

    assert row.count == 4
    assert row.avg_delay == pytest.approx(10.0)
    assert row.cancel_rate == pytest.approx(25.0)
    assert row.on_time_rate == pytest.approx(25.0)
    assert row.delays == (20.0, 0.0)


def test_empty_group_statistics_are_none(make_flight):
    row = aggregate([make_flight(dep_delay=None, cancelled=True)], ('airline',))[0]
    assert row.avg_delay is None
    assert row.stddev_delay is None
    assert row.cancel_rate == pytest.approx(100.0)


def test_ordering_is_stable_with_none_last(make_flight):
    records = [
        make_flight(origin='AAA', dep_delay=10),
        make_flight(origin='BBB', dep_delay=None, cancelled=True),
        make_flight(origin='CCC', dep_delay=30),
        make_flight(origin='DDD', dep_delay=10),
    ]

    rows = aggregate(records, ('origin',), order_by='avg_delay')

    assert [r.get('origin') for r in rows] == ['CCC', 'AAA', 'DDD', 'BBB']


def test_limit_applies_after_sorting(make_flight):
    records = [make_flight(origin=code, dep_delay=delay) for code, delay in (('A', 1), ('B', 3), ('C', 2))]
    rows = aggregate(records, ('origin',), order_by='avg_delay', limit=2)
    assert [r.get('origin') for r in rows] == ['B', 'C']


def test_named_metrics(make_flight):
    records = [
        make_flight(dep_delay=45, weather_delay=10),
        make_flight(dep_delay=16),
        make_flight(dep_delay=-3, dest='SFO', airline='DL'),
    ]

    row = aggregate(
        records, ('origin',),
        metrics=('delay_rate', 'severe_delay_rate', 'severe_delays', 'weather_affected',
                 'unique_destinations', 'airlines_operating', 'avg_positive_delay', 'mode_route'),
    )[0]

    assert row.get('delay_rate') == pytest.approx(200 / 3)
    assert row.get('severe_delay_rate') == pytest.approx(100 / 3)
    assert row.get('severe_delays') == 1
    assert row.get('weather_affected') == 1
    assert row.get('unique_destinations') == 2
    assert row.get('airlines_operating') == 2
    assert row.get('avg_positive_delay') == pytest.approx(30.5)
    assert row.get('mode_route') == 'JFK → LAX'


def test_clip_negative(make_flight):
    records = [make_flight(dep_delay=-10), make_flight(dep_delay=20)]
    assert aggregate(records, ('origin',))[0].avg_delay == pytest.approx(5.0)
    assert aggregate(records, ('origin',), clip_negative=True)[0].avg_delay == pytest.approx(10.0)


def test_alternate_delay_field(make_flight):
    records = [make_flight(weather_delay=40), make_flight(weather_delay=20)]
    row = aggregate(records, ('origin',), delay_field='weather_delay')[0]
    assert row.avg_delay == pytest.approx(30.0)


@pytest.mark.parametrize('hour, bucket', [
    (5, TimeOfDay.MORNING),
    (11, TimeOfDay.MORNING),
    (12, TimeOfDay.AFTERNOON),
    (17, TimeOfDay.AFTERNOON),
    (18, TimeOfDay.EVENING),
    (4, TimeOfDay.EVENING),
    (None, TimeOfDay.EVENING),
])
def test_time_of_day(hour, bucket):
    assert time_of_day(hour) == bucket


def test_sequence_positions(make_flight):
    day = date(2024, 3, 1)
    records = [
        make_flight(flight_date=day, flight_number='3', scheduled_dep_time=time(15, 0)),
        make_flight(flight_date=day, flight_number='1', scheduled_dep_time=time(7, 0)),
        make_flight(flight_date=day, flight_number='x', scheduled_dep_time=None),
        make_flight(flight_date=day, flight_number='c', scheduled_dep_time=time(6, 0), cancelled=True),
        make_flight(flight_date=day, flight_number='2', scheduled_dep_time=time(9, 0)),
        make_flight(flight_date=day, airline='DL', flight_number='d1', scheduled_dep_time=time(23, 0)),
    ]

    positioned = assign_sequence_positions(records)
    by_number = {r.flight_number: pos for pos, r in positioned}

    assert by_number == {'1': 1, '2': 2, '3': 3, 'x': 4, 'd1': 1}


def test_sequence_positions_are_capped(make_flight):
    records = [make_flight(scheduled_dep_time=time(h, 0), flight_number=str(h)) for h in range(24)]
    positions = [pos for pos, _ in assign_sequence_positions(records, max_position=20)]
    assert max(positions) == 20
    assert len(positions) == 20


def test_group_by_sequence(make_flight):
    records = [
        make_flight(scheduled_dep_time=time(8, 0), dep_delay=0),
        make_flight(scheduled_dep_time=time(12, 0), dep_delay=30),
        make_flight(flight_date=date(2024, 1, 16), scheduled_dep_time=time(9, 0), dep_delay=10),
    ]
    rows = aggregate(records, ('airline', 'sequence'), order_by='avg_delay')
    assert [(r.get('sequence'), r.count, r.avg_delay) for r in rows] == [(2, 1, 30.0), (1, 2, 5.0)]


def test_resolve_delay_field():
    assert resolve_delay_field(None) == 'dep_delay'
    assert resolve_delay_field('All Delays') == 'dep_delay'
    assert resolve_delay_field('all') == 'dep_delay'
    assert resolve_delay_field('Late Aircraft') == 'late_aircraft_delay'
    assert resolve_delay_field('late_aircraft') == 'late_aircraft_delay'
    assert resolve_delay_field('nas') == 'nas_delay'
    with pytest.raises(UnknownDelayType):
        resolve_delay_field('Volcano')


@pytest.mark.parametrize('kwargs', [
    {'group_keys': ('tail_number',)},
    {'group_keys': ('origin',), 'metrics': ('median_speed',)},
    {'group_keys': ('origin',), 'delay_field': 'taxi_delay'},
    {'group_keys': ('origin',), 'order_by': 'severe_delay_rate'},
])
def test_unknown_keys_fail_fast(make_flight, kwargs):
    with pytest.raises(UnknownFilterKey):
        aggregate([make_flight()], **kwargs)
