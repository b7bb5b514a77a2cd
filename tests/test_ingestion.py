"""Tests for CSV loading and reference seeding."""
from datetime import date, time

import pytest
from sqlalchemy import func, select

from flightperf.ingestion import load_flights_csv, seed_reference_data
from flightperf.ingestion.csv_loader import parse_time
from flightperf.models import Airline, Airport, Flight, get_session
from flightperf.store import SqlRecordStore

BTS_CSV = """FL_DATE,OP_CARRIER,OP_CARRIER_FL_NUM,ORIGIN,DEST,CRS_DEP_TIME,DEP_TIME,DEP_DELAY,CRS_ARR_TIME,ARR_TIME,ARR_DELAY,CANCELLED,CANCELLATION_CODE,DISTANCE,CARRIER_DELAY,WEATHER_DELAY,NAS_DELAY,SECURITY_DELAY,LATE_AIRCRAFT_DELAY
2024-01-15,AA,100,JFK,LAX,0800,0810,10.00,1130,1140,10.00,0.00,,2475.00,,,,,
2024-01-15,DL,202,ORD,DEN,1400,,,1600,,,1.00,B,888.00,,,,,
not-a-date,DL,1,ORD,DEN,0900,,,,,,0.00,,,,,,,
2024-01-16,UA,55,SFO,SEA,2400,0015,15.00,0200,0220,20.00,0.00,,679.00,0.00,0.00,15.00,0.00,0.00
"""

SNAKE_CSV = """flight_date,airline,flight_number,origin,dest,scheduled_dep_time,dep_delay,cancelled
2024-02-01,aa,7,jfk,bos,07:30,-3,0
2024-02-01,AA,8,BOS,,09:00,5,0
"""


def _count(engine, model):
    with get_session(engine) as session:
        return session.scalar(select(func.count()).select_from(model))


def test_load_bts_csv(tmp_path, sqlite_engine):
    path = tmp_path / 'ontime.csv'
    path.write_text(BTS_CSV)

    loaded = load_flights_csv(path, sqlite_engine, batch_size=2)

    assert loaded == 3
    records = SqlRecordStore(sqlite_engine).fetch_records()
    first, cancelled, midnight = records
    assert first.flight_date == date(2024, 1, 15)
    assert first.scheduled_dep_time == time(8, 0)
    assert first.dep_delay == 10
    assert first.distance == pytest.approx(2475.0)
    assert cancelled.cancelled is True
    assert cancelled.cancellation_code == 'B'
    assert cancelled.dep_delay is None
    assert midnight.scheduled_dep_time == time(0, 0)
    assert midnight.nas_delay == 15


def test_load_snake_case_csv_skips_malformed_rows(tmp_path, sqlite_engine):
    path = tmp_path / 'flights.csv'
    path.write_text(SNAKE_CSV)

    assert load_flights_csv(path, sqlite_engine) == 1
    record = SqlRecordStore(sqlite_engine).fetch_records()[0]
    assert (record.airline, record.origin, record.dest) == ('AA', 'JFK', 'BOS')
    assert record.dep_delay == -3


def test_missing_csv_loads_nothing(tmp_path, sqlite_engine):
    assert load_flights_csv(tmp_path / 'missing.csv', sqlite_engine) == 0
    assert _count(sqlite_engine, Flight) == 0


@pytest.mark.parametrize('raw, expected', [
    ('0800', time(8, 0)),
    ('745', time(7, 45)),
    ('2400', time(0, 0)),
    ('13:05', time(13, 5)),
    ('', None),
    (None, None),
])
def test_parse_time(raw, expected):
    assert parse_time(raw) == expected


def test_seed_reference_data_is_idempotent(sqlite_engine):
    seed_reference_data(sqlite_engine)
    seed_reference_data(sqlite_engine)

    assert _count(sqlite_engine, Airline) == 8
    assert _count(sqlite_engine, Airport) == 14
