"""
Bulk loader for historical flight CSV exports and reference data.

Accepts the BTS on-time performance export (upper-case headers such as
FL_DATE, OP_CARRIER, CRS_DEP_TIME) as well as snake_case headers that
match the flights table. Rows that cannot be parsed are skipped with a
warning; everything else is inserted in batches.

Usage:
    from flightperf.ingestion import load_flights_csv, seed_reference_data

    seed_reference_data(engine)
    load_flights_csv(Path('ontime_2024_01.csv'), engine)
"""

import csv
import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy import insert
from sqlalchemy.engine import Engine

from flightperf.config import config
from flightperf.models import Flight, Airport, Airline
from flightperf.models.base import get_session

logger = logging.getLogger(__name__)


# Alternative header -> flights column
HEADER_ALIASES: Dict[str, str] = {
    'fl_date': 'flight_date',
    'op_carrier': 'airline',
    'op_unique_carrier': 'airline',
    'reporting_airline': 'airline',
    'carrier': 'airline',
    'op_carrier_fl_num': 'flight_number',
    'flight_number_reporting_airline': 'flight_number',
    'fl_num': 'flight_number',
    'crs_dep_time': 'scheduled_dep_time',
    'dep_time': 'actual_dep_time',
    'crs_arr_time': 'scheduled_arr_time',
    'arr_time': 'actual_arr_time',
}

REQUIRED_COLUMNS = ('flight_date', 'airline', 'flight_number', 'origin', 'dest')
TIME_COLUMNS = ('scheduled_dep_time', 'actual_dep_time', 'scheduled_arr_time', 'actual_arr_time')
MINUTE_COLUMNS = (
    'dep_delay', 'arr_delay', 'carrier_delay', 'weather_delay',
    'nas_delay', 'security_delay', 'late_aircraft_delay',
)

DATE_FORMATS = ('%Y-%m-%d', '%m/%d/%Y', '%m/%d/%Y %I:%M:%S %p')


# Sample reference data for the major US carriers and airports
SAMPLE_AIRLINES = (
    ('AA', 'American Airlines', 'USA'),
    ('DL', 'Delta Air Lines', 'USA'),
    ('UA', 'United Airlines', 'USA'),
    ('WN', 'Southwest Airlines', 'USA'),
    ('B6', 'JetBlue Airways', 'USA'),
    ('AS', 'Alaska Airlines', 'USA'),
    ('NK', 'Spirit Airlines', 'USA'),
    ('F9', 'Frontier Airlines', 'USA'),
)

SAMPLE_AIRPORTS = (
    ('JFK', 'John F Kennedy International', 'New York', 'NY', 40.6413, -73.7781),
    ('LAX', 'Los Angeles International', 'Los Angeles', 'CA', 33.9416, -118.4085),
    ('ORD', "O'Hare International", 'Chicago', 'IL', 41.9742, -87.9073),
    ('DFW', 'Dallas/Fort Worth International', 'Dallas', 'TX', 32.8998, -97.0403),
    ('ATL', 'Hartsfield-Jackson Atlanta International', 'Atlanta', 'GA', 33.6407, -84.4277),
    ('DEN', 'Denver International', 'Denver', 'CO', 39.8561, -104.6737),
    ('SFO', 'San Francisco International', 'San Francisco', 'CA', 37.6213, -122.3790),
    ('SEA', 'Seattle-Tacoma International', 'Seattle', 'WA', 47.4502, -122.3088),
    ('LAS', 'Harry Reid International', 'Las Vegas', 'NV', 36.0840, -115.1537),
    ('MCO', 'Orlando International', 'Orlando', 'FL', 28.4312, -81.3081),
    ('MIA', 'Miami International', 'Miami', 'FL', 25.7959, -80.2870),
    ('BOS', 'Boston Logan International', 'Boston', 'MA', 42.3656, -71.0096),
    ('PHX', 'Phoenix Sky Harbor International', 'Phoenix', 'AZ', 33.4352, -112.0101),
    ('IAH', 'George Bush Intercontinental', 'Houston', 'TX', 29.9902, -95.3368),
)


def _normalize_header(name: str) -> str:
    key = name.strip().lower()
    return HEADER_ALIASES.get(key, key)


def parse_date(value: str) -> date:
    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f'Unrecognised date: {value!r}')


def parse_time(value: Optional[str]) -> Optional[time]:
    """
    Parse 'HH:MM' or BTS 'HHMM' clock times.

    BTS writes midnight as 2400; it maps to 00:00.
    """
    text = (value or '').strip()
    if not text:
        return None
    if ':' in text:
        hours, minutes = text.split(':')[:2]
    else:
        digits = text.split('.')[0].zfill(4)
        hours, minutes = digits[:-2], digits[-2:]
    hour, minute = int(hours), int(minutes)
    if hour == 24 and minute == 0:
        hour = 0
    return time(hour, minute)


def parse_minutes(value: Optional[str]) -> Optional[int]:
    text = (value or '').strip()
    if not text:
        return None
    return int(round(float(text)))


def parse_flag(value: Optional[str]) -> bool:
    text = (value or '').strip().lower()
    if text in ('', '0', '0.0', '0.00', 'false', 'no'):
        return False
    if text in ('1', '1.0', '1.00', 'true', 'yes'):
        return True
    raise ValueError(f'Unrecognised flag: {value!r}')


def parse_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert one CSV row (normalized headers) into flights column values.

    Raises ValueError or KeyError for a malformed row.
    """
    for column in REQUIRED_COLUMNS:
        if not (row.get(column) or '').strip():
            raise KeyError(column)

    cancelled = parse_flag(row.get('cancelled'))
    record = {
        'flight_date': parse_date(row['flight_date']),
        'airline': row['airline'].strip().upper(),
        'flight_number': row['flight_number'].strip().split('.')[0],
        'origin': row['origin'].strip().upper(),
        'dest': row['dest'].strip().upper(),
        'cancelled': cancelled,
        'cancellation_code': (row.get('cancellation_code') or '').strip().upper() or None,
        'distance': float(row['distance']) if (row.get('distance') or '').strip() else None,
    }
    for column in TIME_COLUMNS:
        record[column] = parse_time(row.get(column))
    for column in MINUTE_COLUMNS:
        record[column] = parse_minutes(row.get(column))
    return record


def load_flights_csv(csv_path: Path, engine: Engine, batch_size: Optional[int] = None) -> int:
    """
    Load flight rows from a CSV file into the flights table.

    Returns count of rows loaded. Malformed rows are logged and skipped.
    """
    csv_path = Path(csv_path)
    batch_size = batch_size or config.ingestion.batch_size

    if not csv_path.exists():
        logger.error(f'Flight CSV not found: {csv_path}')
        return 0

    logger.info(f'Loading flights from {csv_path}')
    loaded = 0
    skipped = 0
    batch = []

    with open(csv_path, 'r', encoding='utf-8', errors='ignore', newline='') as f:
        reader = csv.DictReader(f)
        if reader.fieldnames:
            reader.fieldnames = [_normalize_header(name) for name in reader.fieldnames]

        for line_number, row in enumerate(reader, start=2):
            try:
                batch.append(parse_row(row))
            except (KeyError, ValueError) as e:
                skipped += 1
                logger.warning(f'Skipping malformed row {line_number} in {csv_path.name}: {e}')
                continue

            if len(batch) >= batch_size:
                _insert_batch(engine, batch)
                loaded += len(batch)
                logger.info(f'Loaded {loaded} flights...')
                batch = []

        if batch:
            _insert_batch(engine, batch)
            loaded += len(batch)

    logger.info(f'Loaded {loaded} total flights ({skipped} skipped)')
    return loaded


def _insert_batch(engine: Engine, records: list) -> None:
    """Batch insert flight rows."""
    with get_session(engine) as session:
        session.execute(insert(Flight), records)


def seed_reference_data(engine: Engine) -> None:
    """
    Upsert the sample airlines and airports.

    Safe to run repeatedly; existing rows are updated in place.
    """
    with get_session(engine) as session:
        for code, name, country in SAMPLE_AIRLINES:
            session.merge(Airline(airline_code=code, airline_name=name, country=country))
        for code, name, city, state, lat, lon in SAMPLE_AIRPORTS:
            session.merge(Airport(
                airport_code=code,
                airport_name=name,
                city=city,
                state=state,
                latitude=lat,
                longitude=lon,
            ))

    logger.info(f'Seeded {len(SAMPLE_AIRLINES)} airlines and {len(SAMPLE_AIRPORTS)} airports')
