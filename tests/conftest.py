"""
Pytest fixtures for the analytics core, the store adapters and the HTTP API.

Analyses run against an in-memory store built from synthetic flights;
the SQL adapter gets a fresh in-memory SQLite database per test.
"""
from datetime import date, time

import pytest

from flightperf.app import create_app
from flightperf.config import AnalyticsConfig, DatabaseConfig
from flightperf.models import AirlineRef, AirportRef, FlightRecord, create_db_engine, init_db
from flightperf.store import MemoryRecordStore


def build_flight(**overrides) -> FlightRecord:
    """FlightRecord with sensible defaults; override only what a test cares about."""
    values = {
        'flight_date': date(2024, 1, 15),
        'airline': 'AA',
        'flight_number': '100',
        'origin': 'JFK',
        'dest': 'LAX',
        'scheduled_dep_time': time(8, 0),
        'dep_delay': 0,
        'arr_delay': 0,
    }
    values.update(overrides)
    return FlightRecord(**values)


AIRPORTS = (
    AirportRef(code='JFK', name='John F Kennedy International', city='New York', state='NY'),
    AirportRef(code='LAX', name='Los Angeles International', city='Los Angeles', state='CA'),
    AirportRef(code='ORD', name="O'Hare International", city='Chicago', state='IL'),
)

AIRLINES = (
    AirlineRef(code='AA', name='American Airlines', country='USA'),
    AirlineRef(code='DL', name='Delta Air Lines', country='USA'),
)


@pytest.fixture
def make_flight():
    """Factory for synthetic flight records."""
    return build_flight


@pytest.fixture
def open_settings():
    """Analytics settings with every support threshold disabled."""
    return AnalyticsConfig(
        route_min_flights=0,
        top_routes_min_flights=0,
        delayed_routes_min_flights=0,
        weather_airport_min_flights=0,
        airline_min_flights=0,
        ranking_min_flights=0,
        reliability_min_flights=0,
        congestion_min_flights=0,
        region_min_flights=0,
        risk_min_flights=0,
        include_unmapped_regions=False,
    )


@pytest.fixture
def sample_records():
    """
    Small mixed dataset.

    - JFK -> LAX on AA: delays 10, 20, 90 (the worked example)
    - ORD -> DEN on DL: one severe weather delay, one weather cancellation
    - JFK -> ORD on DL: one early departure
    DEN is deliberately missing from the airport reference table.
    """
    return [
        build_flight(dep_delay=10, scheduled_dep_time=time(8, 0)),
        build_flight(dep_delay=20, scheduled_dep_time=time(12, 30), flight_number='102'),
        build_flight(dep_delay=90, scheduled_dep_time=time(18, 0), flight_number='104',
                     weather_delay=0, late_aircraft_delay=60, carrier_delay=30),
        build_flight(airline='DL', flight_number='200', origin='ORD', dest='DEN',
                     scheduled_dep_time=time(9, 15), dep_delay=70, weather_delay=65,
                     nas_delay=5),
        build_flight(airline='DL', flight_number='202', origin='ORD', dest='DEN',
                     scheduled_dep_time=time(14, 0), dep_delay=None, arr_delay=None,
                     cancelled=True, cancellation_code='B'),
        build_flight(airline='DL', flight_number='300', origin='JFK', dest='ORD',
                     scheduled_dep_time=time(6, 45), dep_delay=-5),
    ]


@pytest.fixture
def memory_store(sample_records):
    return MemoryRecordStore(sample_records, airports=AIRPORTS, airlines=AIRLINES)


@pytest.fixture
def sqlite_engine():
    """Fresh in-memory SQLite database with the schema created."""
    engine = create_db_engine(DatabaseConfig(url='sqlite://', query_timeout_seconds=5))
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def app(memory_store):
    return create_app(store=memory_store)


@pytest.fixture
def client(app):
    """Flask test client serving the in-memory store."""
    return app.test_client()
