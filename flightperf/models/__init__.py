"""
Database models for FlightPerf.

Schema designed for a read-mostly historical fact table:
1. Bulk loading (batch inserts)
2. Indexed predicates for the analytical filters
3. Small reference tables for code-to-name resolution

The immutable records in `records` are what the analytics layer sees.
"""

from flightperf.models.base import Base, create_db_engine, make_session_factory, init_db, get_session
from flightperf.models.flight import Flight
from flightperf.models.reference import Airport, Airline
from flightperf.models.records import (
    FlightRecord,
    AirportRef,
    AirlineRef,
    DELAY_CAUSE_FIELDS,
    DELAY_FIELDS,
    DELAY_THRESHOLD_MINUTES,
    SEVERE_DELAY_MINUTES,
    format_route,
)

__all__ = [
    'Base',
    'create_db_engine',
    'make_session_factory',
    'init_db',
    'get_session',
    'Flight',
    'Airport',
    'Airline',
    'FlightRecord',
    'AirportRef',
    'AirlineRef',
    'DELAY_CAUSE_FIELDS',
    'DELAY_FIELDS',
    'DELAY_THRESHOLD_MINUTES',
    'SEVERE_DELAY_MINUTES',
    'format_route',
]
