"""
Record store adapters.

The analytics core depends only on RecordStore; pick SqlRecordStore for a
relational database or MemoryRecordStore for fixtures.
"""

from flightperf.store.filters import FlightFilter
from flightperf.store.base import RecordStore, REFERENCE_KINDS
from flightperf.store.memory import MemoryRecordStore
from flightperf.store.sql import SqlRecordStore

__all__ = [
    'RecordStore',
    'FlightFilter',
    'REFERENCE_KINDS',
    'MemoryRecordStore',
    'SqlRecordStore',
]
