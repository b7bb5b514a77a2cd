"""
In-memory record store.

Serves a fixed list of FlightRecords. Used for fixtures, tests and
small CSV extracts that do not warrant a database.
"""

import threading
import time
from typing import Dict, Iterable, List, Optional

from flightperf.models.records import FlightRecord, AirportRef, AirlineRef
from flightperf.store.base import RecordStore
from flightperf.store.filters import FlightFilter


class MemoryRecordStore(RecordStore):
    """Record store over an immutable tuple of records."""

    def __init__(
        self,
        records: Iterable[FlightRecord] = (),
        airports: Iterable[AirportRef] = (),
        airlines: Iterable[AirlineRef] = (),
        query_timeout_seconds: Optional[float] = None,
    ):
        super().__init__(query_timeout_seconds=query_timeout_seconds)
        self._records = tuple(records)
        self._airport_refs = tuple(airports)
        self._airline_refs = tuple(airlines)

    def __len__(self) -> int:
        return len(self._records)

    def fetch_records(
        self,
        flt: Optional[FlightFilter] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[FlightRecord]:
        flt = flt or FlightFilter()
        started = time.monotonic()
        return [r for r in self._guard(self._records, cancel_event, started) if flt.matches(r)]

    def _load_airports(self) -> Dict[str, AirportRef]:
        return {a.code: a for a in self._airport_refs}

    def _load_airlines(self) -> Dict[str, AirlineRef]:
        return {a.code: a for a in self._airline_refs}
