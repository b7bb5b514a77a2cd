"""
SQLAlchemy-backed record store.

Translates a FlightFilter into WHERE clauses on the flights table and
streams matching rows in chunks (yield_per) so that cancellation and
the query deadline are checked while a large scan is in progress.
Grouping happens in Python through the aggregation engine; the
database only filters.
"""

import logging
import threading
import time
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import Select

from flightperf.errors import StoreUnavailable
from flightperf.models import Flight, Airport, Airline, FlightRecord, AirportRef, AirlineRef
from flightperf.models.base import make_session_factory
from flightperf.store.base import RecordStore
from flightperf.store.filters import FlightFilter

logger = logging.getLogger(__name__)


class SqlRecordStore(RecordStore):
    """
    Record store over the relational flights/airports/airlines schema.

    Holds only the injected engine and a session factory; each call
    opens and closes its own session, so one instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        engine: Engine,
        query_timeout_seconds: Optional[float] = None,
        chunk_size: int = 1000,
    ):
        super().__init__(query_timeout_seconds=query_timeout_seconds)
        self.engine = engine
        self.chunk_size = chunk_size
        self._session_factory = make_session_factory(engine)

    def build_statement(self, flt: Optional[FlightFilter] = None) -> Select:
        """SELECT for the flights matching the filter, in id order."""
        flt = flt or FlightFilter()
        stmt = select(Flight)

        if flt.positive_field is not None:
            stmt = stmt.where(getattr(Flight, flt.positive_field) > 0)
        if flt.min_dep_delay is not None:
            stmt = stmt.where(Flight.dep_delay > flt.min_dep_delay)
        if flt.cancelled is not None:
            stmt = stmt.where(Flight.cancelled == flt.cancelled)
        if flt.since is not None:
            stmt = stmt.where(Flight.flight_date >= flt.since)
        if flt.until is not None:
            stmt = stmt.where(Flight.flight_date <= flt.until)
        if flt.origin is not None:
            stmt = stmt.where(Flight.origin == flt.origin)
        if flt.dest is not None:
            stmt = stmt.where(Flight.dest == flt.dest)
        if flt.airline is not None:
            stmt = stmt.where(Flight.airline == flt.airline)
        if flt.has_schedule:
            stmt = stmt.where(Flight.scheduled_dep_time.is_not(None))

        return stmt.order_by(Flight.flight_id.asc())

    def fetch_records(
        self,
        flt: Optional[FlightFilter] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[FlightRecord]:
        stmt = self.build_statement(flt).execution_options(yield_per=self.chunk_size)
        started = time.monotonic()

        try:
            with self._session_factory() as session:
                rows = session.scalars(stmt)
                records = [row.to_record() for row in self._guard(rows, cancel_event, started)]
        except SQLAlchemyError as e:
            logger.error(f'Flight query failed: {e}')
            raise StoreUnavailable(f'Flight query failed: {e}') from e

        query_time_ms = (time.monotonic() - started) * 1000
        logger.debug(f'Fetched {len(records)} flights in {query_time_ms:.1f}ms')
        return records

    def _load_airports(self) -> Dict[str, AirportRef]:
        try:
            with self._session_factory() as session:
                airports = session.scalars(select(Airport)).all()
                return {a.airport_code: a.to_ref() for a in airports}
        except SQLAlchemyError as e:
            logger.error(f'Airport reference query failed: {e}')
            raise StoreUnavailable(f'Airport reference query failed: {e}') from e

    def _load_airlines(self) -> Dict[str, AirlineRef]:
        try:
            with self._session_factory() as session:
                airlines = session.scalars(select(Airline)).all()
                return {a.airline_code: a.to_ref() for a in airlines}
        except SQLAlchemyError as e:
            logger.error(f'Airline reference query failed: {e}')
            raise StoreUnavailable(f'Airline reference query failed: {e}') from e
